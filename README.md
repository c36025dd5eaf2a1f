# gpushare-config

A library for reading, validating and merging the versioned (`v1`) configuration
of a GPU device plugin and its feature-discovery companion. It covers
command-line flags, resource naming, device replication (time-slicing and MPS)
and IMEX channel settings.

## Installation

```
pip install gpushare-config
```

## Loading a configuration file

YAML and JSON are both accepted. A file with no `version` is treated as `v1`.
Any other version raises `ConfigError`.

```python
from gpushare_config.config import parse_config

config = parse_config("/etc/gpu/config.yaml")
print(config.version)                      # "v1"
print(config.sharing.sharing_strategy())   # SharingStrategy.TIME_SLICING
```

`parse_config_from(stream)` reads the same format from an open stream.
`Config.from_json(data)` builds a `Config` from already decoded data, and
`Config.to_json()` turns it back into plain dicts and lists.

An example configuration:

```yaml
version: v1
flags:
  migStrategy: none
  plugin:
    deviceListStrategy: [envvar, cdi-annotations]
  gfd:
    sleepInterval: 60s
sharing:
  timeSlicing:
    renameByDefault: true
    resources:
      - name: nvidia.com/gpu
        replicas: 4
```

With `renameByDefault: true`, a resource without a `rename` is renamed to its
name plus `.shared` (here `nvidia.com/gpu.shared`). Every replicated resource
needs a `name` and `replicas` of at least 2; `devices` defaults to `"all"`.

## Merging command-line settings

`new_config(context, flag_names)` builds a `Config`. A flag's value wins when
it was given explicitly; otherwise the value from the file named by the
`config-file` flag is kept; a flag default fills in fields the file left unset.
`CliContext` holds the flag values: `values` for flags given explicitly (on the
command line or through the environment) and `defaults` for the rest.

```python
from gpushare_config.flags import CliContext
from gpushare_config.config import new_config

context = CliContext(
    values={"mig-strategy": "single"},
    defaults={"fail-on-init-error": True},
)
config = new_config(context, ["mig-strategy", "fail-on-init-error"])
print(config.flags.mig_strategy)        # "single"
print(config.flags.fail_on_init_error)  # True
```

`new_config` also applies the `imex-channel-ids` and `imex-required` flags when
they are set, uses the driver root as the device root when no device root is
given, and always turns on `failRequestsGreaterThanOne` for `sharing.mps` when
that section is present.

`disable_resource_naming_in_config(logger, config)` drops custom resources and
resets renames and device selections in the sharing sections, reporting each
change through `logger.warning` (a `logging.Logger` will do).

## Building blocks

- `ResourceName.create(name)` adds the `nvidia.com/` prefix when it is missing,
  enforces the 63-character limit and checks the DNS-subdomain rules.
- `ResourcePattern.matches(text)` matches with `*` wildcards.
- `ReplicatedDevices.from_json(value)` accepts `"all"`, a positive count, or a
  list of GPU indices, MIG indices (`"0:1"`) and GPU/MIG UUIDs.
- `ReplicatedDeviceRef` tells GPU indices, MIG indices and UUIDs apart.
- `DeviceListStrategies.from_names([...])` validates device-list strategies and
  reports whether CDI is in use.
- `Duration.from_json` accepts nanosecond numbers or duration strings such as
  `"1m30s"`; `Duration.to_json` writes the canonical string form.
  `parse_duration` and `format_duration` work on plain nanosecond integers.
- `assert_channel_ids_valid(ids)` accepts only `[]` or `[0]` and otherwise
  raises `InvalidImexConfigError`.

Every validation failure raises `ConfigError` (a `ValueError`) or one of its
subclasses.

## What this package does not do

It is a configuration library only. It has no command to run, does not parse
command-line arguments itself (the caller fills a `CliContext`), and does not
discover, label or allocate GPUs.