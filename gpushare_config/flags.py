"""Command-line flags shared by the device plugin and feature discovery."""

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field

from .consts import ConfigError
from .duration import Duration, parse_duration


def parse_device_list_strategy(value):
    """Accept a single strategy name or a list of names and return a list."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError(f"invalid deviceListStrategy: {value!r}")


@dataclass
class CliContext:
    """Values of parsed command-line flags.

    ``values`` holds the flags given explicitly (on the command line or through
    the environment); ``defaults`` holds the values used for the others.
    """

    values: Mapping = field(default_factory=dict)
    defaults: Mapping = field(default_factory=dict)

    def is_set(self, name):
        """Return whether the flag was given explicitly."""
        return name in self.values

    def get(self, name):
        """Return the flag's value, falling back to its default, or None."""
        if name in self.values:
            return self.values[name]
        return self.defaults.get(name)


def _as_string(value):
    return "" if value is None else str(value)


def _as_bool(value):
    return bool(value)


def _as_strings(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def _as_duration(value):
    if value is None:
        return Duration(0)
    if isinstance(value, Duration):
        return value
    if isinstance(value, datetime.timedelta):
        return Duration(value // datetime.timedelta(microseconds=1) * 1000)
    if isinstance(value, str):
        return Duration(parse_duration(value))
    if isinstance(value, int) and not isinstance(value, bool):
        return Duration(value)
    raise ConfigError(f"unsupported duration value: {value!r}")


_COMMON_FLAGS = {
    "mig-strategy": ("mig_strategy", _as_string),
    "fail-on-init-error": ("fail_on_init_error", _as_bool),
    "mps-root": ("mps_root", _as_string),
    "driver-root": ("nvidia_driver_root", _as_string),
    "nvidia-driver-root": ("nvidia_driver_root", _as_string),
    "dev-root": ("nvidia_dev_root", _as_string),
    "nvidia-dev-root": ("nvidia_dev_root", _as_string),
    "gds-enabled": ("gds_enabled", _as_bool),
    "mofed-enabled": ("mofed_enabled", _as_bool),
    "use-node-feature-api": ("use_node_feature_api", _as_bool),
    "device-discovery-strategy": ("device_discovery_strategy", _as_string),
}

_PLUGIN_FLAGS = {
    "pass-device-specs": ("pass_device_specs", _as_bool),
    "device-list-strategy": ("device_list_strategy", _as_strings),
    "device-id-strategy": ("device_id_strategy", _as_string),
    "cdi-annotation-prefix": ("cdi_annotation_prefix", _as_string),
    "nvidia-cdi-hook-path": ("nvidia_ctk_path", _as_string),
    "nvidia-ctk-path": ("nvidia_ctk_path", _as_string),
    "container-driver-root": ("container_driver_root", _as_string),
}

_GFD_FLAGS = {
    "oneshot": ("oneshot", _as_bool),
    "output-file": ("output_file", _as_string),
    "sleep-interval": ("sleep_interval", _as_duration),
    "no-timestamp": ("no_timestamp", _as_bool),
    "machine-type-file": ("machine_type_file", _as_string),
}


def _update_from_flag(target, table, context, name):
    entry = table.get(name)
    if entry is None:
        return
    attribute, convert = entry
    if context.is_set(name) or getattr(target, attribute) is None:
        setattr(target, attribute, convert(context.get(name)))


def _check_mapping(data, what):
    if not isinstance(data, Mapping):
        raise ConfigError(f"{what} must be an object, not {type(data).__name__}")


def _opt_string(data, key):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string: {value!r}")
    return value


def _opt_bool(data, key):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be a boolean: {value!r}")
    return value


@dataclass
class PluginCommandLineFlags:
    """Flags specific to the device plugin."""

    pass_device_specs: bool | None = None
    device_list_strategy: list | None = None
    device_id_strategy: str | None = None
    cdi_annotation_prefix: str | None = None
    nvidia_ctk_path: str | None = None
    container_driver_root: str | None = None

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON."""
        _check_mapping(data, "plugin flags")
        strategy = data.get("deviceListStrategy")
        return cls(
            pass_device_specs=_opt_bool(data, "passDeviceSpecs"),
            device_list_strategy=(
                None if strategy is None else parse_device_list_strategy(strategy)
            ),
            device_id_strategy=_opt_string(data, "deviceIDStrategy"),
            cdi_annotation_prefix=_opt_string(data, "cdiAnnotationPrefix"),
            nvidia_ctk_path=_opt_string(data, "nvidiaCTKPath"),
            container_driver_root=_opt_string(data, "containerDriverRoot"),
        )

    def to_json(self):
        """Return a JSON-ready dict; unset flags are null."""
        return {
            "passDeviceSpecs": self.pass_device_specs,
            "deviceListStrategy": (
                None if self.device_list_strategy is None else list(self.device_list_strategy)
            ),
            "deviceIDStrategy": self.device_id_strategy,
            "cdiAnnotationPrefix": self.cdi_annotation_prefix,
            "nvidiaCTKPath": self.nvidia_ctk_path,
            "containerDriverRoot": self.container_driver_root,
        }


@dataclass
class GFDCommandLineFlags:
    """Flags specific to feature discovery."""

    oneshot: bool | None = None
    no_timestamp: bool | None = None
    sleep_interval: Duration | None = None
    output_file: str | None = None
    machine_type_file: str | None = None

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON."""
        _check_mapping(data, "gfd flags")
        interval = data.get("sleepInterval")
        return cls(
            oneshot=_opt_bool(data, "oneshot"),
            no_timestamp=_opt_bool(data, "noTimestamp"),
            sleep_interval=None if interval is None else Duration.from_json(interval),
            output_file=_opt_string(data, "outputFile"),
            machine_type_file=_opt_string(data, "machineTypeFile"),
        )

    def to_json(self):
        """Return a JSON-ready dict; unset flags are null."""
        return {
            "oneshot": self.oneshot,
            "noTimestamp": self.no_timestamp,
            "sleepInterval": (
                None if self.sleep_interval is None else self.sleep_interval.to_json()
            ),
            "outputFile": self.output_file,
            "machineTypeFile": self.machine_type_file,
        }


@dataclass
class Flags:
    """The full set of flags configuring the device plugin and feature discovery."""

    mig_strategy: str | None = None
    fail_on_init_error: bool | None = None
    mps_root: str | None = None
    nvidia_driver_root: str | None = None
    nvidia_dev_root: str | None = None
    gds_enabled: bool | None = None
    mofed_enabled: bool | None = None
    use_node_feature_api: bool | None = None
    device_discovery_strategy: str | None = None
    plugin: PluginCommandLineFlags | None = None
    gfd: GFDCommandLineFlags | None = None

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON; null gives an empty set of flags."""
        if data is None:
            return cls()
        _check_mapping(data, "flags")
        plugin = data.get("plugin")
        gfd = data.get("gfd")
        return cls(
            mig_strategy=_opt_string(data, "migStrategy"),
            fail_on_init_error=_opt_bool(data, "failOnInitError"),
            mps_root=_opt_string(data, "mpsRoot"),
            nvidia_driver_root=_opt_string(data, "nvidiaDriverRoot"),
            nvidia_dev_root=_opt_string(data, "nvidiaDevRoot"),
            gds_enabled=_opt_bool(data, "gdsEnabled"),
            mofed_enabled=_opt_bool(data, "mofedEnabled"),
            use_node_feature_api=_opt_bool(data, "useNodeFeatureAPI"),
            device_discovery_strategy=_opt_string(data, "deviceDiscoveryStrategy"),
            plugin=None if plugin is None else PluginCommandLineFlags.from_json(plugin),
            gfd=None if gfd is None else GFDCommandLineFlags.from_json(gfd),
        )

    def to_json(self):
        """Return a JSON-ready dict; optional sections are left out when unset."""
        out = {
            "migStrategy": self.mig_strategy,
            "failOnInitError": self.fail_on_init_error,
        }
        if self.mps_root is not None:
            out["mpsRoot"] = self.mps_root
        if self.nvidia_driver_root is not None:
            out["nvidiaDriverRoot"] = self.nvidia_driver_root
        if self.nvidia_dev_root is not None:
            out["nvidiaDevRoot"] = self.nvidia_dev_root
        out["gdsEnabled"] = self.gds_enabled
        out["mofedEnabled"] = self.mofed_enabled
        out["useNodeFeatureAPI"] = self.use_node_feature_api
        out["deviceDiscoveryStrategy"] = self.device_discovery_strategy
        if self.plugin is not None:
            out["plugin"] = self.plugin.to_json()
        if self.gfd is not None:
            out["gfd"] = self.gfd.to_json()
        return out

    def update_from_cli_flags(self, context, flag_names):
        """Update from the named command-line flags.

        A flag's value is taken when it was set explicitly, or when the field
        has no value yet.
        """
        for name in flag_names:
            _update_from_flag(self, _COMMON_FLAGS, context, name)
            if self.plugin is None:
                self.plugin = PluginCommandLineFlags()
            _update_from_flag(self.plugin, _PLUGIN_FLAGS, context, name)
            if self.gfd is None:
                self.gfd = GFDCommandLineFlags()
            _update_from_flag(self.gfd, _GFD_FLAGS, context, name)