"""Replicated (shared) resources and the devices they apply to."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from .consts import ConfigError
from .resources import ResourceName

_UINT64_LIMIT = 1 << 64
_DIGITS = re.compile(r"[0-9]+")
_HEX = r"[0-9a-fA-F]"
_UUID_DASHED = re.compile(rf"{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}")
_UUID_PLAIN = re.compile(rf"{_HEX}{{32}}")
_URN_PREFIX = "urn:uuid:"


def _is_uint(text):
    """Return whether text is an unsigned base-10 integer that fits in 64 bits."""
    return _DIGITS.fullmatch(text) is not None and int(text) < _UINT64_LIMIT


def _is_uuid(text):
    """Return whether text is a UUID in one of the accepted textual forms."""
    if len(text) == 36:
        return _UUID_DASHED.fullmatch(text) is not None
    if len(text) == 45:
        return text[:9].lower() == _URN_PREFIX and _UUID_DASHED.fullmatch(text[9:]) is not None
    if len(text) == 38:
        return (
            text[0] == "{"
            and text[-1] == "}"
            and _UUID_DASHED.fullmatch(text[1:-1]) is not None
        )
    if len(text) == 32:
        return _UUID_PLAIN.fullmatch(text) is not None
    return False


class ReplicatedDeviceRef(str):
    """A GPU index, a MIG index, or a GPU or MIG UUID."""

    def is_gpu_index(self):
        """Return whether this is a full GPU index such as '0'."""
        return _is_uint(self)

    def is_mig_index(self):
        """Return whether this is a MIG index such as '0:1'."""
        parts = self.split(":", 1)
        return len(parts) == 2 and all(_is_uint(part) for part in parts)

    def is_uuid(self):
        """Return whether this is a GPU or MIG UUID."""
        return self.is_gpu_uuid() or self.is_mig_uuid()

    def is_gpu_uuid(self):
        """Return whether this has the form GPU-<uuid>."""
        return self.startswith("GPU-") and _is_uuid(self[len("GPU-"):])

    def is_mig_uuid(self):
        """Return whether this has the form MIG-<uuid> or MIG-GPU-<uuid>/<gi>/<ci>."""
        if not self.startswith("MIG-"):
            return False
        suffix = self[len("MIG-"):]
        if _is_uuid(suffix):
            return True
        parts = suffix.split("/", 2)
        if len(parts) != 3:
            return False
        if not ReplicatedDeviceRef(parts[0]).is_gpu_uuid():
            return False
        return all(_is_uint(part) for part in parts[1:])


def _device_ref_from_json(item):
    # A JSON null decodes as the unsigned index 0.
    if item is None:
        return ReplicatedDeviceRef("0")
    if isinstance(item, int) and not isinstance(item, bool):
        if 0 <= item < _UINT64_LIMIT:
            return ReplicatedDeviceRef(str(item))
    elif isinstance(item, str):
        ref = ReplicatedDeviceRef(item)
        if ref.is_gpu_index() or ref.is_mig_index() or ref.is_uuid():
            return ref
    raise ConfigError(f"unsupported type for device in devices list: {item!r}")


@dataclass
class ReplicatedDevices:
    """The devices a replicated resource applies to: all, a count, or a list."""

    all: bool = False
    count: int = 0
    list: list | None = None

    @classmethod
    def from_json(cls, value):
        """Build from decoded JSON: "all", a positive count, or a list of device refs."""
        if isinstance(value, str) or value is None:
            text = value or ""
            if text != "all":
                raise ConfigError(
                    f"devices set as '{text}' but the only valid string input is 'all'"
                )
            return cls(all=True)
        if isinstance(value, int) and not isinstance(value, bool):
            if value <= 0:
                raise ConfigError(
                    f"devices set as '{value}' but a count of devices must be > 0"
                )
            return cls(count=value)
        if isinstance(value, list):
            return cls(list=[_device_ref_from_json(item) for item in value])
        raise ConfigError(f"unrecognized type for devices spec: {value!r}")

    def to_json(self):
        """Return "all", the count, or the list of device refs."""
        if self.all:
            return "all"
        if self.count > 0:
            return self.count
        if self.list is not None:
            return [str(ref) for ref in self.list]
        raise ConfigError(f"unmarshallable ReplicatedDevices struct: {self!r}")


def _resource_name_from_json(value):
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ConfigError(f"resource name must be a string: {value!r}")
    return ResourceName.create(value)


def _json_bool(value, what):
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{what} must be a boolean: {value!r}")
    return value


@dataclass
class ReplicatedResource:
    """A resource to be replicated a number of times."""

    name: ResourceName
    devices: ReplicatedDevices = field(default_factory=lambda: ReplicatedDevices(all=True))
    replicas: int = 0
    rename: ResourceName = ResourceName("")

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON; 'name' and 'replicas' (at least 2) are required."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"replicated resource must be an object, not {type(data).__name__}")

        if "name" not in data:
            raise ConfigError("no resource name specified")
        name = _resource_name_from_json(data["name"])

        devices = ReplicatedDevices.from_json(data.get("devices", "all"))

        if "replicas" not in data:
            raise ConfigError("no replicas specified")
        replicas = data["replicas"]
        if replicas is None:
            replicas = 0
        if isinstance(replicas, bool) or not isinstance(replicas, int):
            raise ConfigError(f"replicas must be an integer: {replicas!r}")
        if replicas < 2:
            raise ConfigError("number of replicas must be >= 2")

        rename = ResourceName("")
        if "rename" in data:
            rename = _resource_name_from_json(data["rename"])

        return cls(name=name, devices=devices, replicas=replicas, rename=rename)

    def to_json(self):
        """Return a JSON-ready dict; 'rename' is left out when empty."""
        out = {"name": str(self.name)}
        if self.rename:
            out["rename"] = str(self.rename)
        out["devices"] = self.devices.to_json()
        out["replicas"] = self.replicas
        return out


@dataclass
class ReplicatedResources:
    """Generic options for replicating devices."""

    rename_by_default: bool = False
    fail_requests_greater_than_one: bool = False
    resources: list = field(default_factory=list)

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON; at least one resource is required."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"replicated resources must be an object, not {type(data).__name__}"
            )

        rename_by_default = _json_bool(data.get("renameByDefault"), "renameByDefault")
        fail_requests = _json_bool(
            data.get("failRequestsGreaterThanOne"), "failRequestsGreaterThanOne"
        )

        if "resources" not in data:
            raise ConfigError("no resources specified")
        raw = data["resources"]
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise ConfigError(f"resources must be a list: {raw!r}")
        resources = [ReplicatedResource.from_json(item) for item in raw]
        if not resources:
            raise ConfigError("no resources specified")

        if rename_by_default:
            for resource in resources:
                if not resource.rename:
                    resource.rename = resource.name.default_shared_rename()

        return cls(
            rename_by_default=rename_by_default,
            fail_requests_greater_than_one=fail_requests,
            resources=resources,
        )

    def to_json(self):
        """Return a JSON-ready dict, leaving out empty fields."""
        out = {}
        if self.rename_by_default:
            out["renameByDefault"] = True
        if self.fail_requests_greater_than_one:
            out["failRequestsGreaterThanOne"] = True
        if self.resources:
            out["resources"] = [resource.to_json() for resource in self.resources]
        return out

    def is_replicated(self):
        """Return whether any resource has more than one replica."""
        return any(resource.replicas > 1 for resource in self.resources)

    def disable_resource_renaming(self, logger, section):
        """Reset renames and device selections to defaults, warning through logger."""
        sets_non_default_rename = False
        sets_devices = False
        for resource in self.resources:
            default_rename = resource.name.default_shared_rename()
            if not self.rename_by_default and resource.rename:
                sets_non_default_rename = True
                resource.rename = ResourceName("")
            if self.rename_by_default and resource.rename != default_rename:
                sets_non_default_rename = True
                resource.rename = default_rename
            if not resource.devices.all:
                sets_devices = True
                resource.devices = ReplicatedDevices(all=True)
        if sets_non_default_rename:
            logger.warning(
                "Setting the 'rename' field in sharing.%s.resources is not yet "
                "supported in the config. Ignoring...",
                section,
            )
        if sets_devices:
            logger.warning(
                "Customizing the 'devices' field in sharing.%s.resources is not yet "
                "supported in the config. Ignoring...",
                section,
            )