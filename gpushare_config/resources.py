"""Resource names, wildcard patterns and the resources section of a config."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from .consts import (
    DEFAULT_SHARED_RESOURCE_NAME_SUFFIX,
    MAX_RESOURCE_NAME_LENGTH,
    RESOURCE_NAME_PREFIX,
    ConfigError,
)

_DNS_SUBDOMAIN_MAX_LENGTH = 253
_DNS_LABEL = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS_SUBDOMAIN = re.compile(rf"{_DNS_LABEL}(\.{_DNS_LABEL})*")
_DNS_FORMAT_MESSAGE = (
    "a lowercase RFC 1123 subdomain must consist of lower case alphanumeric "
    "characters, '-' or '.', and must start and end with an alphanumeric character"
)


def _dns_subdomain_errors(name):
    errors = []
    if len(name) > _DNS_SUBDOMAIN_MAX_LENGTH:
        errors.append(f"must be no more than {_DNS_SUBDOMAIN_MAX_LENGTH} characters")
    if not _DNS_SUBDOMAIN.fullmatch(name):
        errors.append(_DNS_FORMAT_MESSAGE)
    return errors


def is_dns_subdomain(name):
    """Return whether name is a valid RFC 1123 DNS subdomain."""
    return not _dns_subdomain_errors(name)


class ResourceName(str):
    """A fully-qualified Kubernetes extended resource name."""

    @classmethod
    def create(cls, name):
        """Qualify name with the standard prefix and validate it."""
        if not name.startswith(RESOURCE_NAME_PREFIX + "/"):
            name = f"{RESOURCE_NAME_PREFIX}/{name}"
        if len(name) > MAX_RESOURCE_NAME_LENGTH:
            raise ConfigError(
                f"fully-qualified resource name must be {MAX_RESOURCE_NAME_LENGTH} "
                f"characters or less: {name}"
            )
        _, short = cls(name).split()
        errors = _dns_subdomain_errors(short)
        if errors:
            raise ConfigError(f"incorrect format for resource name '{name}': {errors}")
        return cls(name)

    def split(self):
        """Split into (prefix, name); the prefix is empty when there is no '/'."""
        prefix, sep, rest = self.partition("/")
        if not sep:
            return "", str(self)
        return prefix, rest

    def default_shared_rename(self):
        """Return the name used for this resource when it is shared."""
        return ResourceName(str(self) + DEFAULT_SHARED_RESOURCE_NAME_SUFFIX)


class ResourcePattern(str):
    """A wildcard pattern in which '*' matches any run of characters."""

    def _regex(self):
        return ".*".join(re.escape(literal) for literal in self.split("*"))

    def matches(self, text):
        """Return whether the pattern matches anywhere in text."""
        return re.search(self._regex(), text) is not None


def _json_string(value, what):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{what} must be a string: {value!r}")
    return value


@dataclass
class Resource:
    """A pattern paired with the resource name it maps to."""

    pattern: ResourcePattern
    name: ResourceName

    @classmethod
    def create(cls, pattern, name):
        """Build a resource, validating the name."""
        try:
            resource_name = ResourceName.create(name)
        except ConfigError as err:
            raise ConfigError(f"invalid resource name: {err}") from err
        return cls(ResourcePattern(pattern), resource_name)

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON with 'pattern' and 'name' fields."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"resource must be an object, not {type(data).__name__}")
        if "pattern" not in data:
            raise ConfigError("resources must have a 'pattern' field set")
        if "name" not in data:
            raise ConfigError("resources must have a 'name' field set")
        pattern = ResourcePattern(_json_string(data["pattern"], "pattern"))
        name = ResourceName.create(_json_string(data["name"], "name"))
        return cls(pattern, name)

    def to_json(self):
        """Return a JSON-ready dict."""
        return {"pattern": str(self.pattern), "name": str(self.name)}


def _resource_list(value, what):
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list: {value!r}")
    return [Resource.from_json(item) for item in value]


@dataclass
class Resources:
    """Resources for full GPUs and MIG devices."""

    gpus: list = field(default_factory=list)
    migs: list = field(default_factory=list)

    def add_gpu_resource(self, pattern, name):
        """Append a full-GPU resource."""
        self.gpus.append(Resource.create(pattern, name))

    def add_mig_resource(self, pattern, name):
        """Append a MIG resource."""
        self.migs.append(Resource.create(pattern, name))

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON with 'gpus' and 'mig' lists."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(f"resources must be an object, not {type(data).__name__}")
        return cls(
            gpus=_resource_list(data.get("gpus"), "gpus"),
            migs=_resource_list(data.get("mig"), "mig"),
        )

    def to_json(self):
        """Return a JSON-ready dict; 'mig' is left out when empty."""
        out = {"gpus": [r.to_json() for r in self.gpus]}
        if self.migs:
            out["mig"] = [r.to_json() for r in self.migs]
        return out