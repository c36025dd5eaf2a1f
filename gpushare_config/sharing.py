"""The sharing section of a config: time-slicing and MPS replication."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from .consts import ConfigError
from .replicas import ReplicatedResources


class SharingStrategy(str, Enum):
    """The active way in which devices are shared."""

    MPS = "mps"
    NONE = "none"
    TIME_SLICING = "time-slicing"


@dataclass
class Sharing:
    """The set of supported sharing strategies and their resources."""

    time_slicing: ReplicatedResources = field(default_factory=ReplicatedResources)
    mps: ReplicatedResources | None = None

    def sharing_strategy(self):
        """Return the active sharing strategy."""
        if self.mps is not None and self.mps.is_replicated():
            return SharingStrategy.MPS
        if self.time_slicing.is_replicated():
            return SharingStrategy.TIME_SLICING
        return SharingStrategy.NONE

    def replicated_resources(self):
        """Return the resources of MPS when configured, otherwise of time-slicing."""
        if self.mps is not None:
            return self.mps
        return self.time_slicing

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON with optional 'timeSlicing' and 'mps' sections."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(f"sharing must be an object, not {type(data).__name__}")
        time_slicing = ReplicatedResources()
        if "timeSlicing" in data:
            time_slicing = ReplicatedResources.from_json(data["timeSlicing"])
        mps = None
        if data.get("mps") is not None:
            mps = ReplicatedResources.from_json(data["mps"])
        return cls(time_slicing=time_slicing, mps=mps)

    def to_json(self):
        """Return a JSON-ready dict; 'mps' is left out when not configured."""
        out = {"timeSlicing": self.time_slicing.to_json()}
        if self.mps is not None:
            out["mps"] = self.mps.to_json()
        return out