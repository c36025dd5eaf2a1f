"""The set of device list strategies enabled for passing devices to containers."""

from dataclasses import dataclass, field

from .consts import (
    DEVICE_LIST_STRATEGY_CDI_ANNOTATIONS,
    DEVICE_LIST_STRATEGY_CDI_CRI,
    DEVICE_LIST_STRATEGY_ENVVAR,
    DEVICE_LIST_STRATEGY_VOLUME_MOUNTS,
    ConfigError,
)

KNOWN_DEVICE_LIST_STRATEGIES = (
    DEVICE_LIST_STRATEGY_ENVVAR,
    DEVICE_LIST_STRATEGY_VOLUME_MOUNTS,
    DEVICE_LIST_STRATEGY_CDI_ANNOTATIONS,
    DEVICE_LIST_STRATEGY_CDI_CRI,
)

_CDI_PREFIX = "cdi-"


@dataclass(frozen=True)
class DeviceListStrategies:
    """Which device list strategies are enabled."""

    enabled: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_names(cls, strategies):
        """Build from strategy names, rejecting any unknown name."""
        names = list(strategies)
        for name in names:
            if name not in KNOWN_DEVICE_LIST_STRATEGIES:
                raise ConfigError(f"invalid strategy: {name}")
        return cls(frozenset(names))

    def includes(self, strategy):
        """Return whether the given strategy is enabled."""
        return strategy in self.enabled

    def any_cdi_enabled(self):
        """Return whether any enabled strategy needs CDI."""
        return any(name.startswith(_CDI_PREFIX) for name in self.enabled)

    def all_cdi_enabled(self):
        """Return whether every enabled strategy needs CDI."""
        return all(name.startswith(_CDI_PREFIX) for name in self.enabled)