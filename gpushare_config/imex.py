"""Configuration for IMEX channels injected into containers."""

from collections.abc import Mapping
from dataclasses import dataclass

from .consts import ConfigError

IMEX_CHANNEL_ENV_VAR = "NVIDIA_IMEX_CHANNELS"


class InvalidImexConfigError(ConfigError):
    """Raised when the IMEX configuration is not valid."""


def assert_channel_ids_valid(ids):
    """Raise InvalidImexConfigError unless ids is empty or exactly [0]."""
    if not ids or list(ids) == [0]:
        return
    raise InvalidImexConfigError(
        f"invalid IMEX config: channelIDs must be [] or [0]; found {list(ids)}"
    )


@dataclass
class Imex:
    """Options for fabric-attached devices."""

    channel_ids: list | None = None
    required: bool = False

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON; channel IDs are not validated here."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(f"imex config must be an object, not {type(data).__name__}")

        raw_ids = data.get("channelIDs")
        channel_ids = None
        if raw_ids is not None:
            if not isinstance(raw_ids, list):
                raise ConfigError(f"channelIDs must be a list: {raw_ids!r}")
            for item in raw_ids:
                if isinstance(item, bool) or not isinstance(item, int):
                    raise ConfigError(f"channelIDs must hold integers: {item!r}")
            channel_ids = list(raw_ids)

        required = data.get("required")
        if required is None:
            required = False
        elif not isinstance(required, bool):
            raise ConfigError(f"required must be a boolean: {required!r}")

        return cls(channel_ids=channel_ids, required=required)

    def to_json(self):
        """Return a JSON-ready dict, leaving out empty fields."""
        out = {}
        if self.channel_ids:
            out["channelIDs"] = list(self.channel_ids)
        if self.required:
            out["required"] = True
        return out