"""The versioned configuration file and its assembly from command-line flags."""

from collections.abc import Mapping
from dataclasses import dataclass, field

import yaml

from .consts import ConfigError
from .flags import Flags
from .imex import Imex
from .resources import Resources
from .sharing import Sharing

VERSION = "v1"


@dataclass
class Config:
    """A versioned configuration."""

    version: str = VERSION
    flags: Flags = field(default_factory=Flags)
    resources: Resources = field(default_factory=Resources)
    sharing: Sharing = field(default_factory=Sharing)
    imex: Imex = field(default_factory=Imex)

    @classmethod
    def from_json(cls, data):
        """Build from decoded JSON or YAML; a missing version means the current one."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"config must be an object, not {type(data).__name__}")
        version = data.get("version") or VERSION
        if not isinstance(version, str):
            raise ConfigError(f"version must be a string: {version!r}")
        if version != VERSION:
            raise ConfigError(f"unknown version: {version}")
        return cls(
            version=version,
            flags=Flags.from_json(data.get("flags")),
            resources=Resources.from_json(data.get("resources")),
            sharing=Sharing.from_json(data.get("sharing")),
            imex=Imex.from_json(data.get("imex")),
        )

    def to_json(self):
        """Return a JSON-ready dict."""
        return {
            "version": self.version,
            "flags": self.flags.to_json(),
            "resources": self.resources.to_json(),
            "sharing": self.sharing.to_json(),
            "imex": self.imex.to_json(),
        }


def parse_config_from(stream):
    """Parse a YAML or JSON config from a text stream."""
    try:
        text = stream.read()
    except (OSError, UnicodeDecodeError) as err:
        raise ConfigError(f"read error: {err}") from err
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise ConfigError(f"unmarshal error: {err}") from err
    return Config.from_json(data)


def parse_config(path):
    """Parse the config file at path."""
    try:
        stream = open(path, encoding="utf-8")
    except OSError as err:
        raise ConfigError(f"error opening config file: {err}") from err
    with stream:
        try:
            return parse_config_from(stream)
        except ConfigError as err:
            raise ConfigError(f"error parsing config file: {err}") from err


def new_config(context, flag_names):
    """Build a config from a config file and command-line flags.

    Values come, in order of precedence, from explicitly set flags, the config
    file named by the 'config-file' flag, and flag defaults.
    """
    config = Config()
    config_file = context.get("config-file")
    if config_file:
        try:
            config = parse_config(config_file)
        except ConfigError as err:
            raise ConfigError(f"unable to parse config file: {err}") from err

    config.flags.update_from_cli_flags(context, flag_names)
    if context.is_set("imex-channel-ids"):
        config.imex.channel_ids = [int(i) for i in context.get("imex-channel-ids") or []]
    if context.is_set("imex-required"):
        config.imex.required = bool(context.get("imex-required"))

    # Device nodes default to living under the driver root.
    if not config.flags.nvidia_dev_root:
        config.flags.nvidia_dev_root = config.flags.nvidia_driver_root

    if config.sharing.mps is not None:
        config.sharing.mps.fail_requests_greater_than_one = True

    return config


def disable_resource_naming_in_config(logger, config):
    """Drop custom resource names and device selections, warning through logger."""
    if config.resources.gpus or config.resources.migs:
        logger.warning(
            "Customizing the 'resources' field is not yet supported in the config. Ignoring..."
        )
    config.resources.gpus = []
    config.resources.migs = []

    config.sharing.time_slicing.disable_resource_renaming(logger, "timeSlicing")
    if config.sharing.mps is not None:
        config.sharing.mps.disable_resource_renaming(logger, "mps")