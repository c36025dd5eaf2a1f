"""Shared constants, enumerations and the base error for configuration handling."""

from enum import Enum

RESOURCE_NAME_PREFIX = "nvidia.com"
DEFAULT_SHARED_RESOURCE_NAME_SUFFIX = ".shared"
MAX_RESOURCE_NAME_LENGTH = 63

DEVICE_LIST_STRATEGY_ENVVAR = "envvar"
DEVICE_LIST_STRATEGY_VOLUME_MOUNTS = "volume-mounts"
DEVICE_LIST_STRATEGY_CDI_ANNOTATIONS = "cdi-annotations"
DEVICE_LIST_STRATEGY_CDI_CRI = "cdi-cri"

DEFAULT_CDI_ANNOTATION_PREFIX = "cdi.k8s.io/"
DEFAULT_NVIDIA_CTK_PATH = "/usr/bin/nvidia-ctk"
DEFAULT_CONTAINER_DRIVER_ROOT = "/driver-root"


class ConfigError(ValueError):
    """Raised when configuration data is malformed or invalid."""


class MigStrategy(str, Enum):
    """Strategies for exposing MIG devices."""

    NONE = "none"
    SINGLE = "single"
    MIXED = "mixed"


class DeviceIDStrategy(str, Enum):
    """Strategies for identifying devices passed to containers."""

    UUID = "uuid"
    INDEX = "index"