"""Versioned configuration model for GPU device plugins and feature discovery."""

__version__ = "0.17.0"
__all__ = [
    "config",
    "consts",
    "duration",
    "flags",
    "imex",
    "replicas",
    "resources",
    "sharing",
    "strategy",
]