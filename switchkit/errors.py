"""Exception hierarchy shared by the switchkit helpers."""
from __future__ import annotations


class SwitchKitError(RuntimeError):
    """Base class for every error raised by switchkit."""


class ConfigError(SwitchKitError):
    """Raised when the settings file cannot be located or parsed."""


class ValidationError(SwitchKitError, ValueError):
    """Raised when an option, rule field or file path is invalid."""


class HaystackNotFoundError(SwitchKitError, FileNotFoundError):
    """Raised when a scan root does not exist and the caller asked for an error."""


class DatasetError(SwitchKitError):
    """Raised when a host dataset cannot be found or decoded."""
