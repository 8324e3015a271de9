"""Custom exception types for the device property stores."""

from __future__ import annotations


class DevPropsError(Exception):
    """Base class for all devprops exceptions."""


class PropertyParseError(DevPropsError, ValueError):
    """Raised when a property line does not have the expected shape."""


class ConfigurationError(DevPropsError):
    """Raised when a configuration file cannot be processed."""
