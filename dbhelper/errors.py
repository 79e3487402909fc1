"""Exceptions raised by the database plugin."""

from __future__ import annotations


class DatabasePluginError(RuntimeError):
    """Base error for plugin failures."""


class ConfigurationError(DatabasePluginError):
    """Raised when a connection spec is missing or invalid."""


class DatabaseConnectionError(DatabasePluginError):
    """Raised when a connection cannot be opened or reopened."""


class HelperError(DatabasePluginError):
    """Raised on duplicate or unknown helper names."""


__all__ = [
    "ConfigurationError",
    "DatabaseConnectionError",
    "DatabasePluginError",
    "HelperError",
]
