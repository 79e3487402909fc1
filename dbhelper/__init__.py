"""Named database connection helpers for FastAPI/Starlette applications."""

from __future__ import annotations

__version__ = "0.1.0"

from .config import ConnectionSpec, DatabaseConfig, load_config, parse_config  # noqa: E402
from .connections import Connector, SqlAlchemyConnector  # noqa: E402
from .errors import (  # noqa: E402
    ConfigurationError,
    DatabaseConnectionError,
    DatabasePluginError,
    HelperError,
)
from .helpers import HelperRegistry, helper, helpers_for  # noqa: E402
from .plugin import DatabasePlugin, install  # noqa: E402
from .slots import ConnectionSlot  # noqa: E402

__all__ = [
    "ConfigurationError",
    "ConnectionSlot",
    "ConnectionSpec",
    "Connector",
    "DatabaseConfig",
    "DatabaseConnectionError",
    "DatabasePlugin",
    "DatabasePluginError",
    "HelperError",
    "HelperRegistry",
    "SqlAlchemyConnector",
    "__version__",
    "helper",
    "helpers_for",
    "install",
    "load_config",
    "parse_config",
]
