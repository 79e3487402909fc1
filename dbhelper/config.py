"""Connection spec models and configuration loading helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping

import tomllib

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from .errors import ConfigurationError

DEFAULT_HELPER = "db"
DEFAULT_CHECK_INTERVAL = 30
DEFAULT_ISOLATION_LEVEL = "AUTOCOMMIT"

PostConnectCallback = Callable[[Any], None]


class ConnectionSpec(BaseModel):
    """Everything needed to open (and reopen) one database handle."""

    model_config = ConfigDict(extra="forbid")

    dsn: str
    username: str | None = None
    password: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)
    helper: str = DEFAULT_HELPER
    check_interval: int = Field(default=DEFAULT_CHECK_INTERVAL, ge=0)
    isolation_level: str | None = DEFAULT_ISOLATION_LEVEL
    on_connect: PostConnectCallback | None = None

    @field_validator("dsn")
    @classmethod
    def _check_dsn(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("dsn must not be empty")
        try:
            make_url(value)
        except ArgumentError as exc:
            raise ValueError(f"could not parse dsn: {exc}") from exc
        return value

    @field_validator("helper")
    @classmethod
    def _check_helper(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"helper name '{value}' is not a valid identifier")
        return value

    def url(self) -> URL:
        """Return the SQLAlchemy URL with credentials applied."""

        url = make_url(self.dsn)
        if self.username is not None:
            url = url.set(username=self.username)
        if self.password is not None:
            url = url.set(password=self.password)
        return url

    def redacted(self) -> str:
        """DSN safe for log output."""

        return self.url().render_as_string(hide_password=True)


class DatabaseConfig(BaseModel):
    """Validated set of connection specs keyed by helper name."""

    databases: dict[str, ConnectionSpec]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.databases)

    def specs(self) -> tuple[ConnectionSpec, ...]:
        """Specs in configuration order."""

        return tuple(self.databases.values())


def parse_config(conf: Mapping[str, Any] | None) -> DatabaseConfig:
    """Validate a plugin configuration block.

    ``conf`` is either a single spec (``{"dsn": ..., "helper": ...}``) or a
    mapping with a ``databases`` table whose keys become the default helper
    names of the nested specs.
    """

    conf = dict(conf or {})
    if "databases" not in conf:
        if not conf.get("helper"):
            conf["helper"] = DEFAULT_HELPER
        spec = _build_spec(conf["helper"], conf)
        return DatabaseConfig(databases={spec.helper: spec})

    nested = conf.pop("databases")
    if conf:
        extra = ", ".join(sorted(conf))
        raise ConfigurationError(f"unexpected keys next to 'databases': {extra}")
    if not isinstance(nested, Mapping) or not nested:
        raise ConfigurationError("'databases' must be a non-empty mapping")

    specs: dict[str, ConnectionSpec] = {}
    for key, entry in nested.items():
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"database '{key}': entry must be a mapping")
        data = dict(entry)
        if not data.get("helper"):
            data["helper"] = key
        spec = _build_spec(str(key), data)
        if spec.helper in specs:
            raise ConfigurationError(f"database '{key}': helper '{spec.helper}' is already configured")
        specs[spec.helper] = spec
    return DatabaseConfig(databases=specs)


def load_config(path: Path | str) -> DatabaseConfig:
    """Load a configuration block from a TOML file.

    A ``[database]`` table holds a single spec; ``[databases.<name>]`` tables
    hold several.
    """

    path = Path(path)
    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"could not parse {path}: {exc}") from exc

    if "databases" in raw:
        return parse_config({"databases": raw["databases"]})
    section = raw.get("database")
    if not isinstance(section, dict):
        raise ConfigurationError(f"{path}: expected a [database] or [databases.<name>] table")
    return parse_config(section)


def _build_spec(name: str, data: Mapping[str, Any]) -> ConnectionSpec:
    if not data.get("dsn"):
        raise ConfigurationError(f"database '{name}': missing dsn parameter")
    try:
        return ConnectionSpec.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigurationError(f"database '{name}': {exc}") from exc


__all__ = [
    "ConnectionSpec",
    "DatabaseConfig",
    "DEFAULT_CHECK_INTERVAL",
    "DEFAULT_HELPER",
    "DEFAULT_ISOLATION_LEVEL",
    "PostConnectCallback",
    "load_config",
    "parse_config",
]
