"""Database plugin: registers connection helpers on a FastAPI/Starlette app."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Mapping

from starlette.applications import Starlette

from . import __version__
from .config import ConnectionSpec, DatabaseConfig, parse_config
from .connections import Connector, SqlAlchemyConnector
from .errors import ConfigurationError, DatabaseConnectionError
from .helpers import helpers_for
from .slots import Clock, ConnectionSlot

LOG = logging.getLogger(__name__)

ConnectorFactory = Callable[[ConnectionSpec], Connector]
PluginConfig = Mapping[str, Any] | DatabaseConfig | None


class DatabasePlugin:
    """Opens configured databases and exposes each one as a named helper.

    The whole configuration is validated before anything is opened, so a bad
    entry never leaves a half-registered app behind. A connection failure on
    one entry does not stop the remaining entries from registering; the
    failures are raised together once every entry has been attempted.
    """

    name = "database"
    version = __version__

    def __init__(
        self,
        *,
        connector_factory: ConnectorFactory = SqlAlchemyConnector,
        clock: Clock = time.monotonic,
    ) -> None:
        self._connector_factory = connector_factory
        self._clock = clock
        self._app: Starlette | None = None
        self._slots: dict[str, ConnectionSlot] = {}
        self._connectors: dict[str, Connector] = {}

    def register(self, app: Starlette, conf: PluginConfig = None) -> list[str]:
        """Install one helper per configured database; returns their names."""

        config = conf if isinstance(conf, DatabaseConfig) else parse_config(conf)
        registry = helpers_for(app)
        taken = [name for name in config.names if name in registry]
        if taken:
            raise ConfigurationError(f"helper(s) already registered: {', '.join(taken)}")

        self._app = app
        failures: dict[str, DatabaseConnectionError] = {}
        for spec in config.specs():
            try:
                self._register_spec(spec)
            except DatabaseConnectionError as exc:
                LOG.error(
                    "Database helper registration failed",
                    extra={"helper": spec.helper, "dsn": spec.redacted(), "error": str(exc)},
                )
                failures[spec.helper] = exc
        if failures:
            names = ", ".join(failures)
            raise DatabaseConnectionError(
                f"Failed to connect to database(s): {names}"
            ) from next(iter(failures.values()))
        return list(config.names)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._slots)

    def slot(self, name: str) -> ConnectionSlot:
        """Return the slot backing a helper (diagnostics and tests)."""

        return self._slots[name]

    def close(self) -> None:
        """Close every handle and remove the helpers from the app."""

        registry = helpers_for(self._app) if self._app is not None else None
        for name, slot in list(self._slots.items()):
            if registry is not None:
                registry.unregister(name)
            try:
                slot.close()
            except Exception:
                LOG.exception("Closing database helper failed", extra={"helper": name})
            try:
                self._connectors[name].dispose()
            except Exception:
                LOG.exception("Disposing database connector failed", extra={"helper": name})
            LOG.debug("Closed database helper", extra={"helper": name})
        self._slots.clear()
        self._connectors.clear()

    async def on_shutdown(self) -> None:
        self.close()

    def lifespan(self, conf: PluginConfig = None) -> Callable[[Starlette], Any]:
        """Build a lifespan handler that registers on startup and closes on shutdown.

        ``FastAPI(lifespan=DatabasePlugin().lifespan({"dsn": ...}))``
        """

        @asynccontextmanager
        async def _lifespan(app: Starlette) -> AsyncIterator[None]:
            try:
                self.register(app, conf)
                yield
            finally:
                await self.on_shutdown()

        return _lifespan

    def _register_spec(self, spec: ConnectionSpec) -> None:
        connector = self._connector_factory(spec)
        try:
            slot = ConnectionSlot.open(
                spec.helper,
                connector,
                check_interval=spec.check_interval,
                clock=self._clock,
            )
        except Exception:
            connector.dispose()
            raise
        assert self._app is not None
        helpers_for(self._app).register(spec.helper, slot.get)
        self._slots[spec.helper] = slot
        self._connectors[spec.helper] = connector
        LOG.info(
            "Registered database helper",
            extra={
                "helper": spec.helper,
                "dsn": spec.redacted(),
                "check_interval": spec.check_interval,
            },
        )


def install(app: Starlette, conf: PluginConfig = None, **kwargs: Any) -> DatabasePlugin:
    """Create a plugin, register ``conf`` on ``app`` and return the plugin."""

    plugin = DatabasePlugin(**kwargs)
    plugin.register(app, conf)
    return plugin


__all__ = ["ConnectorFactory", "DatabasePlugin", "PluginConfig", "install"]
