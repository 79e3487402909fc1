"""Connectors that open and probe database handles."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from .config import ConnectionSpec
from .errors import DatabaseConnectionError

LOG = logging.getLogger(__name__)


@runtime_checkable
class Connector(Protocol):
    """Protocol implemented by connectors."""

    def connect(self) -> Any:
        """Open a brand-new handle."""

    def ping(self, handle: Any) -> bool:
        """Return True if the handle still answers a round trip."""

    def dispose(self) -> None:
        """Release anything held by the connector itself."""


class SqlAlchemyConnector:
    """Connector that opens SQLAlchemy Core connections for a spec.

    The engine uses ``NullPool`` so every ``connect()`` opens a fresh DB-API
    connection; the engine is only a factory here. Handles run in autocommit
    mode unless the spec asks for another ``isolation_level`` (``None`` keeps
    the driver default).
    """

    def __init__(self, spec: ConnectionSpec) -> None:
        self._spec = spec
        engine_kwargs: dict[str, Any] = {}
        if spec.isolation_level is not None:
            engine_kwargs["isolation_level"] = spec.isolation_level
        self._engine: Engine = create_engine(
            spec.url(),
            poolclass=NullPool,
            connect_args=dict(spec.options),
            **engine_kwargs,
        )

    @property
    def spec(self) -> ConnectionSpec:
        return self._spec

    @property
    def engine(self) -> Engine:
        return self._engine

    def connect(self) -> Connection:
        try:
            handle = self._engine.connect()
        except SQLAlchemyError as exc:
            raise DatabaseConnectionError(
                f"Failed to connect to database '{self._spec.helper}': {exc}"
            ) from exc
        LOG.debug(
            "Opened database handle",
            extra={"helper": self._spec.helper, "dsn": self._spec.redacted()},
        )
        if self._spec.on_connect is not None:
            try:
                self._spec.on_connect(handle)
            except Exception:
                handle.close()
                raise
        return handle

    def ping(self, handle: Connection) -> bool:
        if handle.closed or handle.invalidated:
            return False
        try:
            dbapi_connection = handle.connection.dbapi_connection
            if dbapi_connection is None:
                return False
            return bool(self._engine.dialect.do_ping(dbapi_connection))
        except Exception as exc:
            LOG.warning(
                "Liveness probe failed",
                extra={"helper": self._spec.helper, "error": str(exc)},
            )
            return False

    def dispose(self) -> None:
        self._engine.dispose()


__all__ = ["Connector", "SqlAlchemyConnector"]
