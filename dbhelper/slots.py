"""Per-helper connection slot with lazy liveness checks."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from .connections import Connector

LOG = logging.getLogger(__name__)

Clock = Callable[[], float]


class ConnectionSlot:
    """Holds the current handle for one helper and revalidates it on demand.

    ``get()`` is the accessor installed into the host app. Once
    ``check_interval`` seconds have passed since the last check it probes the
    handle and swaps in a fresh one if the probe fails.
    """

    def __init__(
        self,
        name: str,
        connector: Connector,
        *,
        check_interval: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self._name = name
        self._connector = connector
        self._check_interval = check_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._handle: Any = None
        self._last_checked: float | None = None
        self._reconnects = 0

    @classmethod
    def open(
        cls,
        name: str,
        connector: Connector,
        *,
        check_interval: float,
        clock: Clock = time.monotonic,
    ) -> "ConnectionSlot":
        """Create a slot and open its initial handle."""

        slot = cls(name, connector, check_interval=check_interval, clock=clock)
        slot._handle = connector.connect()
        slot._last_checked = clock()
        return slot

    @property
    def name(self) -> str:
        return self._name

    @property
    def handle(self) -> Any:
        """Current handle without any liveness check."""

        return self._handle

    @property
    def last_checked(self) -> float | None:
        return self._last_checked

    @property
    def check_interval(self) -> float:
        return self._check_interval

    @property
    def reconnects(self) -> int:
        return self._reconnects

    def get(self) -> Any:
        """Return a handle, reconnecting first if a due probe fails."""

        with self._lock:
            now = self._clock()
            if self._is_due(now):
                self._last_checked = now
                if self._handle is None or not self._connector.ping(self._handle):
                    self._reconnect()
            return self._handle

    def close(self) -> None:
        """Close the current handle."""

        with self._lock:
            handle, self._handle = self._handle, None
            self._last_checked = None
        if handle is not None:
            handle.close()

    def _is_due(self, now: float) -> bool:
        if self._last_checked is None:
            return True
        return now - self._last_checked >= self._check_interval

    def _reconnect(self) -> None:
        LOG.info("Reconnecting stale database handle", extra={"helper": self._name})
        try:
            fresh = self._connector.connect()
        except Exception:
            # force a re-check on the next call
            self._last_checked = None
            raise
        stale, self._handle = self._handle, fresh
        self._reconnects += 1
        if stale is not None:
            try:
                stale.close()
            except Exception:  # pragma: no cover - best effort cleanup
                LOG.debug("Closing stale handle failed", extra={"helper": self._name})


__all__ = ["Clock", "ConnectionSlot"]
