"""Named accessor registry attached to the host application."""

from __future__ import annotations

from typing import Any, Callable

from starlette.applications import Starlette
from starlette.datastructures import State
from starlette.requests import Request

from .errors import HelperError

Accessor = Callable[[], Any]

STATE_KEY = "helpers"


class HelperRegistry:
    """Collects zero-argument accessors exposed to request handlers.

    When bound to an application's ``State`` every accessor is mirrored as an
    attribute, so handlers can call ``request.app.state.db()`` directly.
    """

    def __init__(self, state: State | None = None) -> None:
        self._state = state
        self._helpers: dict[str, Accessor] = {}

    def register(self, name: str, accessor: Accessor) -> None:
        """Register an accessor under ``name``."""

        if name == STATE_KEY:
            raise HelperError(f"Helper name '{name}' is reserved")
        if name in self._helpers:
            raise HelperError(f"Helper '{name}' is already registered")
        if not callable(accessor):
            raise HelperError(f"Helper '{name}' is not callable")
        self._helpers[name] = accessor
        if self._state is not None:
            setattr(self._state, name, accessor)

    def unregister(self, name: str) -> None:
        self._helpers.pop(name, None)
        if self._state is not None and hasattr(self._state, name):
            delattr(self._state, name)

    def get(self, name: str) -> Accessor:
        try:
            return self._helpers[name]
        except KeyError:
            raise HelperError(f"Unknown helper '{name}'") from None

    def call(self, name: str) -> Any:
        """Invoke the accessor registered under ``name``."""

        return self.get(name)()

    def names(self) -> list[str]:
        return list(self._helpers)

    def __contains__(self, name: object) -> bool:
        return name in self._helpers


def helpers_for(app: Starlette) -> HelperRegistry:
    """Return the app's registry, creating it on first use."""

    registry = getattr(app.state, STATE_KEY, None)
    if registry is None:
        registry = HelperRegistry(app.state)
        setattr(app.state, STATE_KEY, registry)
    return registry


def helper(name: str) -> Callable[[Request], Any]:
    """Build a dependency resolving the named helper for the current app.

    Usage: ``def handler(db=Depends(helper("db"))): ...``
    """

    def _dependency(request: Request) -> Any:
        return helpers_for(request.app).call(name)

    _dependency.__name__ = f"{name}_helper"
    return _dependency


__all__ = ["Accessor", "HelperRegistry", "helper", "helpers_for"]
