"""Named callbacks bound to connection lifecycle points.

Servers address client functions by name, so functions are registered in
a name → callable table and bindings store only the name. Names are
resolved again on every invocation; re-registering a name swaps the
function for every existing binding.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from pyufo.exceptions import UfoUnknownCallbackError

if TYPE_CHECKING:
    from pyufo.connection import ConnectionRegistry

_logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class CallbackBinding:
    """A function name plus arguments prefixed to those supplied at invocation."""

    func: str
    args: tuple[Any, ...] = ()


def _as_args(args: Any) -> tuple[Any, ...]:
    if args is None:
        return ()
    if isinstance(args, Sequence) and not isinstance(args, (str, bytes, bytearray)):
        return tuple(args)
    return (args,)


class CallbackRegistry:
    def __init__(self, connections: ConnectionRegistry) -> None:
        self._connections = connections
        self.functions: dict[str, Callable[..., Any]] = {}

    def register(self, name: str | None = None) -> Callable[[F], F]:
        """Decorator adding a function to the table, under its own name by default."""

        def decorator(func: F) -> F:
            self.functions[name or func.__name__] = func
            return func

        return decorator

    def resolve(self, name: str | None) -> Callable[..., Any]:
        func = self.functions.get(name) if name is not None else None
        if not callable(func):
            raise UfoUnknownCallbackError(str(name))
        return func

    def add(self, connection_id: str, point: str, func_name: str, args: Any = None) -> None:
        """Append a binding at *point*; duplicates are kept in insertion order."""
        connection = self._connections.ensure(connection_id)
        try:
            self.resolve(func_name)
        except UfoUnknownCallbackError:
            _logger.warning("Unknown callback function: %s", func_name)
            return
        connection.callbacks.setdefault(point, []).append(CallbackBinding(func_name, _as_args(args)))

    def remove(self, connection_id: str, point: str, func_name: str) -> None:
        """Remove the first binding at *point* naming *func_name*."""
        connection = self._connections.ensure(connection_id, create=False)
        if connection is None:
            return
        bindings = connection.callbacks.get(point)
        if not bindings:
            return
        for index, binding in enumerate(bindings):
            if binding.func == func_name:
                del bindings[index]
                return

    def clear(self, connection_id: str) -> None:
        connection = self._connections.ensure(connection_id, create=False)
        if connection is not None:
            connection.callbacks = {}

    def bindings(self, connection_id: str, point: str) -> list[CallbackBinding]:
        connection = self._connections.ensure(connection_id, create=False)
        if connection is None:
            return []
        return list(connection.callbacks.get(point, ()))

    def invoke(self, connection_id: str, point: str, extra_args: Sequence[Any] | None = None) -> None:
        """Call every binding at (*connection_id*, *point*) in registration order."""
        extra = tuple(extra_args or ())
        for binding in self.bindings(connection_id, point):
            self.call(binding.func, binding.args + extra)

    def call(self, func_name: str | None, args: Any = None) -> None:
        """Call a registered function by name.

        Unknown names are skipped. Exceptions raised by the function are
        logged and do not propagate.
        """
        try:
            func = self.resolve(func_name)
        except UfoUnknownCallbackError:
            _logger.debug("Skipping call to unregistered function %s", func_name)
            return
        try:
            func(*_as_args(args))
        except Exception:
            _logger.warning("Callback function %s failed", func_name, exc_info=True)
