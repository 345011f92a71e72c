"""Per-id connection state and the registry holding it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from enum import StrEnum
from typing import Any

from pyufo._transport import UploadProgress
from pyufo.callbacks import CallbackBinding

_logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SCHEDULED = "scheduled"


class Connection:
    """One logical connection: target URL, poll cadence, request and timer handles.

    Only the most recent request is owned. Starting a new request replaces
    the handle without cancelling the previous task, so a superseded
    request that still completes is handled like any other.

    ``stop_count`` grows with every :meth:`stop`, so a poll that finishes
    after being stopped can tell it must not arm the next one.
    """

    def __init__(self, connection_id: str) -> None:
        self.id = connection_id
        self.url: str | None = None
        self.interval: float | None = None
        self.callbacks: dict[str, list[CallbackBinding]] = {}
        self.upload = UploadProgress()
        self._request: asyncio.Task[None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self.stop_count = 0

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, url={self.url!r}, state={self.state.value})"

    @property
    def state(self) -> ConnectionState:
        if self._request is not None and not self._request.done():
            return ConnectionState.REQUESTING
        if self._timer is not None:
            return ConnectionState.SCHEDULED
        return ConnectionState.IDLE

    @property
    def request(self) -> asyncio.Task[None] | None:
        return self._request

    @property
    def has_timer(self) -> bool:
        return self._timer is not None

    def start_request(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro, name=f"pyufo:{self.id}")
        self._request = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel_request(self) -> bool:
        """Request cancellation of the owned in-flight request.

        Best effort: a response already handed over by the transport is
        still processed.
        """
        task = self._request
        if task is None or task.done():
            return False
        _logger.debug("Cancelling request of connection %s", self.id)
        return task.cancel()

    def pending_requests(self) -> list[asyncio.Task[None]]:
        return [task for task in self._tasks if not task.done()]

    def schedule(
        self,
        loop: asyncio.AbstractEventLoop,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> None:
        """Replace any pending timer with one running *callback* after *delay* seconds."""
        self.clear_timer()

        def _fire() -> None:
            self._timer = None
            callback(*args)

        self._timer = loop.call_later(delay, _fire)

    def clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def stop(self) -> None:
        self.stop_count += 1
        self.clear_timer()
        self.cancel_request()


class ConnectionRegistry:
    """Connections by id, created lazily."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def ensure(self, connection_id: str, create: bool = True) -> Connection | None:
        """Return the connection for *connection_id*.

        With ``create=False`` a missing connection is not materialised and
        ``None`` is returned instead.
        """
        connection = self._connections.get(connection_id)
        if connection is None and create:
            connection = Connection(connection_id)
            self._connections[connection_id] = connection
        return connection

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def remove(self, connection_id: str) -> Connection | None:
        """Stop and forget a connection."""
        connection = self._connections.pop(connection_id, None)
        if connection is not None:
            connection.stop()
        return connection

    def ids(self) -> list[str]:
        return list(self._connections)

    def pending_requests(self) -> list[asyncio.Task[None]]:
        return [task for connection in self._connections.values() for task in connection.pending_requests()]

    def stop_all(self) -> None:
        for connection in self._connections.values():
            connection.stop()

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
