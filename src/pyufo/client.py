"""High-level async client driving connections from server instruction replies."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from typing import Any

import aiohttp

from pyufo._constants import (
    CACHE_BUST_MAX,
    CACHE_BUST_MIN,
    POINT_ABORT,
    POINT_GET,
    POINT_POST,
    POINT_REPLY,
    POINT_UPDATE,
    SUCCESS_STATUS,
)
from pyufo._redact import redact_for_log
from pyufo._transport import HttpReply, HttpTransport, Transport, UploadProgress
from pyufo.callbacks import CallbackRegistry
from pyufo.config import UfoConfig
from pyufo.connection import Connection, ConnectionRegistry
from pyufo.dispatcher import Dispatcher
from pyufo.dom import Document, MemoryDocument
from pyufo.exceptions import UfoError, UfoTransportError
from pyufo.form import MultipartForm
from pyufo.patch import DomPatcher
from pyufo.state.store import DataStore

_logger = logging.getLogger(__name__)
_console_logger = logging.getLogger("pyufo.console")
_alert_logger = logging.getLogger("pyufo.alert")


class UfoClient:
    """Runtime context for one page worth of connections.

    Owns the connection registry, the callback function table, the data
    store and the document patcher. Several clients can live side by side
    without sharing state.

    Usage::

        async with UfoClient(UfoConfig(base_url="https://example.org")) as client:
            client.interval("clock", 5)
            client.get("clock", "/clock.php")
    """

    def __init__(
        self,
        config: UfoConfig | None = None,
        *,
        document: Document | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        on_alert: Callable[[str], None] | None = None,
        on_log: Callable[..., None] | None = None,
    ) -> None:
        self._config = config or UfoConfig()
        self._url_root = self._config.base_url
        self._external_session = session is not None
        self._http_session = session
        self._owns_transport = transport is None
        self._transport: Transport | None = transport
        self._loop: asyncio.AbstractEventLoop | None = None
        self._on_alert = on_alert
        self._on_log = on_log

        self.document: Document = document if document is not None else MemoryDocument()
        self.registry = ConnectionRegistry()
        self.callbacks = CallbackRegistry(self.registry)
        self.data = DataStore()
        self.patcher = DomPatcher(
            self.document,
            self.callbacks,
            alert=self.alert,
            retry_delay=self._config.output_retry_delay,
        )
        self.dispatcher = Dispatcher(self)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> UfoClient:
        self._loop = asyncio.get_running_loop()
        if self._transport is None:
            upload_tracing = False
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession(trace_configs=[HttpTransport.build_trace_config()])
                upload_tracing = True
            self._transport = HttpTransport(self._config, self._http_session, upload_tracing=upload_tracing)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop every connection and release the HTTP session if it is ours."""
        self.registry.stop_all()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owns_transport:
            self._transport = None
        self._loop = None

    async def drain(self) -> None:
        """Wait until no request is in flight, including requests started by replies."""
        current = asyncio.current_task()
        while True:
            tasks = [task for task in self.registry.pending_requests() if task is not current]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def log(self, *args: Any) -> None:
        """Write to the diagnostic log."""
        if self._on_log is not None:
            self._on_log(*args)
            return
        _console_logger.info(" ".join(str(arg) for arg in args))

    def alert(self, message: str) -> None:
        """Surface *message* to the user."""
        if self._on_alert is not None:
            self._on_alert(message)
            return
        _alert_logger.error("%s", message)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise UfoError("Client not initialized. Use 'async with UfoClient(...) as client:'")
        return self._transport

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def modify_url(self, url: str) -> str:
        """Apply the root prefix and the cache-busting parameter to *url*."""
        separator = "&" if "?" in url else "?"
        token = random.randint(CACHE_BUST_MIN, CACHE_BUST_MAX)
        return f"{self._url_root}{url}{separator}{self._config.cache_bust_param}={token}"

    def _send(
        self,
        connection: Connection,
        method: str,
        *,
        form: MultipartForm | None = None,
        upload: UploadProgress | None = None,
        poll: bool = False,
    ) -> asyncio.Task[None] | None:
        if not connection.url:
            _logger.debug("Connection %s has no url, not sending %s", connection.id, method)
            return None
        url = self.modify_url(connection.url)
        if form is not None:
            _logger.debug("Form for connection %s: %s", connection.id, redact_for_log(form.entries()))
        task = connection.start_request(self._perform(connection.id, method, url, form, upload))
        if poll:
            stops = connection.stop_count
            task.add_done_callback(lambda _task: self._repoll(connection, stops))
        return task

    def _repoll(self, connection: Connection, stops: int) -> None:
        # Completed, failed and aborted polls arm the next one. Stopped ones do not.
        if connection.stop_count == stops:
            self.delay(connection.id)

    async def _perform(
        self,
        connection_id: str,
        method: str,
        url: str,
        form: MultipartForm | None,
        upload: UploadProgress | None,
    ) -> None:
        transport = self._require_transport()
        try:
            reply = await transport.request(method, url, form=form, upload=upload)
        except UfoTransportError as exc:
            _logger.debug("Request of connection %s failed: %s", connection_id, exc)
        else:
            try:
                self._handle_reply(connection_id, reply)
            except Exception:
                _logger.exception("Handling reply of connection %s failed", connection_id)

    def _handle_reply(self, connection_id: str, reply: HttpReply) -> None:
        if reply.status == SUCCESS_STATUS:
            self.callbacks.invoke(connection_id, POINT_REPLY)
            self.dispatcher.handle_reply(connection_id, reply.text)
            return
        point = self._config.status_callback_points.get(reply.status)
        if point is not None:
            self.callbacks.invoke(connection_id, point)
        else:
            _logger.debug("Ignoring HTTP %s for connection %s", reply.status, connection_id)

    # ------------------------------------------------------------------
    # Connection operations
    # ------------------------------------------------------------------

    def set_root(self, root: str) -> None:
        """Set the prefix applied to every request URL."""
        self._url_root = root

    def get(self, connection_id: str, url: str | None) -> None:
        """Point the connection at *url* and request it."""
        self._require_transport()
        connection = self.registry.ensure(connection_id)
        connection.url = url
        self.callbacks.invoke(connection_id, POINT_GET)
        self.update(connection_id)

    def update(self, connection_id: str) -> None:
        """Request the connection's current url again and arm the next poll."""
        self._require_transport()
        connection = self.registry.ensure(connection_id)
        self.callbacks.invoke(connection_id, POINT_UPDATE)
        if not connection.url:
            self.log(f"update - no url: {connection_id}")
            return
        self._send(connection, "GET", poll=True)

    def post(
        self,
        connection_id: str,
        url: str | None,
        payload: Any = None,
        upload_callback: Callable[[UploadProgress], None] | None = None,
    ) -> None:
        """POST *payload* as a multipart form to *url*.

        *payload* may be a :class:`MultipartForm`, a mapping, ``(name, value)``
        pairs, a document element or the id of one. The ``post`` callback
        point receives the payload as an argument.
        """
        transport = self._require_transport()
        connection = self.registry.ensure(connection_id)
        connection.url = url

        upload: UploadProgress | None = None
        if upload_callback is not None and transport.supports_upload_progress:
            upload_callback(connection.upload)
            upload = connection.upload

        if isinstance(payload, str):
            element = self.document.get_element_by_id(payload)
            if element is None:
                _logger.warning("Form element %s not found, posting an empty form", payload)
            payload = element

        form = MultipartForm.from_payload(payload)
        form.strip_empty_files()
        self.callbacks.invoke(connection_id, POINT_POST, [payload])
        self._send(connection, "POST", form=form, upload=upload)

    def interval(self, connection_id: str, seconds: float | None) -> None:
        """Set the poll interval, or clear it and cancel a pending poll when falsy."""
        connection = self.registry.ensure(connection_id, create=bool(seconds))
        if connection is None:
            return
        if seconds:
            connection.interval = float(seconds)
        else:
            connection.interval = None
            connection.clear_timer()

    def delay(self, connection_id: str) -> None:
        """Schedule the next ``update`` after the jittered poll interval."""
        connection = self.registry.ensure(connection_id, create=False)
        if connection is None or not connection.interval:
            return
        low, high = self._config.poll_jitter
        timeout = connection.interval * (low + random.random() * (high - low))
        connection.schedule(self._require_loop(), timeout, self.update, connection_id)

    def stop(self, connection_id: str) -> None:
        """Cancel the pending poll and the in-flight request of the connection."""
        connection = self.registry.ensure(connection_id, create=False)
        if connection is not None:
            connection.stop()

    def unset(self, connection_id: str) -> None:
        """Stop the connection and forget it, callbacks included."""
        self.stop(connection_id)
        self.registry.remove(connection_id)

    def abort(self, connection_id: str) -> None:
        """Fire the ``abort`` callback point and cancel the in-flight request."""
        connection = self.registry.ensure(connection_id, create=False)
        if connection is None:
            return
        self.callbacks.invoke(connection_id, POINT_ABORT)
        connection.cancel_request()

    def url(self, connection_id: str) -> str | None:
        connection = self.registry.ensure(connection_id, create=False)
        return connection.url if connection is not None else None

    def connections(self) -> list[str]:
        return self.registry.ids()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    @property
    def callback_functions(self) -> dict[str, Callable[..., Any]]:
        return self.callbacks.functions

    def callback_add(self, connection_id: str, point: str, func_name: str, args: Any = None) -> None:
        self.callbacks.add(connection_id, point, func_name, args)

    def callback_remove(self, connection_id: str, point: str, func_name: str) -> None:
        self.callbacks.remove(connection_id, point, func_name)

    def callback_clear(self, connection_id: str) -> None:
        self.callbacks.clear(connection_id)
