"""HTTP transport for connection requests, with optional upload progress tracing."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from pyufo.config import UfoConfig
from pyufo.exceptions import UfoTransportError
from pyufo.form import MultipartForm

_logger = logging.getLogger(__name__)

_UPLOAD_CTX_KEY = "pyufo_upload"


@dataclass(frozen=True)
class HttpReply:
    """Completed HTTP exchange: status code and decoded body text."""

    status: int
    text: str


class UploadProgress:
    """Upload progress reporter owned by a connection.

    Listeners are called with the number of body bytes sent so far for the
    current request.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[int], None]] = []
        self.sent = 0

    def add_listener(self, listener: Callable[[int], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[int], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start(self) -> None:
        self.sent = 0

    def report(self, nbytes: int) -> None:
        self.sent += nbytes
        for listener in list(self._listeners):
            try:
                listener(self.sent)
            except Exception:
                _logger.warning("Upload progress listener failed", exc_info=True)


class Transport(Protocol):
    """Structural transport interface used by connections.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    @property
    def supports_upload_progress(self) -> bool: ...

    async def request(
        self,
        method: str,
        url: str,
        *,
        form: MultipartForm | None = None,
        upload: UploadProgress | None = None,
    ) -> HttpReply: ...


async def _on_request_chunk_sent(
    _session: aiohttp.ClientSession,
    trace_config_ctx: Any,
    params: aiohttp.TraceRequestChunkSentParams,
) -> None:
    ctx = getattr(trace_config_ctx, "trace_request_ctx", None)
    if not isinstance(ctx, Mapping):
        return
    upload = ctx.get(_UPLOAD_CTX_KEY)
    if isinstance(upload, UploadProgress):
        upload.report(len(params.chunk))


class HttpTransport:
    """aiohttp-backed transport.

    Non-success statuses are returned, not raised: the connection decides
    which of them matter. Only network-level failures raise
    :class:`UfoTransportError`.
    """

    def __init__(
        self,
        config: UfoConfig,
        http_session: aiohttp.ClientSession,
        *,
        upload_tracing: bool = False,
    ) -> None:
        self._config = config
        self._http = http_session
        self._upload_tracing = upload_tracing

    @staticmethod
    def build_trace_config() -> aiohttp.TraceConfig:
        """Trace config that feeds sent body chunks into the request's `UploadProgress`.

        Upload progress is only available when the session was created with
        this trace config installed.
        """
        trace_config = aiohttp.TraceConfig()
        trace_config.on_request_chunk_sent.append(_on_request_chunk_sent)
        return trace_config

    @property
    def supports_upload_progress(self) -> bool:
        return self._upload_tracing

    async def request(
        self,
        method: str,
        url: str,
        *,
        form: MultipartForm | None = None,
        upload: UploadProgress | None = None,
    ) -> HttpReply:
        kwargs: dict[str, Any] = {"headers": dict(self._config.headers)}
        if form is not None:
            kwargs["data"] = form.to_multipart()
        if upload is not None and self._upload_tracing:
            upload.start()
            kwargs["trace_request_ctx"] = {_UPLOAD_CTX_KEY: upload}
        if self._config.request_timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(method, url, **kwargs) as resp:
                text = await resp.text(errors="replace")
                return HttpReply(status=resp.status, text=text)
        except aiohttp.ClientError as exc:
            raise UfoTransportError(f"{method} {url} failed: {exc}", url=url) from exc
        except TimeoutError as exc:
            raise UfoTransportError(f"{method} {url} timed out", url=url) from exc
