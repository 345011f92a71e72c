from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from urllib.parse import urlsplit

import pytest

from pyufo._transport import HttpReply, UploadProgress
from pyufo.form import MultipartForm


@dataclass
class FakeCall:
    method: str
    url: str
    form: MultipartForm | None
    upload: UploadProgress | None

    @property
    def path(self) -> str:
        return urlsplit(self.url).path


@dataclass
class FakeTransport:
    """Scripted transport: replies are queued per URL path.

    The last queued reply of a path is sticky; unknown paths answer with an
    empty instruction array. Setting ``gate`` holds every request until the
    event is set.
    """

    upload_capable: bool = False
    routes: dict[str, list[HttpReply | Exception]] = field(default_factory=dict)
    calls: list[FakeCall] = field(default_factory=list)
    gate: asyncio.Event | None = None

    @property
    def supports_upload_progress(self) -> bool:
        return self.upload_capable

    def reply(self, path: str, body: str, status: int = 200) -> None:
        self.routes.setdefault(path, []).append(HttpReply(status=status, text=body))

    def fail(self, path: str, exc: Exception) -> None:
        self.routes.setdefault(path, []).append(exc)

    def paths(self) -> list[str]:
        return [call.path for call in self.calls]

    async def request(
        self,
        method: str,
        url: str,
        *,
        form: MultipartForm | None = None,
        upload: UploadProgress | None = None,
    ) -> HttpReply:
        call = FakeCall(method, url, form, upload)
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        queue = self.routes.get(call.path)
        if not queue:
            return HttpReply(status=200, text="[]")
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
