from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import pytest

from conftest import FakeTransport
from pyufo.client import UfoClient
from pyufo.config import UfoConfig
from pyufo.dom import MemoryDocument


def _body(*instructions: dict[str, Any]) -> str:
    return json.dumps(list(instructions))


class _Sink:
    def __init__(self) -> None:
        self.alerts: list[str] = []
        self.logs: list[tuple[Any, ...]] = []

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def log(self, *args: Any) -> None:
        self.logs.append(args)


def _client(transport: FakeTransport, sink: _Sink, document: MemoryDocument | None = None) -> UfoClient:
    return UfoClient(
        UfoConfig(output_retry_delay=0.01),
        transport=transport,
        document=document,
        on_alert=sink.alert,
        on_log=sink.log,
    )


@pytest.mark.asyncio
async def test_tailcalls_run_after_whole_batch(transport: FakeTransport) -> None:
    sink = _Sink()
    seen: list[Any] = []

    async with _client(transport, sink) as client:
        client.callback_functions["F"] = lambda *args: seen.append((args, client.data.get("K")))
        client.dispatcher.handle_reply(
            "c",
            _body(
                {"type": "dataset", "key": "K", "value": 1},
                {"type": "call", "func": "F", "args": ["a", 2]},
                {"type": "dataset", "key": "K", "value": 2},
                {"type": "call", "func": "F"},
            ),
        )

    assert seen == [(("a", 2), 2), ((), 2)]


@pytest.mark.asyncio
async def test_diagnostic_prefix_is_logged_and_batch_applied(
    transport: FakeTransport, caplog: pytest.LogCaptureFixture
) -> None:
    alerts: list[str] = []

    async with UfoClient(transport=transport, on_alert=alerts.append) as client:
        with caplog.at_level(logging.INFO, logger="pyufo.console"):
            client.dispatcher.handle_reply("c", 'WARN:bad\x02[{"type":"nop"}]')

    assert "UFO ignored content:" in caplog.text
    assert "WARN:bad" in caplog.text
    assert alerts == []


@pytest.mark.asyncio
async def test_malformed_reply_alerts_once_and_applies_nothing(transport: FakeTransport) -> None:
    sink = _Sink()
    seen: list[Any] = []

    async with _client(transport, sink) as client:
        client.data.listen("k", seen.append)
        client.dispatcher.handle_reply("c", "{not json")
        client.dispatcher.handle_reply("c", '[{"type":"dataset","key":"k","value":1}')

    assert len(sink.alerts) == 2
    assert all(alert.startswith("Reply parse error:") for alert in sink.alerts)
    assert sink.logs[0] == ("{not json",)
    assert seen == []


@pytest.mark.asyncio
async def test_unknown_and_invalid_entries_are_skipped(transport: FakeTransport) -> None:
    sink = _Sink()

    async with _client(transport, sink) as client:
        client.dispatcher.handle_reply(
            "c",
            _body(
                {"type": "teleport", "id": "x"},
                {"no_type": True},
                {"type": "interval", "id": "c", "interval": "soon"},
                {"type": "dataset", "key": "after", "value": True},
            ),
        )
        client.dispatcher.dispatch("c", [42, "text", None, {"type": "nop"}])

        assert client.data.get("after") is True
        assert client.connections() == []

    assert sink.alerts == []


@pytest.mark.asyncio
async def test_log_instruction_variants(transport: FakeTransport) -> None:
    sink = _Sink()

    async with _client(transport, sink) as client:
        client.dispatcher.handle_reply(
            "c",
            _body(
                {"type": "log", "args": ["count", 3]},
                {"type": "log", "text": "plain"},
                {"type": "log"},
            ),
        )

    assert sink.logs == [("count", 3), ("plain",), ({"type": "log"},)]


@pytest.mark.asyncio
async def test_connection_instructions_reenter_client(transport: FakeTransport) -> None:
    sink = _Sink()
    transport.reply(
        "/first",
        _body({"type": "interval", "id": "clock", "interval": 30}, {"type": "get", "id": "clock", "url": "/clock"}),
    )
    transport.reply("/clock", _body({"type": "dataset", "key": "time", "value": "12:00"}))

    async with _client(transport, sink) as client:
        client.get("boot", "/first")
        await client.drain()

        assert transport.paths() == ["/first", "/clock"]
        assert client.data.get("time") == "12:00"
        assert client.url("clock") == "/clock"
        assert client.registry.get("clock").has_timer  # type: ignore[union-attr]

        client.dispatcher.handle_reply("boot", _body({"type": "interval", "id": "clock", "interval": False}))
        assert not client.registry.get("clock").has_timer  # type: ignore[union-attr]

        client.dispatcher.handle_reply("boot", _body({"type": "unset", "id": "clock"}, {"type": "update", "id": 7}))
        assert sorted(client.connections()) == ["7", "boot"]


@pytest.mark.asyncio
async def test_server_stop_ends_active_polling(transport: FakeTransport) -> None:
    sink = _Sink()

    async with _client(transport, sink) as client:
        client.interval("feed", 0.02)
        client.get("feed", "/feed")
        await asyncio.sleep(0.08)
        assert len(transport.calls) > 1

        client.dispatcher.handle_reply("boot", _body({"type": "stop", "id": "feed"}))
        await client.drain()
        polls = len(transport.calls)
        await asyncio.sleep(0.08)

        assert len(transport.calls) == polls
        assert not client.registry.get("feed").has_timer  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_server_abort_keeps_poll_cadence(transport: FakeTransport) -> None:
    sink = _Sink()
    transport.gate = asyncio.Event()

    async with _client(transport, sink) as client:
        client.interval("feed", 0.02)
        client.get("feed", "/feed")
        await asyncio.sleep(0)

        first = client.registry.get("feed").request  # type: ignore[union-attr]
        client.dispatcher.handle_reply("boot", _body({"type": "abort", "id": "feed"}))

        transport.gate.set()
        await asyncio.sleep(0.1)
        client.stop("feed")

    assert first is not None and first.cancelled()
    assert transport.paths().count("/feed") > 1


@pytest.mark.asyncio
async def test_post_instruction_posts_named_form(transport: FakeTransport) -> None:
    sink = _Sink()
    document = MemoryDocument()
    document.create("login", "FORM", fields=[("user", "ann")])

    async with _client(transport, sink, document) as client:
        client.dispatcher.handle_reply(
            "c",
            _body(
                {"type": "post", "id": "auth", "url": "/login", "form": "login"},
                {"type": "post", "id": "ping", "url": "/ping"},
            ),
        )
        await client.drain()

    login, ping = transport.calls
    assert (login.method, login.path) == ("POST", "/login")
    assert login.form is not None and login.form.entries() == [("user", "ann")]
    assert ping.form is not None and len(ping.form) == 0


@pytest.mark.asyncio
async def test_unusable_post_form_skips_only_that_instruction(
    transport: FakeTransport, caplog: pytest.LogCaptureFixture
) -> None:
    sink = _Sink()
    calls: list[tuple[Any, ...]] = []

    async with _client(transport, sink) as client:
        client.callback_functions["f"] = lambda *args: calls.append(args)
        with caplog.at_level(logging.WARNING, logger="pyufo.dispatcher"):
            client.dispatcher.handle_reply(
                "c",
                _body(
                    {"type": "post", "id": "up", "url": "/up", "form": [1, 2]},
                    {"type": "post", "id": "up", "url": "/up", "form": True},
                    {"type": "dataset", "key": "k", "value": 2},
                    {"type": "call", "func": "f", "args": ["done"]},
                ),
            )
        await client.drain()

        assert client.data.get("k") == 2
        assert calls == [("done",)]
        assert transport.calls == []
        assert sum("Instruction post failed" in record.getMessage() for record in caplog.records) == 2


@pytest.mark.asyncio
async def test_callback_instructions_manage_bindings(transport: FakeTransport) -> None:
    sink = _Sink()
    calls: list[tuple[Any, ...]] = []

    async with _client(transport, sink) as client:
        client.callback_functions["notify"] = lambda *args: calls.append(args)
        client.dispatcher.handle_reply(
            "c",
            _body(
                {"type": "callbackadd", "id": "feed", "point": "reply", "func": "notify", "args": ["feed"]},
                {"type": "callbackadd", "id": "feed", "point": "reply", "func": "unknown"},
            ),
        )
        client.callbacks.invoke("feed", "reply")

        client.dispatcher.handle_reply(
            "c", _body({"type": "callbackremove", "id": "feed", "point": "reply", "func": "notify"})
        )
        client.callbacks.invoke("feed", "reply")

        client.dispatcher.handle_reply(
            "c", _body({"type": "callbackadd", "id": "feed", "point": "get", "func": "notify"})
        )
        client.dispatcher.handle_reply("c", _body({"type": "callbackclear", "id": "feed"}))
        client.callbacks.invoke("feed", "get")

    assert calls == [("feed",)]


@pytest.mark.asyncio
async def test_dom_instructions_patch_document(transport: FakeTransport) -> None:
    sink = _Sink()
    document = MemoryDocument()
    document.create("status", inner_html="idle")
    document.create("modal", inner_html="<p>x</p>")
    inner: list[str] = []

    async with _client(transport, sink, document) as client:
        client.callback_functions["on_inner"] = lambda: inner.append("inner")
        client.callback_add("c", "inner", "on_inner")
        client.dispatcher.handle_reply(
            "c",
            _body(
                {"type": "output", "target": "status", "content": "busy"},
                {"type": "output", "target": "status", "content": "busy"},
                {"type": "attribute", "target": "status", "name": "class", "content": "warn"},
                {"type": "close", "target": "modal"},
                {"type": "output", "target": "missing", "content": "x"},
            ),
        )
        await asyncio.sleep(0.05)

    status = document.get_element_by_id("status")
    assert status is not None and status.inner_html == "busy"
    assert status.get_attribute("class") == "warn"
    assert document.get_element_by_id("modal").inner_html == ""  # type: ignore[union-attr]
    assert inner == ["inner"]
    assert sink.alerts == ["Output target missing: missing"]
