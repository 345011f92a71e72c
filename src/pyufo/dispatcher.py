"""Instruction dispatch for decoded replies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from pyufo._redact import redact_for_log
from pyufo.exceptions import UfoError, UfoParseError
from pyufo.models.instruction import Instruction, InstructionType
from pyufo.reply import decode_reply

if TYPE_CHECKING:
    from pyufo.client import UfoClient

_logger = logging.getLogger(__name__)

_CONNECTION_TYPES = frozenset(
    {
        InstructionType.POST,
        InstructionType.GET,
        InstructionType.INTERVAL,
        InstructionType.UPDATE,
        InstructionType.STOP,
        InstructionType.UNSET,
        InstructionType.ABORT,
        InstructionType.CALLBACK_ADD,
        InstructionType.CALLBACK_REMOVE,
        InstructionType.CALLBACK_CLEAR,
    }
)


class Dispatcher:
    """Routes each instruction of a batch to the client's components.

    Instructions apply strictly in array order. ``call`` instructions are
    collected and run after the whole batch, in their original order.
    """

    def __init__(self, client: UfoClient) -> None:
        self._client = client

    def handle_reply(self, connection_id: str, body: str) -> None:
        """Decode a successful reply body and apply it.

        A malformed body raises an alert, is written to the diagnostic log
        and dropped as a whole.
        """
        try:
            decoded = decode_reply(body)
        except UfoParseError as exc:
            self._client.alert(f"Reply parse error: {exc}")
            self._client.log(exc.content)
            return
        if decoded.diagnostic:
            self._client.log("UFO ignored content:\n", decoded.diagnostic)
        self.dispatch(connection_id, decoded.entries)

    def dispatch(self, connection_id: str, entries: list[Any]) -> None:
        tailcalls: list[Instruction] = []
        for entry in entries:
            instruction = self._validate(entry)
            if instruction is None:
                continue
            if instruction.kind is InstructionType.CALL:
                tailcalls.append(instruction)
                continue
            try:
                self._apply(connection_id, instruction)
            except UfoError:
                _logger.warning("Instruction %s failed", instruction.type, exc_info=True)

        for call in tailcalls:
            self._client.callbacks.call(call.func, call.args)

    @staticmethod
    def _validate(entry: Any) -> Instruction | None:
        if not isinstance(entry, dict):
            _logger.debug("Skipping non-object reply entry: %r", redact_for_log(entry))
            return None
        try:
            return Instruction.model_validate(entry)
        except ValidationError as exc:
            _logger.warning("Skipping invalid instruction %s: %s", redact_for_log(entry), exc)
            return None

    def _apply(self, connection_id: str, inst: Instruction) -> None:
        client = self._client
        kind = inst.kind
        _logger.debug("Applying %s for connection %s", inst.type, connection_id)

        if kind in _CONNECTION_TYPES and inst.id is None:
            _logger.warning("Instruction %s without a connection id", inst.type)
            return

        match kind:
            case InstructionType.POST:
                client.post(inst.id, inst.url, inst.form)
            case InstructionType.GET:
                client.get(inst.id, inst.url)
            case InstructionType.INTERVAL:
                client.interval(inst.id, inst.interval)
            case InstructionType.UPDATE:
                client.update(inst.id)
            case InstructionType.STOP:
                client.stop(inst.id)
            case InstructionType.UNSET:
                client.unset(inst.id)
            case InstructionType.ABORT:
                client.abort(inst.id)
            case InstructionType.LOG:
                self._log(inst)
            case InstructionType.OUTPUT:
                client.patcher.output(inst.target, inst.content, connection_id)
            case InstructionType.ATTRIBUTE:
                client.patcher.attribute(inst.target, inst.name, inst.content)
            case InstructionType.CLOSE:
                client.patcher.close(inst.target)
            case InstructionType.CALLBACK_ADD:
                client.callbacks.add(inst.id, inst.point, inst.func, inst.args)
            case InstructionType.CALLBACK_REMOVE:
                client.callbacks.remove(inst.id, inst.point, inst.func)
            case InstructionType.CALLBACK_CLEAR:
                client.callbacks.clear(inst.id)
            case InstructionType.DATASET:
                if inst.key is None:
                    _logger.warning("dataset instruction without a key")
                    return
                client.data.set(inst.key, inst.value)
            case InstructionType.NOP | InstructionType.CALL:
                pass
            case None:
                _logger.debug("Ignoring unknown instruction type %r", inst.type)

    def _log(self, inst: Instruction) -> None:
        if isinstance(inst.args, list):
            self._client.log(*inst.args)
        elif inst.text is not None:
            self._client.log(inst.text)
        else:
            self._client.log(inst.model_dump(exclude_none=True))
