"""Instruction records of a reply batch."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import field_validator

from pyufo.models._base import UfoBaseModel


class InstructionType(StrEnum):
    POST = "post"
    GET = "get"
    INTERVAL = "interval"
    UPDATE = "update"
    STOP = "stop"
    UNSET = "unset"
    ABORT = "abort"
    LOG = "log"
    OUTPUT = "output"
    ATTRIBUTE = "attribute"
    CLOSE = "close"
    CALLBACK_ADD = "callbackadd"
    CALLBACK_REMOVE = "callbackremove"
    CALLBACK_CLEAR = "callbackclear"
    CALL = "call"
    DATASET = "dataset"
    NOP = "nop"


class Instruction(UfoBaseModel):
    """One tagged unit of server-directed work.

    Only the fields relevant to ``type`` are populated by the producer.
    ``type`` stays a plain string so unknown tags survive validation and
    can be skipped by the dispatcher.
    """

    type: str
    id: str | None = None
    url: str | None = None
    form: Any = None
    interval: float | None = None
    point: str | None = None
    func: str | None = None
    args: Any = None
    target: str | None = None
    name: str | None = None
    content: Any = None
    key: str | None = None
    value: Any = None
    text: Any = None

    @field_validator("interval", mode="before")
    @classmethod
    def _falsy_interval(cls, value: Any) -> Any:
        # false/""/0 all mean "stop polling"
        if value is None or value is False or value == "":
            return None
        return value

    @property
    def kind(self) -> InstructionType | None:
        try:
            return InstructionType(self.type)
        except ValueError:
            return None
