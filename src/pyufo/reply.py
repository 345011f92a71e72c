"""Reply body decoding.

Wire format: optional diagnostic text, the ``0x02`` control byte, then a
JSON array of instruction objects. Without the control byte the whole
body is the JSON array.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from pyufo._constants import REPLY_SEPARATOR
from pyufo.exceptions import UfoParseError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedReply:
    diagnostic: str | None
    entries: list[Any] = field(default_factory=list)


def decode_reply(body: str) -> DecodedReply:
    """Split *body* into diagnostic text and parsed instruction entries.

    Only the segment right after the first separator is parsed; anything
    after a second separator is dropped.

    Raises
    ------
    UfoParseError
        If the JSON part is malformed. ``content`` carries that part.
    """
    parts = body.split(REPLY_SEPARATOR)
    diagnostic: str | None = None
    if len(parts) > 1:
        diagnostic = parts[0] or None
        content = parts[1]
    else:
        content = parts[0]

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise UfoParseError(str(exc), content=content) from exc

    if not isinstance(parsed, list):
        _logger.warning("Reply is not an instruction array (%s), nothing to apply", type(parsed).__name__)
        parsed = []
    return DecodedReply(diagnostic=diagnostic, entries=parsed)
