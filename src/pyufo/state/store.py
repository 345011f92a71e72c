"""Reactive in-memory data store.

Plain keys hold arbitrary values and notify their listeners on every write.
The ``ln`` key is special: it merges string entries into a separate
localisation map used by :meth:`DataStore.ln`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pyufo._constants import LN_KEY

_logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class DataStore:
    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._listeners: dict[str, list[Listener]] = {}
        self._ln: dict[str, str] = {}

    def _merge_ln(self, values: Any) -> None:
        if not isinstance(values, Mapping):
            _logger.debug("Ignoring non-mapping localisation update: %r", type(values).__name__)
            return
        for key, text in values.items():
            if isinstance(text, str):
                self._ln[str(key)] = text

    def set(self, key: str, value: Any) -> None:
        """Store *value* and notify the key's listeners in registration order."""
        if key == LN_KEY:
            self._merge_ln(value)
            return
        self._data[key] = value
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(value)
            except Exception:
                _logger.warning("Listener for data key %r failed", key, exc_info=True)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def listen(self, key: str, listener: Listener) -> None:
        """Register *listener* for *key*; a listener already registered is ignored."""
        listeners = self._listeners.setdefault(key, [])
        if listener not in listeners:
            listeners.append(listener)

    def unlisten(self, key: str, listener: Listener) -> None:
        listeners = self._listeners.get(key)
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if not listeners:
            del self._listeners[key]

    def ln(self, key: str) -> str:
        """Localised text for *key*, or *key* itself when none is known."""
        return self._ln.get(key) or key

    def keys(self) -> list[str]:
        return list(self._data)
