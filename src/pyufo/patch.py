"""DOM patch handlers for ``output``, ``attribute`` and ``close`` instructions."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

from pyufo._constants import OUTPUT_RETRY_DELAY, POINT_INNER
from pyufo.callbacks import CallbackRegistry
from pyufo.dom import Document, Element
from pyufo.exceptions import UfoMissingTargetError

_logger = logging.getLogger(__name__)


def _render(content: Any) -> str:
    """Markup for *content*: strings as is, other JSON values in their JSON spelling."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False)


class DomPatcher:
    """Applies patch instructions to a :class:`~pyufo.dom.Document`.

    Missing targets are handled asymmetrically: ``output`` retries once
    after ``retry_delay`` seconds and then alerts, while ``attribute`` and
    ``close`` only log.
    """

    def __init__(
        self,
        document: Document,
        callbacks: CallbackRegistry,
        *,
        alert: Callable[[str], None],
        retry_delay: float = OUTPUT_RETRY_DELAY,
    ) -> None:
        self.document = document
        self._callbacks = callbacks
        self._alert = alert
        self._retry_delay = retry_delay

    def _lookup(self, target: str | None) -> Element:
        element = self.document.get_element_by_id(target) if target is not None else None
        if element is None:
            raise UfoMissingTargetError(str(target))
        return element

    def output(self, target: str | None, content: Any, connection_id: str | None = None) -> None:
        """Replace the content of *target*, retrying once if it does not exist yet."""
        try:
            element = self._lookup(target)
        except UfoMissingTargetError:
            asyncio.get_running_loop().call_later(
                self._retry_delay, self._retry_output, target, content, connection_id
            )
            return
        self._replace(element, content, connection_id)

    def _retry_output(self, target: str | None, content: Any, connection_id: str | None) -> None:
        try:
            element = self._lookup(target)
        except UfoMissingTargetError as exc:
            self._alert(f"Output target missing: {exc.target}")
            return
        self._replace(element, content, connection_id)

    def _replace(self, element: Element, content: Any, connection_id: str | None) -> bool:
        clone = element.clone()
        clone.inner_html = _render(content)
        if element.inner_html == clone.inner_html:
            return False
        top, left = element.scroll_top, element.scroll_left
        element.replace_with(clone)
        clone.scroll_top = top
        clone.scroll_left = left
        if connection_id is not None:
            self._callbacks.invoke(connection_id, POINT_INNER)
        return True

    def attribute(self, target: str | None, name: str | None, content: Any) -> None:
        try:
            element = self._lookup(target)
        except UfoMissingTargetError:
            _logger.warning("Missing attribute target: %s", target)
            return
        if not name:
            _logger.warning("Attribute instruction for %s without a name", target)
            return

        if name == "value":
            # select elements only pick up a new value through the property
            element.value = content
            self._notify_change(element)
        elif name == "checked" and element.node_name.upper() == "INPUT":
            element.checked = bool(content)
            self._notify_change(element)
        elif content is not None:
            element.set_attribute(name, content)
        else:
            element.remove_attribute(name)

    def close(self, target: str | None) -> None:
        try:
            element = self._lookup(target)
        except UfoMissingTargetError:
            _logger.warning("Missing close target: %s", target)
            return
        element.hide()
        element.inner_html = ""

    @staticmethod
    def _notify_change(element: Element) -> None:
        try:
            element.dispatch_change()
        except Exception:
            _logger.warning("Change listener of %r failed", element, exc_info=True)
