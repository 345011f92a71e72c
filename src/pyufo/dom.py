"""Document abstraction mutated by the DOM patch handlers.

The engine only talks to the two protocols below. ``MemoryDocument`` is a
small in-memory implementation for headless use and tests; a hosting
application bridges its own view layer by implementing the protocols.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol


class Element(Protocol):
    """The subset of a DOM element the patch handlers rely on."""

    node_name: str
    inner_html: str
    scroll_top: float
    scroll_left: float
    value: Any
    checked: bool

    def clone(self) -> Element:
        """Return a detached deep copy of this element."""
        ...

    def replace_with(self, other: Element) -> None:
        """Swap this element for *other* in the document."""
        ...

    def get_attribute(self, name: str) -> str | None: ...

    def set_attribute(self, name: str, value: Any) -> None: ...

    def remove_attribute(self, name: str) -> None: ...

    def hide(self) -> None: ...

    def dispatch_change(self) -> None:
        """Notify change listeners synchronously."""
        ...

    def form_fields(self) -> list[tuple[str, Any]]: ...


class Document(Protocol):
    def get_element_by_id(self, element_id: str) -> Element | None: ...


class MemoryElement:
    """In-memory element; rendered content is the ``inner_html`` string itself."""

    def __init__(
        self,
        element_id: str,
        node_name: str = "DIV",
        *,
        inner_html: str = "",
        attributes: dict[str, str] | None = None,
        fields: list[tuple[str, Any]] | None = None,
    ) -> None:
        self.id = element_id
        self.node_name = node_name.upper()
        self.inner_html = inner_html
        self.attributes: dict[str, str] = dict(attributes or {})
        self.fields: list[tuple[str, Any]] = list(fields or [])
        self.scroll_top: float = 0
        self.scroll_left: float = 0
        self.value: Any = self.attributes.get("value", "")
        self.checked = "checked" in self.attributes
        self.hidden = False
        self.change_listeners: list[Callable[[MemoryElement], None]] = []
        self.document: MemoryDocument | None = None

    def clone(self) -> MemoryElement:
        copy = MemoryElement(
            self.id,
            self.node_name,
            inner_html=self.inner_html,
            attributes=self.attributes,
            fields=self.fields,
        )
        copy.value = self.value
        copy.checked = self.checked
        copy.hidden = self.hidden
        copy.change_listeners = list(self.change_listeners)
        return copy

    def replace_with(self, other: Element) -> None:
        if self.document is not None:
            self.document.swap(self, other)

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = str(value)

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    def hide(self) -> None:
        self.hidden = True

    def dispatch_change(self) -> None:
        for listener in list(self.change_listeners):
            listener(self)

    def form_fields(self) -> list[tuple[str, Any]]:
        return list(self.fields)

    def __repr__(self) -> str:
        return f"MemoryElement(id={self.id!r}, node_name={self.node_name!r})"


class MemoryDocument:
    """Flat id → element document."""

    def __init__(self) -> None:
        self._elements: dict[str, Element] = {}

    def add(self, element: MemoryElement) -> MemoryElement:
        element.document = self
        self._elements[element.id] = element
        return element

    def create(self, element_id: str, node_name: str = "DIV", **kwargs: Any) -> MemoryElement:
        return self.add(MemoryElement(element_id, node_name, **kwargs))

    def remove(self, element_id: str) -> None:
        self._elements.pop(element_id, None)

    def swap(self, old: Element, new: Element) -> None:
        for key, element in self._elements.items():
            if element is old:
                if isinstance(new, MemoryElement):
                    new.document = self
                self._elements[key] = new
                return

    def get_element_by_id(self, element_id: str) -> Element | None:
        return self._elements.get(element_id)
