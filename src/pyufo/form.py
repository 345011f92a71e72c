"""Multipart form payloads posted through a connection."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import aiohttp

from pyufo.exceptions import UfoFormError


@dataclasses.dataclass(frozen=True)
class FileField:
    """A file entry of a multipart form."""

    filename: str
    content: bytes = b""
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class MultipartForm:
    """Ordered list of ``(name, value)`` entries, repeated names allowed."""

    def __init__(self, entries: Iterable[tuple[str, Any]] = ()) -> None:
        self._entries: list[tuple[str, Any]] = []
        for name, value in entries:
            self.append(name, value)

    def append(self, name: str, value: Any) -> None:
        if not isinstance(value, FileField):
            value = "" if value is None else str(value)
        self._entries.append((str(name), value))

    def delete(self, name: str) -> None:
        """Remove every entry called *name*."""
        self._entries = [entry for entry in self._entries if entry[0] != name]

    def get_all(self, name: str) -> list[Any]:
        return [value for key, value in self._entries if key == name]

    def entries(self) -> list[tuple[str, Any]]:
        return list(self._entries)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"MultipartForm({self._entries!r})"

    @classmethod
    def from_payload(cls, payload: Any) -> MultipartForm:
        """Normalise *payload* into a form.

        Accepts an existing form (returned as is), a mapping (list and tuple
        values become repeated fields), an object exposing ``form_fields()``
        such as a document element, an iterable of ``(name, value)`` pairs,
        or ``None`` for an empty form.
        """
        if isinstance(payload, MultipartForm):
            return payload
        if payload is None:
            return cls()
        if isinstance(payload, Mapping):
            form = cls()
            for name, value in payload.items():
                if isinstance(value, (list, tuple)):
                    for item in value:
                        form.append(name, item)
                else:
                    form.append(name, value)
            return form
        form_fields = getattr(payload, "form_fields", None)
        if callable(form_fields):
            return cls(form_fields())
        if isinstance(payload, (str, bytes, bool)):
            raise UfoFormError(f"Cannot build a form from {type(payload).__name__}")
        try:
            return cls(payload)
        except (TypeError, ValueError) as exc:
            raise UfoFormError(f"Form entries must be (name, value) pairs: {payload!r}") from exc

    def strip_empty_files(self) -> None:
        """Drop file fields without content.

        Some browsers encode an untouched file input as an empty file part,
        which several servers reject. The whole field name is removed, the
        same way ``FormData.delete`` does.
        """
        for name, value in self.entries():
            if isinstance(value, FileField) and value.size == 0:
                self.delete(name)

    def to_multipart(self) -> aiohttp.MultipartWriter:
        """Encode as multipart/form-data, even when no file is present."""
        writer = aiohttp.MultipartWriter("form-data")
        for name, value in self._entries:
            if isinstance(value, FileField):
                part = writer.append(value.content, {"Content-Type": value.content_type})
                part.set_content_disposition("form-data", name=name, filename=value.filename)
            else:
                part = writer.append(value)
                part.set_content_disposition("form-data", name=name)
        return writer
