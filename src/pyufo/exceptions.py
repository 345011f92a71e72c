"""Custom exception hierarchy for pyufo."""

from __future__ import annotations


class UfoError(Exception):
    """Base exception for all pyufo errors."""


class UfoConfigError(UfoError):
    """Invalid configuration."""


class UfoTransportError(UfoError):
    """HTTP-level failure (network error, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class UfoParseError(UfoError):
    """Reply body could not be decoded into an instruction batch.

    ``content`` holds the part of the body that was handed to the JSON
    parser, so it can be written to the diagnostic log.
    """

    def __init__(self, message: str, *, content: str = "") -> None:
        self.content = content
        super().__init__(message)


class UfoMissingTargetError(UfoError):
    """An instruction referenced a document element id that does not exist."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Missing target element: {target}")


class UfoUnknownCallbackError(UfoError):
    """A callback binding named a function that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown callback function: {name}")


class UfoFormError(UfoError):
    """A post payload could not be turned into form entries."""
