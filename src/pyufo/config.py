"""Client configuration for pyufo."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping

from pyufo._constants import (
    CACHE_BUST_PARAM,
    OUTPUT_RETRY_DELAY,
    POLL_JITTER,
    STATUS_CALLBACK_POINTS,
    USER_AGENT,
)
from pyufo.exceptions import UfoConfigError


@dataclasses.dataclass(frozen=True)
class UfoConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Prefix prepended to every request URL. ``UfoClient.set_root``
        replaces it at runtime.
    cache_bust_param : str
        Name of the random query parameter appended to every request URL.
    output_retry_delay : float
        Seconds to wait before retrying an ``output`` instruction whose
        target element does not exist yet. Only one retry is made.
    poll_jitter : tuple[float, float]
        Lower (inclusive) and upper (exclusive) bound of the random factor
        the poll interval is scaled by before each re-poll.
    status_callback_points : Mapping[int, str]
        Non-success HTTP statuses mapped to the callback point fired for
        them. Any other non-success status is ignored.
    request_timeout : float or None
        Total timeout in seconds for a single request. ``None`` keeps the
        aiohttp default.
    headers : Mapping[str, str]
        Extra headers sent with every request.
    """

    base_url: str = ""
    cache_bust_param: str = CACHE_BUST_PARAM
    output_retry_delay: float = OUTPUT_RETRY_DELAY
    poll_jitter: tuple[float, float] = POLL_JITTER
    status_callback_points: Mapping[int, str] = dataclasses.field(
        default_factory=lambda: dict(STATUS_CALLBACK_POINTS)
    )
    request_timeout: float | None = None
    headers: Mapping[str, str] = dataclasses.field(default_factory=lambda: {"user-agent": USER_AGENT})

    def __post_init__(self) -> None:
        if not self.cache_bust_param:
            raise UfoConfigError("cache_bust_param must be non-empty")
        if self.output_retry_delay <= 0:
            raise UfoConfigError(f"output_retry_delay must be positive, got {self.output_retry_delay}")
        low, high = self.poll_jitter
        if low <= 0 or high <= low:
            raise UfoConfigError(f"poll_jitter must be an increasing positive range, got {self.poll_jitter}")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise UfoConfigError(f"request_timeout must be positive, got {self.request_timeout}")
