from __future__ import annotations

import pytest

from pyufo.config import UfoConfig
from pyufo.exceptions import UfoConfigError


def test_defaults_match_wire_conventions() -> None:
    config = UfoConfig()

    assert config.base_url == ""
    assert config.cache_bust_param == "ufo"
    assert config.output_retry_delay == pytest.approx(0.1)
    assert config.poll_jitter == (0.5, 1.25)
    assert config.status_callback_points == {403: "forbidden"}
    assert "user-agent" in config.headers


@pytest.mark.parametrize(
    "overrides",
    [
        {"cache_bust_param": ""},
        {"output_retry_delay": 0},
        {"poll_jitter": (1.0, 1.0)},
        {"poll_jitter": (0.0, 1.0)},
        {"request_timeout": -1.0},
    ],
)
def test_invalid_values_raise_config_error(overrides: dict[str, object]) -> None:
    with pytest.raises(UfoConfigError):
        UfoConfig(**overrides)  # type: ignore[arg-type]
