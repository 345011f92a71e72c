from __future__ import annotations

from pyufo._redact import redact_for_log
from pyufo.form import FileField, MultipartForm


def test_redact_for_log_masks_mapping_fields() -> None:
    payload = {
        "user": "alice",
        "Password": "pw",
        "nested": {"csrf_token": "abc", "value": 1},
    }

    redacted = redact_for_log(payload)
    assert redacted["Password"] == "<redacted>"
    assert redacted["nested"]["csrf_token"] == "<redacted>"
    assert redacted["nested"]["value"] == 1
    assert redacted["user"] == "alice"


def test_redact_for_log_masks_form_entries_by_name() -> None:
    form = MultipartForm(
        [
            ("user", "alice"),
            ("new_password", "pw"),
            ("pin", "1234"),
            ("pinned", "yes"),
            ("avatar", FileField("a.png", b"\x89PNG")),
        ]
    )

    redacted = redact_for_log(form.entries())
    assert redacted == [
        ("user", "alice"),
        ("new_password", "<redacted>"),
        ("pin", "<redacted>"),
        ("pinned", "yes"),
        ("avatar", "<file:a.png:4b>"),
    ]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"content": long_value}, max_string=10)
    assert redacted["content"].startswith("x" * 10)
    assert "<truncated>" in redacted["content"]
    assert redact_for_log(b"abc") == "<bytes:3b>"
