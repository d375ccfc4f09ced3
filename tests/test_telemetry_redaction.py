from __future__ import annotations

import pytest

from src.api.telemetry.emitter import MAX_UTTERANCE, redact_pii_mvp


@pytest.mark.parametrize("raw", [
    "email me at test@example.com",
    "call me back at 604-555-0164",
    "my card is 4111111111111111",
])
def test_redact_pii_mvp_masks_sensitive(raw: str):
    red, changed, trunc = redact_pii_mvp(raw)
    assert "test@example.com" not in red
    assert "555-0164" not in red
    assert "4111111111111111" not in red
    assert changed is True
    assert trunc == "NONE"


def test_order_text_and_house_numbers_survive():
    for raw in ["2 large pepperoni, mild", "123 Main St", "10 wings"]:
        red, changed, trunc = redact_pii_mvp(raw)
        assert red == raw
        assert changed is False


def test_long_utterance_is_cut_head_and_tail():
    red, changed, trunc = redact_pii_mvp("a" * 60 + "b" * 140)
    assert len(red) <= MAX_UTTERANCE
    assert red.startswith("a" * 48)
    assert red.endswith("b" * 48)
    assert changed is True
    assert trunc == "HEAD_TAIL_48_48"


def test_empty_input():
    assert redact_pii_mvp("   ") == ("", False, "NONE")
