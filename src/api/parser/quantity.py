from __future__ import annotations

import re
from typing import Optional

from ..text import norm_text

QTY_MIN = 1
QTY_MAX = 49

# Only the small words customers actually say for a count
_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
}

_INT_RX = re.compile(r"\b(\d+)\b")


def extract_quantity(text: str) -> Optional[int]:
    """
    Deterministically extract an order quantity from free text.

    Rules:
    - First standalone integer token in 1..49 wins ("2 large", "10 wings").
      Tokens outside the range are skipped, not clamped ("0", "123").
    - Otherwise the words one/two/three.
    - Otherwise None; callers default to 1.
    """
    if not text:
        return None

    t = norm_text(text)

    for m in _INT_RX.finditer(t):
        val = int(m.group(1))
        if QTY_MIN <= val <= QTY_MAX:
            return val

    for tok in t.split():
        if tok in _WORDS:
            return _WORDS[tok]

    return None
