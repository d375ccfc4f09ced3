from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from ..text import contains_phrase, norm_text

# -------------------------
# Size
# -------------------------
_HEAT_WORDS = ("spicy", "spice", "heat", "hot")

_SIZE_RX: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("Large", re.compile(r"\b(?:large|larges|lg)\b")),
    # "medium spicy" / "medium heat" is a spice level, not a size
    ("Medium", re.compile(r"\b(?:medium|med)\b(?!\s+(?:%s)\b)" % "|".join(_HEAT_WORDS))),
    ("Small", re.compile(r"\b(?:small|smalls|sm)\b")),
)

# Single-letter answers only count when they are the whole reply
_SIZE_LETTERS = {"l": "Large", "m": "Medium", "s": "Small"}


def find_size(text: str, supported_sizes: Sequence[str]) -> Tuple[Optional[str], Optional[Tuple[int, int]]]:
    """
    Returns (size, span) where span indexes into norm_text(text).
    Priority is large, medium, small. Sizes the store does not sell are ignored.
    """
    t = norm_text(text)
    if not t:
        return None, None

    supported = {s.lower() for s in supported_sizes}

    letter = _SIZE_LETTERS.get(t)
    if letter:
        return (letter, (0, len(t))) if letter.lower() in supported else (None, None)

    for size, rx in _SIZE_RX:
        if size.lower() not in supported:
            continue
        m = rx.search(t)
        if m:
            return size, m.span()
    return None, None


def detect_size(text: str, supported_sizes: Sequence[str]) -> Optional[str]:
    size, _ = find_size(text, supported_sizes)
    return size


# -------------------------
# Spice
# -------------------------
SPICE_AMBIGUOUS = "__AMBIGUOUS__"
SPICE_LEVELS: Tuple[str, ...] = ("Mild", "Medium", "Hot")

_SPICE_PHRASES: Tuple[Tuple[str, str], ...] = (
    ("not spicy", "Mild"),
    ("not too spicy", "Mild"),
    ("less spicy", "Mild"),
    ("low spicy", "Mild"),
    ("no spice", "Mild"),
    ("mild", "Mild"),
    ("medium spicy", "Medium"),
    ("medium spice", "Medium"),
    ("medium heat", "Medium"),
    ("medium hot", "Medium"),
    ("medium", "Medium"),
    ("mid", "Medium"),
    ("extra spicy", "Hot"),
    ("very spicy", "Hot"),
    ("extra hot", "Hot"),
    ("spicy", "Hot"),
    ("hot", "Hot"),
)

# Longest phrase first so "not spicy" never also counts as "spicy"
_SPICE_ORDERED = sorted(_SPICE_PHRASES, key=lambda p: len(p[0]), reverse=True)


def detect_spice(text: str) -> Optional[str]:
    """
    Mild / Medium / Hot, SPICE_AMBIGUOUS when the text names more than one level,
    None when it names none.
    """
    padded = f" {norm_text(text)} "
    if not padded.strip():
        return None

    hits: List[str] = []
    for phrase, level in _SPICE_ORDERED:
        needle = f" {phrase} "
        if needle in padded:
            padded = padded.replace(needle, " " + "_" * len(phrase) + " ")
            if level not in hits:
                hits.append(level)

    if not hits:
        return None
    if len(hits) > 1:
        return SPICE_AMBIGUOUS
    return hits[0]


# -------------------------
# Catalog-declared options (wing type, wing flavor)
# -------------------------
def _choice_forms(choice: str) -> List[str]:
    forms = [norm_text(choice)]
    with_and = norm_text(choice.replace("&", " and "))
    if with_and not in forms:
        forms.append(with_and)
    return [f for f in forms if f]


def detect_option(text: str, choices: Sequence[str]) -> Optional[str]:
    """
    Returns the configured choice named in the text, longest match first
    ("Honey Hot" beats "Hot"). Choices keep their configured spelling.
    """
    t = norm_text(text)
    if not t or not choices:
        return None

    best: Optional[str] = None
    best_len = 0
    for choice in choices:
        for form in _choice_forms(choice):
            if len(form) > best_len and contains_phrase(t, form):
                best, best_len = choice, len(form)
    return best


# -------------------------
# Phrasing helpers
# -------------------------
def or_list(choices: Sequence[str]) -> str:
    """["A"] -> "A", ["A", "B"] -> "A or B", ["A", "B", "C"] -> "A, B, or C"."""
    items = [str(c) for c in choices]
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} or {items[1]}"
    return ", ".join(items[:-1]) + f", or {items[-1]}"
