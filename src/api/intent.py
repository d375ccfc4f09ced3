# src/api/intent.py
from __future__ import annotations

import re
from typing import Optional, Tuple

from .models.state import OrderType
from .text import contains_phrase, norm_text


def _has_any(t: str, phrases) -> bool:
    return any(contains_phrase(t, p) for p in phrases)


# -------------------------
# Menu and category questions
# -------------------------
_MENU_CUES = (
    "menu",
    "what do you have",
    "what do you sell",
    "what can i order",
    "what can i get",
    "show menu",
    "options",
)

# A category word alone is an order ("large pepperoni pizza"); it needs one of these
_QUESTION_CUES = (
    "what",
    "whats",
    "which",
    "do you have",
    "got any",
    "have any",
    "list",
    "show",
    "options",
    "kinds",
    "types",
    "available",
)

# kind -> words that name the category
CATEGORY_WORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("pizza", ("pizza", "pizzas")),
    ("wings", ("wing", "wings")),
    ("pasta", ("pasta", "pastas")),
    ("salad", ("salad", "salads")),
    ("side", ("side", "sides")),
    ("beverage", ("drink", "drinks", "beverage", "beverages", "soda", "sodas", "pop")),
)

CATEGORY_LABELS = {
    "pizza": "pizzas",
    "wings": "wings",
    "pasta": "pastas",
    "salad": "salads",
    "side": "sides",
    "beverage": "beverages",
}

_VEG_WORDS = ("veg", "veggie", "veggies", "vegetarian")


def _is_question(raw: str, t: str) -> bool:
    return "?" in (raw or "") or _has_any(t, _QUESTION_CUES)


def has_question_word(text: str) -> bool:
    """A question cue word; a trailing "?" alone does not count."""
    t = norm_text(text)
    return bool(t) and _has_any(t, _QUESTION_CUES)


def detect_menu_question(text: str) -> bool:
    """General "what's on the menu" style question."""
    t = norm_text(text)
    if not t:
        return False
    return _has_any(t, _MENU_CUES)


def detect_category_question(text: str) -> Optional[str]:
    """
    Returns the line item kind being asked about, or None.
    Requires a category word AND a question cue.
    """
    t = norm_text(text)
    if not t or not _is_question(text, t):
        return None
    for kind, words in CATEGORY_WORDS:
        if _has_any(t, words):
            return kind
    return None


def detect_veg_question(text: str) -> bool:
    t = norm_text(text)
    if not t or not _is_question(text, t):
        return False
    return _has_any(t, _VEG_WORDS)


# -------------------------
# Confirmation
# -------------------------
_YES_EXACT = {
    "yes",
    "y",
    "yeah",
    "yep",
    "yup",
    "correct",
    "right",
    "confirm",
    "ok",
    "okay",
    "sure",
    "perfect",
    "sounds good",
    "looks good",
    "thats right",
    "thats correct",
    "that is correct",
    "yes please",
}
_YES_LEAD = ("yes", "yeah", "yep", "yup", "correct", "ok", "okay", "sure")

_NO_EXACT = {"no", "nope", "nah", "wrong", "incorrect", "not correct"}
_NO_CUES = ("change", "not correct", "wrong")

_CHANGE_CUES = ("change", "actually", "instead", "replace", "no i want")

_DONE_CUES = ("thats all", "done", "finish", "finished", "no more", "nothing else", "all good")


def has_change_cue(text: str) -> bool:
    t = norm_text(text)
    return bool(t) and _has_any(t, _CHANGE_CUES)


def is_confirm_yes(text: str) -> bool:
    t = norm_text(text)
    if not t:
        return False
    if t in _YES_EXACT:
        return True
    first = t.split()[0]
    if first in _YES_LEAD and not has_change_cue(t) and not _has_any(t, _NO_CUES):
        return True
    return contains_phrase(t, "confirm") or contains_phrase(t, "confirmed")


def is_confirm_no(text: str) -> bool:
    t = norm_text(text)
    if not t:
        return False
    if t in _NO_EXACT:
        return True
    if t.startswith("no "):
        return True
    return _has_any(t, _NO_CUES)


def is_done(text: str) -> bool:
    t = norm_text(text)
    return bool(t) and _has_any(t, _DONE_CUES)


# -------------------------
# Order type and address
# -------------------------
_PICKUP_CUES = (
    "pickup",
    "pick up",
    "picking up",
    "picup",
    "carryout",
    "carry out",
    "takeaway",
    "take away",
    "takeout",
    "take out",
)
_DELIVERY_CUES = ("delivery", "deliver", "delivered", "drop off", "dropoff")


def detect_order_type(text: str) -> Optional[OrderType]:
    t = norm_text(text)
    if not t:
        return None
    if _has_any(t, _PICKUP_CUES):
        return OrderType.PICKUP
    if _has_any(t, _DELIVERY_CUES):
        return OrderType.DELIVERY
    return None


_STREET_TOKENS = (
    "st",
    "street",
    "ave",
    "avenue",
    "rd",
    "road",
    "blvd",
    "boulevard",
    "dr",
    "drive",
    "way",
    "lane",
    "ln",
    "ct",
    "court",
    "pl",
    "place",
    "cres",
    "crescent",
    "hwy",
    "highway",
    "unit",
    "apt",
    "suite",
)
_DIGIT_RX = re.compile(r"\d")


def looks_like_address(text: str) -> bool:
    """A digit plus a street word ("123 Main St") or a unit marker ("#4")."""
    raw = text or ""
    if not _DIGIT_RX.search(raw):
        return False
    if "#" in raw:
        return True
    return _has_any(norm_text(raw), _STREET_TOKENS)
