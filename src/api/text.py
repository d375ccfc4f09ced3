# src/api/text.py
from __future__ import annotations

import re

_WS_RX = re.compile(r"\s+")
_QUOTE_RX = re.compile(r"['\"‘’`]")
_KEEP_RX = re.compile(r"[^a-z0-9\s]+")


def norm_text(s: str) -> str:
    """
    Normalizes utterances and catalog strings for alias matching.
    - lowercases
    - drops apostrophes/quotes ("that's" -> "thats")
    - removes other punctuation
    - collapses whitespace
    Digits are preserved.
    """
    t = (s or "").strip().lower()
    t = _QUOTE_RX.sub("", t)
    t = _KEEP_RX.sub(" ", t)
    t = _WS_RX.sub(" ", t).strip()
    return t


def contains_phrase(text_norm: str, phrase_norm: str) -> bool:
    """Word-bounded containment on already-normalized strings."""
    if not phrase_norm:
        return False
    return f" {phrase_norm} " in f" {text_norm} "


def alias_pos(text_norm: str, alias_norm: str) -> int:
    """
    Start offset of the first alias occurrence that begins on a word boundary, else -1.
    The tail stays open so plurals still match ("pepperonis", "cokes").
    """
    if not alias_norm:
        return -1
    return f" {text_norm}".find(f" {alias_norm}")
