from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..catalog import CatalogEntry
from ..intent import (
    detect_category_question,
    detect_menu_question,
    detect_order_type,
    detect_veg_question,
    has_change_cue,
    has_question_word,
    is_confirm_no,
    is_confirm_yes,
    is_done,
    looks_like_address,
)
from ..models.state import LineItem, merge_items
from ..store_manager import StoreConfig
from ..text import alias_pos, norm_text
from .quantity import extract_quantity
from .slots import SPICE_AMBIGUOUS, detect_option, detect_spice, find_size
from .types import Intent, InterpretResult


@dataclass(frozen=True)
class _Hit:
    entry: CatalogEntry
    start: int
    end: int


def _blank(t: str, span: Optional[Tuple[int, int]]) -> str:
    if not span:
        return t
    a, b = span
    return t[:a] + " " * (b - a) + t[b:]


def _find_hits(index: Sequence[CatalogEntry], t: str) -> List[_Hit]:
    """
    Longest alias first; a matched span is consumed so "double pepperoni" does not
    also yield "pepperoni". On a shared alias the earlier catalog entry wins.
    Returned in utterance order.
    """
    pairs = sorted(
        ((len(a), i, a) for i, e in enumerate(index) for a in e.aliases),
        key=lambda p: (-p[0], p[1]),
    )
    work = t
    claimed = set()
    hits: List[_Hit] = []
    for n, i, alias in pairs:
        if i in claimed:
            continue
        pos = alias_pos(work, alias)
        if pos < 0:
            continue
        claimed.add(i)
        hits.append(_Hit(index[i], pos, pos + n))
        work = work[:pos] + "_" * n + work[pos + n:]
    hits.sort(key=lambda h: h.start)
    return hits


def _size_and_spice(segment: str, sizes: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
    # the "medium" consumed as a size is not reused as a spice level
    size, span = find_size(segment, sizes)
    spice = detect_spice(_blank(norm_text(segment), span))
    return size, spice


def extract_items(
    index: Sequence[CatalogEntry],
    supported_sizes: Sequence[str],
    text: str,
) -> Tuple[List[LineItem], bool]:
    """
    Returns (items, spice_ambiguous).

    One matched entry: quantity, size and spice come from the whole utterance.
    Several entries: each takes the quantity, size and spice stated between the
    previous item and itself ("2 large pepperoni and a small hawaiian"); size and
    spice fall back to the whole utterance, quantity falls back to 1.

    When the whole utterance names more than one spice level, no spice-required
    item gets one: a level after one item would otherwise land on the next.
    """
    t = norm_text(text)
    if not t:
        return [], False

    hits = _find_hits(index, t)
    if not hits:
        return [], False

    g_qty = extract_quantity(t) or 1
    g_size, g_spice = _size_and_spice(t, supported_sizes)

    items: List[LineItem] = []
    ambiguous = False
    prev_end = 0
    for h in hits:
        e = h.entry
        if len(hits) == 1:
            qty, size, spice = g_qty, g_size, g_spice
        else:
            seg = t[prev_end:h.start]
            qty = extract_quantity(seg) or 1
            size, spice = _size_and_spice(seg, supported_sizes)
            size = size or g_size
            spice = SPICE_AMBIGUOUS if g_spice == SPICE_AMBIGUOUS else (spice or g_spice)
        prev_end = h.end

        li = LineItem(kind=e.kind, name=e.name, qty=qty, requires_spice=e.requires_spice)
        if e.kind == "pizza":
            li.size = size
        if e.requires_spice:
            if spice == SPICE_AMBIGUOUS:
                ambiguous = True
            elif spice:
                li.spice = spice
        for key, choices in e.options.items():
            found = detect_option(t, choices)
            if found:
                li.options[key] = found
        items.append(li)

    return merge_items([], items), ambiguous


def interpret(index: Sequence[CatalogEntry], settings: StoreConfig, text: str) -> InterpretResult:
    """
    Rule-based interpretation of one customer utterance.

    Questions are classified before extraction so "what pizzas do you have" never
    adds a pizza. Nothing matched -> empty result; this never guesses.
    """
    t = norm_text(text)
    if not t:
        return InterpretResult.empty()

    res = InterpretResult(
        change_cue=has_change_cue(text),
        order_type=detect_order_type(text),
    )

    # "can I get 2 large pepperoni pizzas?" names an item: the "?" alone is not a question
    asked = has_question_word(text) or not _find_hits(index, t)

    if asked and detect_veg_question(text):
        res.intent = Intent.VEG_QUESTION
        return res

    kind = detect_category_question(text) if asked else None
    if kind:
        res.intent = Intent.CATEGORY_QUESTION
        res.category = kind
        return res

    if detect_menu_question(text):
        res.intent = Intent.MENU_QUESTION
        return res

    items, ambiguous = extract_items(index, settings.supported_sizes, text)
    res.matched_items = items
    res.spice_ambiguous = ambiguous

    if items:
        res.intent = Intent.ORDER
    elif is_confirm_yes(text):
        res.intent = Intent.CONFIRM_YES
    elif is_confirm_no(text):
        res.intent = Intent.CONFIRM_NO
    elif is_done(text):
        res.intent = Intent.DONE
    elif res.order_type is not None:
        res.intent = Intent.ORDER_TYPE
    elif looks_like_address(text):
        res.intent = Intent.ADDRESS
    return res
