from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .store_manager import StoreConfig, StoreConfigError
from .text import norm_text

logger = logging.getLogger(__name__)

KINDS: Tuple[str, ...] = ("pizza", "side", "beverage", "pasta", "salad", "wings")

# menu key -> line item kind (pizzas are handled separately: grouped by sub-category)
_FLAT_SECTIONS: Tuple[Tuple[str, str], ...] = (
    ("sides", "side"),
    ("beverages", "beverage"),
    ("pastas", "pasta"),
    ("salads", "salad"),
    ("wings", "wings"),
)

# Option keys the dialogue knows how to ask for
OPTION_KEYS: Tuple[str, ...] = ("type", "flavor")


@dataclass(frozen=True)
class CatalogEntry:
    kind: str
    name: str
    aliases: Tuple[str, ...]  # normalized, deduplicated, name first
    requires_spice: bool = False
    is_vegetarian: bool = False
    category: Optional[str] = None  # pizza sub-category
    options: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def option_choices(self, option: str) -> Tuple[str, ...]:
        return self.options.get(option, ())


def _as_list(x: Any) -> List[Any]:
    return x if isinstance(x, list) else []


def _alias_set(name: str, aliases: List[Any]) -> Tuple[str, ...]:
    out: List[str] = []
    for raw in [name, *aliases]:
        a = norm_text(str(raw or ""))
        if a and a not in out:
            out.append(a)
    return tuple(out)


def _options_from(raw: Any, item_name: str) -> Dict[str, Tuple[str, ...]]:
    if not isinstance(raw, dict):
        return {}
    out: Dict[str, Tuple[str, ...]] = {}
    for k, v in raw.items():
        key = str(k).strip()
        if key not in OPTION_KEYS:
            logger.warning("catalog: dropping unsupported option %r on %s", key, item_name)
            continue
        choices = tuple(str(c).strip() for c in _as_list(v) if str(c).strip())
        if choices:
            out[key] = choices
    return out


def _entry(kind: str, raw: Any, *, category: Optional[str] = None) -> Optional[CatalogEntry]:
    if not isinstance(raw, dict):
        return None
    name = str(raw.get("name") or "").strip()
    if not norm_text(name):
        logger.warning("catalog: skipping %s entry without a usable name: %r", kind, raw)
        return None

    is_pizza = kind == "pizza"
    return CatalogEntry(
        kind=kind,
        name=name,
        aliases=_alias_set(name, _as_list(raw.get("aliases"))),
        requires_spice=bool(raw.get("requiresSpice")) if is_pizza else False,
        is_vegetarian=bool(raw.get("isVegetarian", raw.get("veg"))) if is_pizza else False,
        category=category,
        options=_options_from(raw.get("options"), name) if kind == "wings" else {},
    )


def build_index(store: StoreConfig) -> List[CatalogEntry]:
    """
    Flatten the store's hierarchical menu into orderable entries.

    Order is stable: pizzas by sub-category in config order, then sides,
    beverages, pastas, salads, wings. Callers rely on this order for
    first-match-wins tie breaking.
    """
    menu = store.menu or {}
    entries: List[CatalogEntry] = []

    pizzas = menu.get("pizzas") or {}
    if isinstance(pizzas, dict):
        for cat, items in pizzas.items():
            for raw in _as_list(items):
                e = _entry("pizza", raw, category=str(cat))
                if e:
                    entries.append(e)
    else:
        # flat list of pizzas is accepted too
        for raw in _as_list(pizzas):
            e = _entry("pizza", raw)
            if e:
                entries.append(e)

    for section, kind in _FLAT_SECTIONS:
        for raw in _as_list(menu.get(section)):
            e = _entry(kind, raw)
            if e:
                entries.append(e)

    return entries


def ensure_orderable(store: StoreConfig) -> List[CatalogEntry]:
    """
    A conversation must not start against an empty menu or a store without a
    price table. Returns the built index on success.
    """
    index = build_index(store)
    if not index:
        raise StoreConfigError(f"store {store.store_id}: menu has no orderable items")
    if not store.prices:
        raise StoreConfigError(f"store {store.store_id}: price table is empty")
    return index


# -------------------------
# Lookups
# -------------------------
def find_entry(index: List[CatalogEntry], kind: str, name: str) -> Optional[CatalogEntry]:
    for e in index:
        if e.kind == kind and e.name == name:
            return e
    return None


def entries_of_kind(index: List[CatalogEntry], kind: str) -> List[CatalogEntry]:
    return [e for e in index if e.kind == kind]


def vegetarian_pizzas(index: List[CatalogEntry]) -> List[CatalogEntry]:
    return [e for e in index if e.kind == "pizza" and e.is_vegetarian]


def match_name(index: List[CatalogEntry], raw_name: str) -> Optional[CatalogEntry]:
    """
    Resolve a free-text item name (e.g. from the AI interpreter) to an entry.
    Exact alias match first, then the entry with the longest alias occurring in
    the text ("double pepperoni pizza" is Double Pepperoni, not Pepperoni).
    """
    n = norm_text(raw_name)
    if not n:
        return None
    for e in index:
        if n in e.aliases:
            return e
    best: Optional[CatalogEntry] = None
    best_len = 0
    for e in index:
        for a in e.aliases:
            if len(a) > best_len and f" {a} " in f" {n} ":
                best, best_len = e, len(a)
    return best
