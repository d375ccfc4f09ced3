from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from .models.state import LineItem, Session
from .store_manager import StoreConfig
from .text import norm_text

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(v: Decimal) -> Decimal:
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(raw: Any) -> Optional[Decimal]:
    if isinstance(raw, bool) or raw is None:
        return None
    try:
        d = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() and d >= 0 else None


@dataclass(frozen=True)
class PricedLine:
    name: str
    qty: int
    size: Optional[str]
    unit_price: Decimal
    line_total: Decimal


@dataclass
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str = "CAD"
    lines: List[PricedLine] = field(default_factory=list)
    # Human readable "Pepperoni (Jumbo)" for every line that had no price
    skipped: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "total": float(self.total),
            "currency": self.currency,
            "skipped": list(self.skipped),
        }


def _lookup(prices: Dict[str, Any], name: str) -> Any:
    if name in prices:
        return prices[name]
    key = norm_text(name)
    for k, v in prices.items():
        if norm_text(str(k)) == key:
            return v
    return None


def unit_price(store: StoreConfig, item: LineItem) -> Optional[Decimal]:
    """
    Sized prices ({"Small": 12.99, ...}) for pizzas, a flat number for the rest.
    None when the table has no price for this item (and size).
    """
    raw = _lookup(store.prices or {}, item.name)
    if raw is None:
        return None

    if isinstance(raw, dict):
        if not item.size:
            return None
        by_size = {str(k).strip().lower(): v for k, v in raw.items()}
        return _to_decimal(by_size.get(item.size.strip().lower()))

    return _to_decimal(raw)


def price(store: StoreConfig, session: Session) -> PriceBreakdown:
    subtotal = Decimal("0")
    lines: List[PricedLine] = []
    skipped: List[str] = []

    for item in session.line_items:
        unit = unit_price(store, item)
        label = f"{item.name} ({item.size})" if item.size else item.name
        if unit is None:
            logger.warning(
                "pricing: no price for %s in store %s, line skipped",
                label,
                store.store_id,
            )
            skipped.append(label)
            continue

        qty = max(1, int(item.qty or 1))
        line_total = unit * qty
        subtotal += line_total
        lines.append(PricedLine(item.name, qty, item.size, _money(unit), _money(line_total)))

    rate = _to_decimal(store.tax_rate) or Decimal("0")
    subtotal = _money(subtotal)
    tax = _money(subtotal * rate)
    return PriceBreakdown(
        subtotal=subtotal,
        tax=tax,
        total=_money(subtotal + tax),
        currency=store.currency,
        lines=lines,
        skipped=skipped,
    )
