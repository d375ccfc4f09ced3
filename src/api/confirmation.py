from __future__ import annotations

from typing import List

from .models.state import LineItem, OrderType, Session


def describe_item(item: LineItem) -> str:
    """
    "2 Large Pepperoni (Mild)", "10 Wings (Boneless, BBQ)", "1 Coke".
    Size only for pizzas, spice only when set.
    """
    parts: List[str] = [str(item.qty or 1)]
    if item.kind == "pizza" and item.size:
        parts.append(item.size)
    parts.append(item.name)
    out = " ".join(parts)

    extras: List[str] = []
    if item.spice:
        extras.append(item.spice)
    for key in ("type", "flavor"):
        v = item.options.get(key)
        if v:
            extras.append(v)
    if extras:
        out += f" ({', '.join(extras)})"
    return out


def render(session: Session) -> str:
    lines = [f"{i}. {describe_item(it)}." for i, it in enumerate(session.line_items, start=1)]
    body = " ".join(lines) if lines else "No items."

    parts = ["Please confirm your order.", body]
    if session.order_type:
        parts.append(f"Order type: {session.order_type.value}.")
        if session.order_type == OrderType.DELIVERY:
            addr = (session.address or "").strip().rstrip(".")
            parts.append(f"Address: {addr or '(missing)'}.")
    parts.append("Is that correct?")
    return " ".join(parts)
