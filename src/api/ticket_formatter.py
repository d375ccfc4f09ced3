from __future__ import annotations

from typing import Any, Dict, List

from .models.ticket import Ticket

RULE = "-" * 32


def _money(v: float, currency: str) -> str:
    sym = "$" if currency in ("CAD", "USD") else f"{currency} "
    return f"{sym}{v:.2f}"


def _item_line(it: Dict[str, Any]) -> str:
    parts: List[str] = [f"{int(it.get('qty') or 1)}x"]
    if it.get("kind") == "pizza" and it.get("size"):
        parts.append(str(it["size"]))
    parts.append(str(it.get("name") or "?"))
    line = " ".join(parts)

    extras: List[str] = []
    if it.get("spice"):
        extras.append(f"Spice: {it['spice']}")
    opts = it.get("options") or {}
    if opts.get("type"):
        extras.append(str(opts["type"]))
    if opts.get("flavor"):
        extras.append(str(opts["flavor"]))
    if extras:
        line += " - " + ", ".join(extras)
    return line


def format_for_kitchen(ticket: Ticket) -> str:
    """Plain-text ticket for the kitchen printer."""
    out: List[str] = [
        f"ORDER #{ticket.id if ticket.id is not None else '-'}",
        ticket.store_name or ticket.store_id,
        RULE,
        f"{(ticket.order_type or 'Pickup').upper()}",
    ]
    if ticket.address:
        out.append(f"Address: {ticket.address}")
    out.append(RULE)

    if ticket.items:
        out.extend(_item_line(it) for it in ticket.items)
    else:
        out.append("(no items)")

    out.append(RULE)
    out.append(f"Subtotal: {_money(ticket.subtotal, ticket.currency)}")
    out.append(f"Tax: {_money(ticket.tax, ticket.currency)}")
    out.append(f"TOTAL: {_money(ticket.total, ticket.currency)}")
    if ticket.skipped:
        out.append(f"UNPRICED: {', '.join(ticket.skipped)}")
    return "\n".join(out) + "\n"
