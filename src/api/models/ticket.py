from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..pricing import PriceBreakdown
from ..store_manager import StoreConfig
from .state import OrderType, Session


@dataclass
class Ticket:
    """A confirmed, priced order handed to the kitchen. id is assigned by the repo."""

    store_id: str
    store_name: str
    session_id: str
    order_type: Optional[str]
    address: Optional[str]
    items: List[Dict[str, Any]]
    subtotal: float
    tax: float
    total: float
    currency: str = "CAD"
    skipped: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "storeName": self.store_name,
            "sessionId": self.session_id,
            "createdAt": self.created_at,
            "orderType": self.order_type,
            "address": self.address,
            "items": [dict(x) for x in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "total": self.total,
            "currency": self.currency,
            "skipped": list(self.skipped),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Ticket":
        tid = data.get("id")
        return cls(
            id=int(tid) if tid is not None else None,
            store_id=str(data.get("storeId", "") or ""),
            store_name=str(data.get("storeName", "") or ""),
            session_id=str(data.get("sessionId", "") or ""),
            created_at=str(data.get("createdAt", "") or ""),
            order_type=data.get("orderType"),
            address=data.get("address"),
            items=list(data.get("items") or []),
            subtotal=float(data.get("subtotal", 0) or 0),
            tax=float(data.get("tax", 0) or 0),
            total=float(data.get("total", 0) or 0),
            currency=str(data.get("currency", "CAD") or "CAD"),
            skipped=list(data.get("skipped") or []),
        )


def ticket_from_session(store: StoreConfig, session: Session, breakdown: PriceBreakdown) -> Ticket:
    address = session.address if session.order_type == OrderType.DELIVERY else None
    return Ticket(
        store_id=store.store_id,
        store_name=store.name,
        session_id=session.session_id,
        order_type=session.order_type.value if session.order_type else None,
        address=address,
        items=[li.to_dict() for li in session.line_items],
        subtotal=float(breakdown.subtotal),
        tax=float(breakdown.tax),
        total=float(breakdown.total),
        currency=breakdown.currency,
        skipped=list(breakdown.skipped),
    )
