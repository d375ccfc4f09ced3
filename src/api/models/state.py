from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple


class OrderType(str, Enum):
    PICKUP = "Pickup"
    DELIVERY = "Delivery"

    @classmethod
    def parse(cls, raw: Any) -> Optional["OrderType"]:
        v = str(raw or "").strip().lower()
        for ot in cls:
            if ot.value.lower() == v:
                return ot
        return None


class SlotType(str, Enum):
    SIZE = "size"
    SPICE = "spice"
    WING_TYPE = "wingType"
    WING_FLAVOR = "wingFlavor"
    ORDER_TYPE = "orderType"
    ADDRESS = "address"


# slot -> option key on the line item
OPTION_SLOTS: Dict[str, SlotType] = {
    "type": SlotType.WING_TYPE,
    "flavor": SlotType.WING_FLAVOR,
}


@dataclass
class LineItem:
    kind: str
    name: str
    qty: int = 1
    size: Optional[str] = None
    spice: Optional[str] = None
    requires_spice: bool = False
    options: Dict[str, str] = field(default_factory=dict)

    def merge_key(self) -> Tuple[Any, ...]:
        return (self.kind, self.name, self.size or None, tuple(sorted(self.options.items())))

    def missing_slot(self, option_keys: Sequence[str] = ()) -> Optional[SlotType]:
        """
        First unfilled slot in asking order, None when the item is slot-complete.
        option_keys are the option keys the catalog entry declares.
        """
        if self.kind == "pizza":
            if not self.size:
                return SlotType.SIZE
            if self.requires_spice and not self.spice:
                return SlotType.SPICE
        for key in ("type", "flavor"):
            if key in option_keys and not self.options.get(key):
                return OPTION_SLOTS[key]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "qty": self.qty,
            "size": self.size,
            "spice": self.spice,
            "requiresSpice": self.requires_spice,
            "options": dict(self.options),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls(
            kind=str(data.get("kind", "") or ""),
            name=str(data.get("name", "") or ""),
            qty=int(data.get("qty", 1) or 1),
            size=data.get("size") or None,
            spice=data.get("spice") or None,
            requires_spice=bool(data.get("requiresSpice", data.get("requires_spice", False))),
            options={str(k): str(v) for k, v in (data.get("options") or {}).items() if v},
        )


@dataclass
class Awaiting:
    type: SlotType
    line_item_index: Optional[int] = None
    choices: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "index": self.line_item_index,
            "choices": list(self.choices),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Awaiting":
        idx = data.get("index", data.get("line_item_index"))
        return cls(
            type=SlotType(str(data.get("type"))),
            line_item_index=int(idx) if idx is not None else None,
            choices=list(data.get("choices", []) or []),
        )


@dataclass
class Session:
    session_id: str = ""
    store_id: str = ""
    caller: str = ""

    line_items: List[LineItem] = field(default_factory=list)
    order_type: Optional[OrderType] = None
    address: Optional[str] = None
    awaiting: Optional[Awaiting] = None
    confirming: bool = False
    completed: bool = False

    created_ts: float = field(default_factory=time.time)
    last_activity_ts: float = field(default_factory=time.time)
    turns: int = 0

    def touch(self, now: Optional[float] = None) -> None:
        self.last_activity_ts = time.time() if now is None else now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "storeId": self.store_id,
            "lineItems": [li.to_dict() for li in self.line_items],
            "orderType": self.order_type.value if self.order_type else None,
            "address": self.address,
            "awaiting": self.awaiting.to_dict() if self.awaiting else None,
            "confirming": self.confirming,
            "completed": self.completed,
            "turns": self.turns,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        aw = data.get("awaiting")
        return cls(
            session_id=str(data.get("sessionId", "") or ""),
            store_id=str(data.get("storeId", "") or ""),
            line_items=[LineItem.from_dict(x) for x in (data.get("lineItems") or [])],
            order_type=OrderType.parse(data.get("orderType")),
            address=data.get("address") or None,
            awaiting=Awaiting.from_dict(aw) if isinstance(aw, dict) else None,
            confirming=bool(data.get("confirming", False)),
            completed=bool(data.get("completed", False)),
            turns=int(data.get("turns", 0) or 0),
        )


def merge_items(base: List[LineItem], new: Sequence[LineItem]) -> List[LineItem]:
    """
    Qty-sum items with an identical (kind, name, size, options) key, append the rest.
    Mutates and returns base.
    """
    for item in new:
        key = item.merge_key()
        same = next((x for x in base if x.merge_key() == key), None)
        if same is not None:
            same.qty += item.qty or 1
            if item.spice and not same.spice:
                same.spice = item.spice
        else:
            base.append(item)
    return base
