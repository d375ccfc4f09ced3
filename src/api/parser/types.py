from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..models.state import LineItem, OrderType


class Intent(str, Enum):
    ORDER = "ORDER"                  # at least one catalog item matched
    MENU_QUESTION = "MENU_QUESTION"
    CATEGORY_QUESTION = "CATEGORY_QUESTION"
    VEG_QUESTION = "VEG_QUESTION"
    CONFIRM_YES = "CONFIRM_YES"
    CONFIRM_NO = "CONFIRM_NO"
    DONE = "DONE"
    ORDER_TYPE = "ORDER_TYPE"        # only an order type was stated
    ADDRESS = "ADDRESS"
    NONE = "NONE"


@dataclass
class InterpretResult:
    intent: Intent = Intent.NONE
    matched_items: List[LineItem] = field(default_factory=list)

    # Set for CATEGORY_QUESTION ("pizza", "wings", ...)
    category: Optional[str] = None

    change_cue: bool = False
    order_type: Optional[OrderType] = None

    # A spice-required item was named together with more than one spice level
    spice_ambiguous: bool = False

    # Where the result came from: "rules" | "ai"
    source: str = "rules"

    @property
    def is_question(self) -> bool:
        return self.intent in (Intent.MENU_QUESTION, Intent.CATEGORY_QUESTION, Intent.VEG_QUESTION)

    @classmethod
    def empty(cls, source: str = "rules") -> "InterpretResult":
        return cls(source=source)
