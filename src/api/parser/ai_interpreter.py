from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..catalog import KINDS, CatalogEntry, match_name
from ..models.state import LineItem, OrderType, Session, merge_items
from ..store_manager import StoreConfig
from .quantity import QTY_MAX, QTY_MIN
from .slots import SPICE_AMBIGUOUS, detect_option, detect_size, detect_spice
from .types import Intent, InterpretResult

logger = logging.getLogger("order-agent")


class ChatJSONClient(Protocol):
    async def chat_json(self, messages: List[Dict[str, str]], temperature: float = 0.0) -> Optional[Dict[str, Any]]: ...


SYSTEM_PROMPT = """
You extract a customer's food order from one chat message for a pizza store.

Rules:
- Use ONLY item names from MENU. Never invent items.
- Only include an item the customer asked to order in THIS message.
- "awaiting" tells you which question the customer is answering.
- Leave a field null when the customer did not say it.

Return JSON only:
{
  "intent": "ORDER|MENU_QUESTION|CATEGORY_QUESTION|VEG_QUESTION|CONFIRM_YES|CONFIRM_NO|DONE|ORDER_TYPE|ADDRESS|NONE",
  "category": "pizza|wings|pasta|salad|side|beverage|null",
  "changeCue": false,
  "orderType": "Pickup|Delivery|null",
  "items": [{"name": "string", "qty": 1, "size": null, "spice": null, "type": null, "flavor": null}]
}
""".strip()


def _menu_context(index: Sequence[CatalogEntry], sizes: Sequence[str]) -> Dict[str, Any]:
    by_kind: Dict[str, List[Dict[str, Any]]] = {}
    for e in index:
        row: Dict[str, Any] = {"name": e.name}
        if e.requires_spice:
            row["requiresSpice"] = True
        if e.options:
            row["options"] = {k: list(v) for k, v in e.options.items()}
        by_kind.setdefault(e.kind, []).append(row)
    return {"sizes": list(sizes), "spice": ["Mild", "Medium", "Hot"], "menu": by_kind}


def _clamp_qty(v: Any) -> int:
    try:
        q = int(v)
    except (TypeError, ValueError):
        return 1
    return q if QTY_MIN <= q <= QTY_MAX else 1


class AIInterpreter:
    """
    Optional model-backed interpreter. Produces the same InterpretResult as the
    rule-based one and maps every item back onto the catalog. Never raises:
    timeouts, API errors and malformed replies all give an empty result.
    """

    def __init__(self, client: ChatJSONClient, *, timeout_s: float = 6.0):
        self.client = client
        self.timeout_s = float(timeout_s)

    async def interpret(
        self,
        index: Sequence[CatalogEntry],
        settings: StoreConfig,
        session: Session,
        text: str,
    ) -> InterpretResult:
        if not (text or "").strip():
            return InterpretResult.empty(source="ai")

        user_payload = {
            "text": text,
            "awaiting": session.awaiting.type.value if session.awaiting else None,
            "confirming": session.confirming,
            **_menu_context(index, settings.supported_sizes),
        }
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(user_payload)},
        ]

        try:
            data = await asyncio.wait_for(self.client.chat_json(messages), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("[%s] ai interpreter timed out after %.1fs", session.session_id, self.timeout_s)
            return InterpretResult.empty(source="ai")
        except Exception:
            logger.warning("[%s] ai interpreter failed", session.session_id, exc_info=True)
            return InterpretResult.empty(source="ai")

        if not isinstance(data, dict):
            return InterpretResult.empty(source="ai")
        return self.to_result(index, settings, data)

    def to_result(self, index: Sequence[CatalogEntry], settings: StoreConfig, data: Dict[str, Any]) -> InterpretResult:
        res = InterpretResult(source="ai")

        try:
            res.intent = Intent(str(data.get("intent") or "NONE").upper())
        except ValueError:
            res.intent = Intent.NONE

        cat = str(data.get("category") or "").strip().lower()
        res.category = cat if cat in KINDS else None
        if res.intent == Intent.CATEGORY_QUESTION and res.category is None:
            res.intent = Intent.MENU_QUESTION

        res.change_cue = bool(data.get("changeCue"))
        res.order_type = OrderType.parse(data.get("orderType"))

        items: List[LineItem] = []
        raw_items = data.get("items")
        for raw in raw_items if isinstance(raw_items, list) else []:
            if not isinstance(raw, dict):
                continue
            entry = match_name(index, str(raw.get("name") or ""))
            if entry is None:
                logger.info("ai interpreter: dropping unknown item %r", raw.get("name"))
                continue

            li = LineItem(
                kind=entry.kind,
                name=entry.name,
                qty=_clamp_qty(raw.get("qty")),
                requires_spice=entry.requires_spice,
            )
            if entry.kind == "pizza" and raw.get("size"):
                li.size = detect_size(str(raw["size"]), settings.supported_sizes)
            if entry.requires_spice and raw.get("spice"):
                spice = detect_spice(str(raw["spice"]))
                if spice == SPICE_AMBIGUOUS:
                    res.spice_ambiguous = True
                elif spice:
                    li.spice = spice
            for key, choices in entry.options.items():
                if raw.get(key):
                    found = detect_option(str(raw[key]), choices)
                    if found:
                        li.options[key] = found
            items.append(li)

        res.matched_items = merge_items([], items)
        if res.intent == Intent.ORDER and not res.matched_items:
            res.intent = Intent.NONE
        elif res.matched_items and not res.is_question:
            res.intent = Intent.ORDER
        return res
