# src/api/session_controller.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .catalog import (
    CatalogEntry,
    ensure_orderable,
    entries_of_kind,
    find_entry,
    vegetarian_pizzas,
)
from .confirmation import render
from .intent import (
    CATEGORY_LABELS,
    detect_order_type,
    is_confirm_no,
    is_confirm_yes,
    is_done,
    looks_like_address,
)
from .models.state import Awaiting, LineItem, OrderType, Session, SlotType, merge_items
from .parser.interpreter import interpret
from .parser.slots import (
    SPICE_AMBIGUOUS,
    SPICE_LEVELS,
    detect_option,
    detect_size,
    detect_spice,
    or_list,
)
from .parser.types import Intent, InterpretResult
from .store_manager import StoreConfig, StoreConfigError

logger = logging.getLogger("order-agent")

MSG_WHAT_TO_ORDER = "What would you like to order?"
MSG_PICKUP_OR_DELIVERY = "Pickup or delivery?"
MSG_ADDRESS = "What's the delivery address?"
MSG_SPICE_AMBIGUOUS = "Please choose ONE spice level: Mild, Medium, or Hot."
MSG_CONFIRMED = "Perfect, your order is confirmed. Thank you!"
MSG_WHAT_TO_CHANGE = "No problem. What would you like to change?"
MSG_ALREADY_CONFIRMED = "Your order is already confirmed. Thank you!"

LIST_LIMIT = 20


@dataclass
class TurnResult:
    reply: str
    session: Session
    # False when nothing in the utterance was usable (drives match_failed telemetry)
    understood: bool = True


def _names_listing(label: str, names: Sequence[str]) -> str:
    shown = ", ".join(names[:LIST_LIMIT])
    more = f" (+{len(names) - LIST_LIMIT} more)" if len(names) > LIST_LIMIT else ""
    return f"{label}: {shown}{more}."


def _and_list(items: Sequence[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return ", ".join(items[:-1]) + f" and {items[-1]}"


def _copy_item(li: LineItem) -> LineItem:
    return LineItem(
        kind=li.kind,
        name=li.name,
        qty=max(1, int(li.qty or 1)),
        size=li.size,
        spice=li.spice,
        requires_spice=li.requires_spice,
        options=dict(li.options),
    )


class SessionController:
    """
    Slot-filling order state machine for one store.

    handle_turn() takes the session explicitly and returns exactly one reply.
    It never holds sessions itself; the caller loads and saves them through a
    session store and serializes turns per session.
    """

    def __init__(self, store: StoreConfig, index: Optional[List[CatalogEntry]] = None):
        self.store = store
        if index is None:
            index = ensure_orderable(store)
        if not index:
            raise StoreConfigError(f"store {store.store_id}: menu has no orderable items")
        self.index = index

    # -------------------------
    # Session lifecycle
    # -------------------------
    def new_session(self, session_id: str, caller: str = "") -> Session:
        return Session(session_id=session_id, store_id=self.store.store_id, caller=caller)

    def greeting(self) -> str:
        return self.store.greeting

    # -------------------------
    # Questions
    # -------------------------
    def question_for(self, session: Session, aw: Awaiting) -> str:
        """Prompt text for an awaiting cursor. Same cursor, same words."""
        if aw.type == SlotType.ORDER_TYPE:
            return MSG_PICKUP_OR_DELIVERY
        if aw.type == SlotType.ADDRESS:
            return MSG_ADDRESS

        name = "your item"
        if aw.line_item_index is not None and 0 <= aw.line_item_index < len(session.line_items):
            name = session.line_items[aw.line_item_index].name

        if aw.type == SlotType.SIZE:
            return f"What size for {name}? {or_list(aw.choices)}?"
        if aw.type == SlotType.SPICE:
            return f"What spice level for {name}? {or_list(aw.choices)}?"
        if aw.type == SlotType.WING_TYPE:
            return f"For {name}: {or_list(aw.choices)}?"
        if aw.type == SlotType.WING_FLAVOR:
            return f"For {name}, which flavor? {', '.join(aw.choices)}."
        return MSG_WHAT_TO_ORDER

    def answer_question(self, res: InterpretResult) -> str:
        if res.intent == Intent.VEG_QUESTION:
            names = [e.name for e in vegetarian_pizzas(self.index)]
            if not names:
                return "No vegetarian pizzas available."
            return _names_listing("Vegetarian pizzas", names)

        if res.intent == Intent.CATEGORY_QUESTION and res.category:
            label = CATEGORY_LABELS.get(res.category, res.category)
            names = [e.name for e in entries_of_kind(self.index, res.category)]
            if not names:
                return f"No {label} available."
            return _names_listing(f"Our {label}", names)

        labels = [CATEGORY_LABELS[k] for k in CATEGORY_LABELS if entries_of_kind(self.index, k)]
        return f"We have {_and_list(labels)}. Ask me about any of them, or about veg options."

    # -------------------------
    # Turn handling
    # -------------------------
    def handle_turn(
        self,
        session: Session,
        text: str,
        interpretation: Optional[InterpretResult] = None,
    ) -> TurnResult:
        session.turns += 1
        session.touch()

        if session.completed:
            return TurnResult(MSG_ALREADY_CONFIRMED, session)

        res = interpretation if interpretation is not None else interpret(self.index, self.store, text)

        # 1) menu / category questions never touch state
        if res.is_question:
            logger.info("[%s] question intent=%s category=%s", session.session_id, res.intent.value, res.category)
            return TurnResult(self.answer_question(res), session)

        # 2) confirmation
        if session.confirming:
            reply = self._handle_confirming(session, text, res)
            if reply is not None:
                return TurnResult(reply, session)

        # 3) the one outstanding slot
        resolved: Optional[Awaiting] = None
        if session.awaiting is not None:
            aw = session.awaiting
            ok, retry = self._resolve_awaiting(session, aw, text, res)
            if not ok:
                logger.info("[%s] slot %s unresolved, re-asking", session.session_id, aw.type.value)
                return TurnResult(retry, session, understood=False)
            resolved = aw
            session.awaiting = None

        # 4) merge what was said
        if not (resolved is not None and resolved.type == SlotType.ADDRESS):
            new_items = self._new_items(session, res, resolved)
            if new_items:
                if res.change_cue or not session.line_items:
                    session.line_items = new_items
                else:
                    merge_items(session.line_items, new_items)
        if res.order_type is not None:
            session.order_type = res.order_type
        self._consolidate(session)

        understood = resolved is not None or res.intent != Intent.NONE
        reply = self._next_prompt(session, res)
        logger.info(
            "[%s] turn=%s intent=%s items=%d awaiting=%s confirming=%s",
            session.session_id,
            session.turns,
            res.intent.value,
            len(session.line_items),
            session.awaiting.type.value if session.awaiting else None,
            session.confirming,
        )
        return TurnResult(reply, session, understood=understood)

    def _handle_confirming(self, session: Session, text: str, res: InterpretResult) -> Optional[str]:
        actionable = bool(res.matched_items) or res.order_type is not None

        if not actionable and (res.intent in (Intent.CONFIRM_YES, Intent.DONE) or is_confirm_yes(text) or is_done(text)):
            session.completed = True
            session.confirming = False
            session.awaiting = None
            logger.info("[%s] order confirmed items=%d", session.session_id, len(session.line_items))
            return MSG_CONFIRMED

        session.confirming = False
        session.awaiting = None
        if not actionable and (res.intent == Intent.CONFIRM_NO or is_confirm_no(text)):
            return MSG_WHAT_TO_CHANGE
        # anything else is an edit
        return None

    def _resolve_awaiting(
        self,
        session: Session,
        aw: Awaiting,
        text: str,
        res: InterpretResult,
    ) -> Tuple[bool, str]:
        """Returns (resolved, reply_if_not)."""
        question = self.question_for(session, aw)

        if aw.type == SlotType.ORDER_TYPE:
            ot = res.order_type or detect_order_type(text)
            if ot is None:
                return False, question
            session.order_type = ot
            return True, ""

        if aw.type == SlotType.ADDRESS:
            if not looks_like_address(text):
                return False, question
            session.address = text.strip()
            return True, ""

        idx = aw.line_item_index
        if idx is None or not (0 <= idx < len(session.line_items)):
            # stale cursor: nothing to fill
            return True, ""
        item = session.line_items[idx]

        if aw.type == SlotType.SIZE:
            size = detect_size(text, aw.choices or self.store.supported_sizes)
            if not size:
                return False, question
            item.size = size
            return True, ""

        if aw.type == SlotType.SPICE:
            spice = detect_spice(text)
            if spice == SPICE_AMBIGUOUS:
                return False, MSG_SPICE_AMBIGUOUS
            if not spice:
                return False, question
            item.spice = spice
            return True, ""

        key = "type" if aw.type == SlotType.WING_TYPE else "flavor"
        found = detect_option(text, aw.choices)
        if not found:
            return False, question
        item.options[key] = found
        return True, ""

    def _new_items(self, session: Session, res: InterpretResult, resolved: Optional[Awaiting]) -> List[LineItem]:
        items = [_copy_item(li) for li in res.matched_items]
        if resolved is None or resolved.line_item_index is None:
            return items
        idx = resolved.line_item_index
        if not (0 <= idx < len(session.line_items)):
            return items
        awaited = session.line_items[idx]
        # "large pepperoni" as a size answer restates the item, it does not add one
        return [li for li in items if (li.kind, li.name) != (awaited.kind, awaited.name)]

    def _consolidate(self, session: Session) -> None:
        # a filled slot can make two lines identical
        if len(session.line_items) > 1:
            session.line_items = merge_items([], session.line_items)

    def _next_prompt(self, session: Session, res: InterpretResult) -> str:
        if not session.line_items:
            session.awaiting = None
            return MSG_WHAT_TO_ORDER

        for i, item in enumerate(session.line_items):
            entry = find_entry(self.index, item.kind, item.name)
            if entry is not None:
                item.requires_spice = entry.requires_spice
            option_keys = list(entry.options.keys()) if entry else []
            slot = item.missing_slot(option_keys)
            if slot is None:
                continue

            if slot == SlotType.SIZE:
                choices = list(self.store.supported_sizes)
            elif slot == SlotType.SPICE:
                choices = list(SPICE_LEVELS)
            elif slot == SlotType.WING_TYPE:
                choices = list(entry.option_choices("type")) if entry else []
            else:
                choices = list(entry.option_choices("flavor")) if entry else []

            session.awaiting = Awaiting(type=slot, line_item_index=i, choices=choices)
            if slot == SlotType.SPICE and res.spice_ambiguous:
                return MSG_SPICE_AMBIGUOUS
            return self.question_for(session, session.awaiting)

        if session.order_type is None:
            session.awaiting = Awaiting(type=SlotType.ORDER_TYPE)
            return MSG_PICKUP_OR_DELIVERY

        if session.order_type == OrderType.DELIVERY and not session.address:
            session.awaiting = Awaiting(type=SlotType.ADDRESS)
            return MSG_ADDRESS

        session.awaiting = None
        session.confirming = True
        return render(session)
