from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger("order-agent")

MAX_UTTERANCE = 100

_EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.I)
_PHONE_RE = re.compile(r"\b(\+?\d[\d\s().-]{6,}\d)\b")
_LONG_NUM_RE = re.compile(r"\b\d{5,}\b")  # keep small numbers (qty, house numbers), redact only long sequences

EVENT_MATCH_FAILED = "match_failed"
EVENT_PRICE_SKIPPED = "price_skipped"


@dataclass(frozen=True)
class TelemetryContext:
    session_id: str
    store_id: str


@dataclass(frozen=True)
class TelemetryEvent:
    ts: datetime
    session_id: str
    store_id: str
    event_type: str
    reason: str
    utterance_redacted: str
    pii_redacted: bool
    truncation: str
    detail: Dict[str, Any] = field(default_factory=dict)

    def detail_json(self) -> str:
        return json.dumps(self.detail, sort_keys=True)


def _head_tail_100(s: str) -> Tuple[str, str, bool]:
    s = (s or "").strip()
    if len(s) <= MAX_UTTERANCE:
        return s, "NONE", False

    head = s[:48]
    tail = s[-48:]
    out = f"{head} … {tail}"
    out = out[:MAX_UTTERANCE]
    return out, "HEAD_TAIL_48_48", True


def redact_pii_mvp(text: str) -> Tuple[str, bool, str]:
    raw = (text or "").strip()
    if not raw:
        return "", False, "NONE"

    red = raw
    red = _EMAIL_RE.sub("[REDACTED_EMAIL]", red)
    red = _PHONE_RE.sub("[REDACTED_PHONE]", red)
    red = _LONG_NUM_RE.sub("[REDACTED_NUM]", red)

    changed = (red != raw)
    red2, trunc, trunc_changed = _head_tail_100(red)
    changed = changed or trunc_changed

    return red2, changed, trunc


InsertFn = Callable[[TelemetryEvent], Awaitable[None]]


class TelemetryEmitter:
    """
    Fire-and-forget data-quality events (unmatched utterances, unpriced lines).
    Never blocks a turn and never raises into it. Best-effort only.
    """

    def __init__(self, insert_fn: InsertFn, *, enabled: bool = True, timeout_s: float = 0.25) -> None:
        self._insert_fn = insert_fn
        self._enabled = enabled
        self._timeout_s = timeout_s

    @property
    def enabled(self) -> bool:
        return self._enabled

    def emit_match_failed(
        self,
        *,
        ctx: TelemetryContext,
        utterance: str,
        awaiting: Optional[str] = None,
    ) -> None:
        """Customer said something the interpreter could not use."""
        self._emit(
            ctx=ctx,
            event_type=EVENT_MATCH_FAILED,
            reason="SLOT_UNRESOLVED" if awaiting else "NO_MATCH",
            utterance=utterance,
            detail={"awaiting": awaiting} if awaiting else {},
        )

    def emit_price_skipped(self, *, ctx: TelemetryContext, skipped: List[str]) -> None:
        """A confirmed line had no price in the store's table."""
        if not skipped:
            return
        self._emit(
            ctx=ctx,
            event_type=EVENT_PRICE_SKIPPED,
            reason="NO_PRICE",
            utterance="",
            detail={"items": list(skipped)},
        )

    def _emit(
        self,
        *,
        ctx: TelemetryContext,
        event_type: str,
        reason: str,
        utterance: str,
        detail: Dict[str, Any],
    ) -> None:
        if not self._enabled:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("telemetry: no running loop, skip emit")
            return

        try:
            utter_red, pii_redacted, trunc = redact_pii_mvp(utterance)
            evt = TelemetryEvent(
                ts=datetime.now(timezone.utc),
                session_id=str(ctx.session_id or "unknown"),
                store_id=str(ctx.store_id or "unknown"),
                event_type=event_type,
                reason=reason,
                utterance_redacted=utter_red,
                pii_redacted=bool(pii_redacted),
                truncation=str(trunc),
                detail=detail,
            )
            loop.create_task(self._insert_with_timeout(evt))
        except Exception:
            logger.debug("telemetry: failed to schedule %s", event_type, exc_info=True)

    async def _insert_with_timeout(self, evt: TelemetryEvent) -> None:
        try:
            await asyncio.wait_for(self._insert_fn(evt), timeout=self._timeout_s)
        except Exception:
            logger.debug("telemetry: insert failed", exc_info=True)
