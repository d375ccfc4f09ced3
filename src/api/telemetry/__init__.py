from __future__ import annotations

from .. import settings
from .emitter import TelemetryContext, TelemetryEmitter, TelemetryEvent, redact_pii_mvp
from .insert_asyncpg import insert_telemetry_event

_emitter: TelemetryEmitter | None = None


def get_telemetry_emitter() -> TelemetryEmitter:
    global _emitter
    if _emitter is None:
        _emitter = TelemetryEmitter(insert_telemetry_event, enabled=settings.TELEMETRY_ENABLED)
    return _emitter


__all__ = ["TelemetryContext", "TelemetryEmitter", "TelemetryEvent", "get_telemetry_emitter", "redact_pii_mvp"]
