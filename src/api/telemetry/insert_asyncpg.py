from __future__ import annotations

import asyncio
import logging
from typing import Optional

import asyncpg

from .. import settings
from .emitter import TelemetryEvent

logger = logging.getLogger("order-agent")

_pool: Optional[asyncpg.Pool] = None
_pool_lock = asyncio.Lock()


async def _get_pool() -> Optional[asyncpg.Pool]:
    global _pool
    if _pool is not None:
        return _pool
    if not settings.DATABASE_URL:
        return None

    async with _pool_lock:
        if _pool is not None:
            return _pool
        try:
            _pool = await asyncpg.create_pool(
                dsn=settings.DATABASE_URL,
                min_size=0,
                max_size=2,
                timeout=2.0,
            )
        except (OSError, asyncpg.PostgresError):
            logger.debug("telemetry: failed to create asyncpg pool", exc_info=True)
            _pool = None
    return _pool


async def insert_telemetry_event(evt: TelemetryEvent) -> None:
    """
    Best-effort insert. Must NEVER raise.
    Without a DATABASE_URL the event is only logged at DEBUG.
    """
    try:
        pool = await _get_pool()
        if not pool:
            logger.debug(
                "telemetry: %s store=%s session=%s reason=%s detail=%s",
                evt.event_type,
                evt.store_id,
                evt.session_id,
                evt.reason,
                evt.detail_json(),
            )
            return

        sql = f"""
        INSERT INTO "{settings.TELEMETRY_SCHEMA}"."{settings.TELEMETRY_TABLE}"
        (
          ts,
          session_id,
          store_id,
          event_type,
          reason,
          utterance_redacted,
          pii_redacted,
          truncation,
          detail
        )
        VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9::jsonb)
        """

        async with pool.acquire() as con:
            await con.execute(
                sql,
                evt.ts,
                evt.session_id,
                evt.store_id,
                evt.event_type,
                evt.reason,
                evt.utterance_redacted,
                evt.pii_redacted,
                evt.truncation,
                evt.detail_json(),
            )
    except Exception:
        logger.debug("telemetry: insert failed", exc_info=True)
