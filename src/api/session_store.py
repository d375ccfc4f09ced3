from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Dict, Optional, Protocol

from .models.state import Session

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def get(self, session_id: str) -> Optional[Session]: ...

    def put(self, session_id: str, session: Session) -> None: ...

    def delete(self, session_id: str) -> None: ...

    def lock(self, session_id: str) -> AsyncContextManager[None]: ...

    def evict_expired(self) -> int: ...


class InMemorySessionStore:
    """
    One Session per conversation, held in process memory.

    Sessions idle for longer than ttl_seconds are dropped lazily on access and by
    evict_expired(). `async with store.lock(id)` serializes turns of one session;
    a lock entry lives only while its session exists or a turn holds or waits on it.
    """

    def __init__(self, ttl_seconds: int = 1800, clock: Callable[[], float] = time.time):
        self.ttl_seconds = int(ttl_seconds)
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def _expired(self, s: Session, now: float) -> bool:
        return self.ttl_seconds > 0 and (now - s.last_activity_ts) > self.ttl_seconds

    def get(self, session_id: str) -> Optional[Session]:
        s = self._sessions.get(session_id)
        if s is None:
            return None
        if self._expired(s, self._clock()):
            logger.info("session %s expired", session_id)
            self.delete(session_id)
            return None
        return s

    def put(self, session_id: str, session: Session) -> None:
        session.touch(self._clock())
        self._sessions[session_id] = session

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        if session_id not in self._lock_users:
            self._locks.pop(session_id, None)

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lk = self._locks.get(session_id)
        if lk is None:
            lk = self._locks[session_id] = asyncio.Lock()
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lk:
                yield
        finally:
            left = self._lock_users[session_id] - 1
            if left:
                self._lock_users[session_id] = left
            else:
                del self._lock_users[session_id]
                if session_id not in self._sessions:
                    self._locks.pop(session_id, None)

    def evict_expired(self) -> int:
        now = self._clock()
        dead = [sid for sid, s in self._sessions.items() if self._expired(s, now)]
        for sid in dead:
            self.delete(sid)
        if dead:
            logger.info("evicted %d expired sessions", len(dead))
        return len(dead)

    def __len__(self) -> int:
        return len(self._sessions)
