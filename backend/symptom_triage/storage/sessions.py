"""In-memory registry for active intake sessions."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from ..core.logging_utils import log_event, pop_session_metrics


class SessionRegistry:
    """Async-safe map of session id to session object.

    Stored objects must expose ``session_id`` and ``created_at``. Expired
    sessions are evicted whenever a new one is added, on lookup, and by
    :meth:`run_sweeper` when the app runs it in the background.
    """

    def __init__(self, ttl_hours: int = 24):
        self._sessions: dict[str, Any] = {}
        self._ttl = timedelta(hours=ttl_hours)
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def add(self, session: Any) -> None:
        async with self._lock:
            evicted = self._evict_expired()
            self._sessions[session.session_id] = session
        self._log_evicted(evicted)
        log_event(
            component="sessions",
            event="session_registered",
            session_id=session.session_id,
        )

    async def get(self, session_id: str) -> Optional[Any]:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or not self._is_expired(session):
                return session
            del self._sessions[session_id]
        self._log_evicted([session_id])
        return None

    async def remove(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def cleanup_expired(self) -> int:
        """Remove expired sessions and return count"""
        async with self._lock:
            evicted = self._evict_expired()
        self._log_evicted(evicted)
        return len(evicted)

    async def run_sweeper(self, interval_s: float) -> None:
        """Evict expired sessions every ``interval_s`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval_s)
            await self.cleanup_expired()

    def _evict_expired(self) -> list[str]:
        # Caller holds self._lock.
        expired_ids = [
            sid for sid, session in self._sessions.items()
            if self._is_expired(session)
        ]
        for sid in expired_ids:
            del self._sessions[sid]
        return expired_ids

    def _log_evicted(self, session_ids: list[str]) -> None:
        for sid in session_ids:
            log_event(
                component="sessions",
                event="session_expired",
                session_id=sid,
                details={"metrics": pop_session_metrics(sid)},
            )

    def _is_expired(self, session: Any) -> bool:
        return datetime.now(timezone.utc) - session.created_at > self._ttl
