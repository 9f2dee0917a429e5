"""Persistence collaborator: insert and query symptom history."""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Protocol

from ..core.logging_utils import log_event
from .records import ConversationRecord, SymptomRecord


class PersistenceError(RuntimeError):
    """Raised when the store cannot complete an insert or query."""


class SymptomStore(Protocol):
    async def insert_symptom(self, record: SymptomRecord) -> SymptomRecord: ...

    async def insert_conversation(self, record: ConversationRecord) -> ConversationRecord: ...

    async def query_recent_symptoms(
        self, user_id: str, since: datetime, limit: int
    ) -> list[SymptomRecord]: ...


class InMemorySymptomStore:
    """Process-local store used when no external database is wired in."""

    def __init__(self) -> None:
        self._symptoms: dict[str, SymptomRecord] = {}
        self._conversations: dict[str, ConversationRecord] = {}
        self._lock = asyncio.Lock()

    async def insert_symptom(self, record: SymptomRecord) -> SymptomRecord:
        async with self._lock:
            if record.id in self._symptoms:
                raise PersistenceError(f"Symptom {record.id} already exists")
            self._symptoms[record.id] = record
        log_event(
            component="store",
            event="symptom_inserted",
            details={"symptom_id": record.id},
        )
        return record

    async def insert_conversation(self, record: ConversationRecord) -> ConversationRecord:
        async with self._lock:
            if record.id in self._conversations:
                raise PersistenceError(f"Conversation {record.id} already exists")
            if record.symptom_id is not None and record.symptom_id not in self._symptoms:
                raise PersistenceError(f"Unknown symptom_id {record.symptom_id}")
            self._conversations[record.id] = record
        log_event(
            component="store",
            event="conversation_inserted",
            details={"conversation_id": record.id, "symptom_id": record.symptom_id},
        )
        return record

    async def query_recent_symptoms(
        self, user_id: str, since: datetime, limit: int
    ) -> list[SymptomRecord]:
        """Newest first, created at or after ``since``."""
        async with self._lock:
            matches = [
                record
                for record in self._symptoms.values()
                if record.user_id == user_id and record.created_at >= since
            ]
        matches.sort(key=lambda record: record.created_at, reverse=True)
        return matches[:limit]

    async def get_conversation(self, conversation_id: str) -> ConversationRecord | None:
        async with self._lock:
            return self._conversations.get(conversation_id)
