"""Record shapes, record store and session registry."""
from .records import ConversationRecord, SymptomRecord, to_prior_snapshot, utc_now
from .sessions import SessionRegistry
from .store import InMemorySymptomStore, PersistenceError, SymptomStore

__all__ = [
    "ConversationRecord",
    "SymptomRecord",
    "to_prior_snapshot",
    "utc_now",
    "SessionRegistry",
    "InMemorySymptomStore",
    "PersistenceError",
    "SymptomStore",
]
