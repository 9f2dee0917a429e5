"""Structured JSON logging and per-session operation metrics.

Every line written by :func:`log_event` is one JSON object carrying the
intake session and turn it belongs to. Generator calls are wrapped in
:func:`track_operation`, which times them, remembers whether the model or
the deterministic fallback produced the answer, and accumulates those
figures per session until the session is saved, deleted or evicted.
"""
from __future__ import annotations

import contextvars
import json
import logging
import sys
import threading
import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Literal, Mapping

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

LOGGER_NAME = "symptom_triage.structured"

_session_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "triage_session_id",
    default=None,
)
_turn_id_ctx: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "triage_turn_id",
    default=None,
)
_operation_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "triage_operation",
    default=None,
)


def _get_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


# ============= Context =============

def current_operation() -> str | None:
    """Name of the generator operation running in this context, if any."""
    return _operation_ctx.get()


@contextmanager
def log_scope(session_id: str | None, turn_id: int | None = None) -> Iterator[None]:
    """Attach a session (and optionally a turn) to every event logged inside."""
    session_token = _session_id_ctx.set(session_id)
    turn_token = _turn_id_ctx.set(turn_id)
    try:
        yield
    finally:
        _turn_id_ctx.reset(turn_token)
        _session_id_ctx.reset(session_token)


# ============= Events =============

def log_event(
    *,
    component: str,
    event: str,
    level: LogLevelName = "INFO",
    session_id: str | None = None,
    turn_id: int | None = None,
    details: Mapping[str, Any] | None = None,
) -> None:
    """Write one structured JSON line. Explicit ids win over the context."""
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "level": level,
        "component": component,
        "event": event,
        "session_id": session_id if session_id is not None else _session_id_ctx.get(),
        "turn_id": turn_id if turn_id is not None else _turn_id_ctx.get(),
        "details": dict(details or {}),
    }
    _get_logger().log(
        logging.getLevelName(level),
        json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str),
    )


# ============= Operation metrics =============

def _to_ms(duration_s: float) -> float:
    return round(max(duration_s, 0.0) * 1000.0, 3)


@dataclass
class OperationStats:
    """What one generator operation cost a session so far."""

    durations_ms: list[float] = field(default_factory=list)
    outcomes: Counter = field(default_factory=Counter)
    provider_ms: list[float] = field(default_factory=list)
    provider_errors: int = 0

    def summary(self) -> dict[str, Any]:
        runs = len(self.durations_ms)
        return {
            "runs": runs,
            "avg_ms": round(sum(self.durations_ms) / runs, 3) if runs else 0.0,
            "max_ms": max(self.durations_ms, default=0.0),
            "outcomes": dict(self.outcomes),
            "provider_calls": len(self.provider_ms),
            "provider_errors": self.provider_errors,
            "provider_avg_ms": (
                round(sum(self.provider_ms) / len(self.provider_ms), 3)
                if self.provider_ms
                else 0.0
            ),
        }


_metrics_lock = threading.Lock()
_session_metrics: dict[str, dict[str, OperationStats]] = {}


def _stats_for(session_id: str, operation: str) -> OperationStats:
    # Caller holds _metrics_lock.
    return _session_metrics.setdefault(session_id, {}).setdefault(operation, OperationStats())


@dataclass
class OperationRun:
    """Handle yielded by :func:`track_operation`; set ``outcome`` before leaving."""

    operation: str
    outcome: str = "model"
    started_at: float = field(default_factory=time.perf_counter)


@contextmanager
def track_operation(operation: str) -> Iterator[OperationRun]:
    """Time one generator call and record its outcome for the current session.

    An exception escaping the block is recorded as outcome ``error``.
    """
    run = OperationRun(operation)
    token = _operation_ctx.set(operation)
    try:
        yield run
    except BaseException:
        run.outcome = "error"
        raise
    finally:
        _operation_ctx.reset(token)
        duration_ms = _to_ms(time.perf_counter() - run.started_at)
        session_id = _session_id_ctx.get()
        if session_id:
            with _metrics_lock:
                stats = _stats_for(session_id, operation)
                stats.durations_ms.append(duration_ms)
                stats.outcomes[run.outcome] += 1
        log_event(
            component="workflows",
            event="operation_completed",
            details={"operation": operation, "outcome": run.outcome, "duration_ms": duration_ms},
        )


def log_provider_call(
    *,
    provider: str,
    model: str,
    duration_s: float,
    ok: bool,
) -> None:
    """Log one provider round trip, attributed to the operation that made it."""
    operation = current_operation() or "direct"
    duration_ms = _to_ms(duration_s)
    session_id = _session_id_ctx.get()
    if session_id:
        with _metrics_lock:
            stats = _stats_for(session_id, operation)
            stats.provider_ms.append(duration_ms)
            if not ok:
                stats.provider_errors += 1
    log_event(
        component="ai_gateway",
        event="provider_call",
        level="INFO" if ok else "WARNING",
        details={
            "operation": operation,
            "provider": provider,
            "model": model,
            "status": "ok" if ok else "error",
            "duration_ms": duration_ms,
        },
    )


def pop_session_metrics(session_id: str) -> dict[str, Any]:
    """Remove a session's operation metrics and return their summary."""
    with _metrics_lock:
        operations = _session_metrics.pop(session_id, {})
    return {"operations": {name: stats.summary() for name, stats in operations.items()}}
