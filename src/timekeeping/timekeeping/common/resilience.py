"""Bounded retry + safe fallback around network collaborators.

Holiday, leave and overtime lookups are the only calls that may block on the
network. Each one is retried with exponential backoff; when the attempts are
exhausted a safe default is returned (working day, no leave, no overtime) and
the fallback is noted in the current degradation scope so the decision that
used it can be flagged for audit.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterator, List, Optional, Set, TypeVar

from ..core.enums import LeaveKind
from ..core.exceptions import CollaboratorUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DegradedCall:
    collaborator: str
    detail: str
    error: str
    at: datetime


_scope: ContextVar[Optional[List[DegradedCall]]] = ContextVar("degraded_calls", default=None)


@contextmanager
def degradation_scope() -> Iterator[List[DegradedCall]]:
    """Collect fallbacks taken by guarded collaborators inside the block."""
    outer = _scope.get()
    events: List[DegradedCall] = []
    token = _scope.set(events)
    try:
        yield events
    finally:
        _scope.reset(token)
        if outer is not None:
            outer.extend(events)


def _note(event: DegradedCall) -> None:
    events = _scope.get()
    if events is not None:
        events.append(event)


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    backoff_seconds: float = 0.5
    max_backoff_seconds: float = 4.0

    def delay_for(self, attempt: int) -> float:
        # attempt is 1-based; first retry waits backoff_seconds.
        return min(self.backoff_seconds * (2 ** (attempt - 1)), self.max_backoff_seconds)


def call_with_retry(
    name: str,
    fn: Callable[[], T],
    *,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    attempts = max(int(policy.attempts), 1)
    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            last_error = exc
            if attempt >= attempts:
                break
            delay = policy.delay_for(attempt)
            logger.warning("%s failed (attempt %d/%d): %s; retrying in %.2fs", name, attempt, attempts, exc, delay)
            sleep(delay)
    raise CollaboratorUnavailable(name, last_error)


class _Guarded:
    collaborator = "collaborator"

    def __init__(self, *, policy: RetryPolicy, sleep: Callable[[float], None] = time.sleep):
        self._policy = policy
        self._sleep = sleep

    def _guard(self, detail: str, fn: Callable[[], T], fallback: T) -> T:
        try:
            return call_with_retry(f"{self.collaborator}({detail})", fn, policy=self._policy, sleep=self._sleep)
        except CollaboratorUnavailable as exc:
            logger.error("%s; falling back to %r for %s", exc, fallback, detail)
            _note(DegradedCall(self.collaborator, detail, str(exc.cause), datetime.now()))
            return fallback


class GuardedHolidayProvider(_Guarded):
    collaborator = "HolidayProvider"

    def __init__(self, inner, **kwargs):
        super().__init__(**kwargs)
        self._inner = inner

    def is_holiday(self, day: date, is_afternoon_variant: bool = False) -> bool:
        return self._guard(
            f"{day.isoformat()}",
            lambda: bool(self._inner.is_holiday(day, is_afternoon_variant)),
            False,
        )

    def get_holidays(self, start: date, end: date) -> Set[date]:
        return self._guard(
            f"{start.isoformat()}..{end.isoformat()}",
            lambda: set(self._inner.get_holidays(start, end)),
            set(),
        )


class GuardedLeaveProvider(_Guarded):
    collaborator = "LeaveProvider"

    def __init__(self, inner, **kwargs):
        super().__init__(**kwargs)
        self._inner = inner

    def get_approved_leave_covering(self, employee_id: str, day: date) -> Optional[LeaveKind]:
        return self._guard(
            f"{employee_id}@{day.isoformat()}",
            lambda: self._inner.get_approved_leave_covering(employee_id, day),
            None,
        )

    def get_approved_leave_kinds(self, employee_id: str, start: date, end: date) -> Dict[date, LeaveKind]:
        return self._guard(
            f"{employee_id}@{start.isoformat()}..{end.isoformat()}",
            lambda: dict(self._inner.get_approved_leave_kinds(employee_id, start, end)),
            {},
        )


class GuardedOvertimeProvider(_Guarded):
    collaborator = "OvertimeProvider"

    def __init__(self, inner, **kwargs):
        super().__init__(**kwargs)
        self._inner = inner

    def get_approved_overtime(self, employee_id: str, day: date):
        return self._guard(
            f"{employee_id}@{day.isoformat()}",
            lambda: self._inner.get_approved_overtime(employee_id, day),
            None,
        )
