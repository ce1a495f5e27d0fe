from datetime import date

import pytest

from src.timekeeping.timekeeping.common.resilience import (
    GuardedHolidayProvider,
    GuardedLeaveProvider,
    RetryPolicy,
    call_with_retry,
    degradation_scope,
)
from src.timekeeping.timekeeping.core.exceptions import CollaboratorUnavailable
from tests.fakes import DownHolidays, FlakyProvider, InMemoryHolidays

NO_WAIT = RetryPolicy(attempts=3, backoff_seconds=0.5, max_backoff_seconds=4.0)


def test_retry_until_success_with_exponential_backoff():
    sleeps = []
    fn = FlakyProvider("ok", failures=2)

    assert call_with_retry("svc", fn, policy=NO_WAIT, sleep=sleeps.append) == "ok"
    assert fn.calls == 3
    assert sleeps == [0.5, 1.0]


def test_retry_gives_up_after_attempts():
    fn = FlakyProvider("ok", failures=10)

    with pytest.raises(CollaboratorUnavailable) as exc_info:
        call_with_retry("svc", fn, policy=NO_WAIT, sleep=lambda s: None)

    assert fn.calls == 3
    assert isinstance(exc_info.value.cause, ConnectionError)


def test_backoff_is_capped():
    policy = RetryPolicy(attempts=5, backoff_seconds=1, max_backoff_seconds=3)

    assert [policy.delay_for(n) for n in range(1, 5)] == [1, 2, 3, 3]


def test_fallback_is_recorded_in_scope():
    down = DownHolidays()
    holidays = GuardedHolidayProvider(down, policy=NO_WAIT, sleep=lambda s: None)

    with degradation_scope() as events:
        assert holidays.is_holiday(date(2025, 1, 1)) is False

    assert down.calls == 3
    assert len(events) == 1
    assert events[0].collaborator == "HolidayProvider"
    assert events[0].detail == "2025-01-01"


class DownLeaves:
    def get_approved_leave_kinds(self, employee_id, start, end):
        raise TimeoutError("leave service timed out")


def test_nested_scope_reports_to_outer():
    leaves = GuardedLeaveProvider(DownLeaves(), policy=RetryPolicy(attempts=1), sleep=lambda s: None)

    with degradation_scope() as outer:
        with degradation_scope() as inner:
            assert leaves.get_approved_leave_kinds("EMP001", date(2025, 1, 1), date(2025, 1, 31)) == {}

    assert len(inner) == 1
    assert len(outer) == 1


def test_healthy_collaborator_leaves_scope_empty():
    holidays = GuardedHolidayProvider(InMemoryHolidays({date(2025, 1, 1)}), policy=NO_WAIT)

    with degradation_scope() as events:
        assert holidays.is_holiday(date(2025, 1, 1)) is True

    assert events == []


def test_fallback_outside_scope_does_not_raise():
    holidays = GuardedHolidayProvider(DownHolidays(), policy=RetryPolicy(attempts=1), sleep=lambda s: None)

    assert holidays.get_holidays(date(2025, 1, 1), date(2025, 1, 31)) == set()
