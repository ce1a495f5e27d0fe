from datetime import date, time

from src.timekeeping.timekeeping.attendance.model import AttendanceRecord, OvertimeEntry
from src.timekeeping.timekeeping.attendance.period_state import MANUAL_CORRECTION_REASON, PeriodStateMachine
from src.timekeeping.timekeeping.common.resilience import GuardedHolidayProvider, RetryPolicy
from src.timekeeping.timekeeping.core.enums import AttendanceState, CheckAction, LeaveKind, PeriodType
from src.timekeeping.timekeeping.shifts.resolver import ShiftWindowResolver
from tests.fakes import (
    AFTERNOON_SHIFT,
    DAY_SHIFT,
    NIGHT_SHIFT,
    DownHolidays,
    InMemoryAttendance,
    InMemoryHolidays,
    InMemoryLeaves,
    InMemoryOvertime,
    InMemoryShiftCatalog,
    at,
    overtime,
)

MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)
SATURDAY = date(2025, 1, 4)


def _machine(shift_code="SHIFT101", *, holidays=None, leaves=None, overtime_provider=None, attendance=None):
    catalog = InMemoryShiftCatalog.with_shifts(DAY_SHIFT, NIGHT_SHIFT, AFTERNOON_SHIFT)
    if shift_code:
        catalog.assign("EMP001", shift_code)
    resolver = ShiftWindowResolver(
        catalog,
        holidays if holidays is not None else InMemoryHolidays(),
        overtime_provider or InMemoryOvertime(),
        cache_ttl_seconds=0,
    )
    attendance = attendance or InMemoryAttendance()
    return PeriodStateMachine(resolver, attendance, leaves or InMemoryLeaves()), attendance


def _checked_in(attendance, day, check_in, shift=DAY_SHIFT, **changes):
    window = shift.window_for(day)
    return attendance.put(
        AttendanceRecord(
            employee_id="EMP001",
            work_date=day,
            regular_check_in=check_in,
            state=AttendanceState.REGULAR_IN,
            shift_start=window.start,
            shift_end=window.end,
            **changes,
        )
    )


def test_check_in_within_grace_is_not_late():
    machine, _ = _machine()

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 8, 10), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.period_type == PeriodType.REGULAR
    assert decision.action == CheckAction.CHECK_IN
    assert decision.flags.is_late_check_in is False


def test_check_in_after_grace_is_late():
    machine, _ = _machine()

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 8, 20), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.flags.is_late_check_in is True


def test_check_in_before_early_grace_is_denied():
    machine, _ = _machine()

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 7, 0), action=CheckAction.CHECK_IN)

    assert decision.allowed is False
    assert decision.reason.startswith("Too early")


def test_early_check_in_inside_grace_is_flagged():
    machine, _ = _machine()

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 7, 40), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.flags.is_early_check_in is True


def test_no_shift_means_no_active_window():
    machine, _ = _machine(shift_code=None)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 8, 0), action=CheckAction.CHECK_IN)

    assert decision.allowed is False
    assert decision.reason == "No active window found"


def test_outside_premises_needs_reason():
    machine, _ = _machine()
    now = at(2025, 1, 6, 8, 0)

    assert machine.decide("EMP001", False, "Client site", now).allowed is False
    assert machine.decide("EMP001", False, "Client site", now, reason="Visiting customer").allowed is True


def test_second_check_in_is_denied():
    machine, attendance = _machine()
    _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 9, 0), action=CheckAction.CHECK_IN)

    assert decision.allowed is False
    assert decision.reason == "Already checked in"


def test_completed_day_is_denied():
    machine, attendance = _machine()
    record = _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))
    attendance.put(
        record.with_changes(regular_check_out=at(2025, 1, 6, 17, 0), state=AttendanceState.REGULAR_OUT)
    )

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 17, 5))

    assert decision.allowed is False
    assert decision.reason == "Attendance for this date is already complete"


def test_check_out_without_check_in_proposes_shift_start():
    machine, _ = _machine()

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 17, 5), action=CheckAction.CHECK_OUT)

    assert decision.allowed is True
    assert decision.requires_confirmation is True
    assert decision.action == CheckAction.CHECK_OUT
    assert decision.flags.is_auto_check_in is True
    entries = decision.auto_completion.entries
    assert [(e.action, e.suggested_time) for e in entries] == [(CheckAction.CHECK_IN, at(2025, 1, 6, 8, 0))]


def test_full_day_leave_blocks_check_in():
    leaves = InMemoryLeaves({("EMP001", MONDAY): LeaveKind.FULL_DAY})
    machine, _ = _machine(leaves=leaves)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 8, 0), action=CheckAction.CHECK_IN)

    assert decision.allowed is False
    assert decision.reason == "Approved leave covers this date"


def test_half_day_morning_leave_shrinks_window():
    leaves = InMemoryLeaves({("EMP001", MONDAY): LeaveKind.HALF_DAY_MORNING})
    machine, _ = _machine(leaves=leaves)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 12, 40), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.window.start == at(2025, 1, 6, 12, 30)
    assert decision.flags.is_late_check_in is False
    assert decision.flags.is_planned_half_day_leave is True


def test_leaving_before_midpoint_is_emergency_leave():
    machine, attendance = _machine()
    _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 10, 0), action=CheckAction.CHECK_OUT)

    assert decision.allowed is True
    assert decision.requires_confirmation is True
    assert decision.flags.is_early_check_out is True
    assert decision.flags.is_emergency_leave is True


def test_leaving_after_midpoint_is_only_early():
    machine, attendance = _machine()
    _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 16, 0), action=CheckAction.CHECK_OUT)

    assert decision.flags.is_early_check_out is True
    assert decision.flags.is_emergency_leave is False
    assert decision.requires_confirmation is False


def test_day_off_without_overtime_is_denied():
    machine, _ = _machine()

    decision = machine.decide("EMP001", True, None, at(2025, 1, 4, 9, 0))

    assert decision.allowed is False


def test_day_off_overtime_check_in():
    provider = InMemoryOvertime()
    provider.add(overtime("EMP001", SATURDAY, time(9, 0), time(12, 0)))
    machine, _ = _machine(overtime_provider=provider)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 4, 9, 0), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.period_type == PeriodType.OVERTIME
    assert decision.overtime_id == "OT1"
    assert decision.flags.is_overtime is True
    assert decision.flags.is_day_off_overtime is True


def test_overtime_check_in_with_open_regular_period_proposes_checkout():
    provider = InMemoryOvertime()
    provider.add(overtime("EMP001", MONDAY, time(17, 30), time(19, 30)))
    machine, attendance = _machine(overtime_provider=provider)
    _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 17, 35), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.period_type == PeriodType.OVERTIME
    assert decision.action == CheckAction.CHECK_IN
    assert decision.requires_confirmation is True
    entries = decision.auto_completion.entries
    assert [(e.period_type, e.action, e.suggested_time) for e in entries] == [
        (PeriodType.REGULAR, CheckAction.CHECK_OUT, at(2025, 1, 6, 17, 0))
    ]


def test_overtime_left_open_past_its_end_is_closed_at_end():
    provider = InMemoryOvertime()
    provider.add(overtime("EMP001", MONDAY, time(17, 30), time(19, 30)))
    machine, attendance = _machine(overtime_provider=provider)
    record = _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))
    attendance.put(
        record.with_changes(
            regular_check_out=at(2025, 1, 6, 17, 0),
            state=AttendanceState.REGULAR_OUT,
            overtime_entries=(OvertimeEntry("OT1", at(2025, 1, 6, 17, 30)),),
        )
    )

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 19, 50), action=CheckAction.CHECK_OUT)

    assert decision.allowed is True
    assert decision.action is None
    entries = decision.auto_completion.entries
    assert [(e.period_type, e.suggested_time, e.overtime_id) for e in entries] == [
        (PeriodType.OVERTIME, at(2025, 1, 6, 19, 30), "OT1")
    ]


def test_afternoon_shift_left_open_needs_manual_correction_next_day():
    machine, attendance = _machine(shift_code="SHIFT104")
    _checked_in(attendance, MONDAY, at(2025, 1, 6, 14, 0), shift=AFTERNOON_SHIFT)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 7, 13, 50), action=CheckAction.CHECK_IN)

    assert decision.allowed is False
    assert decision.requires_manual_correction is True
    assert decision.reason == MANUAL_CORRECTION_REASON
    assert decision.work_date == MONDAY


def test_afternoon_shift_left_open_proposes_2300_on_the_same_day():
    machine, attendance = _machine(shift_code="SHIFT104")
    _checked_in(attendance, MONDAY, at(2025, 1, 6, 14, 0), shift=AFTERNOON_SHIFT)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 23, 40))

    assert decision.allowed is True
    assert decision.requires_confirmation is True
    entries = decision.auto_completion.entries
    assert [(e.action, e.suggested_time) for e in entries] == [(CheckAction.CHECK_OUT, at(2025, 1, 6, 23, 0))]


def test_night_shift_left_open_is_proposed_on_next_check_in():
    machine, attendance = _machine(shift_code="SHIFT103")
    _checked_in(attendance, MONDAY, at(2025, 1, 6, 20, 0), shift=NIGHT_SHIFT)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 7, 19, 45), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.action is None
    assert decision.work_date == MONDAY
    entries = decision.auto_completion.entries
    assert [(e.action, e.suggested_time, e.work_date) for e in entries] == [
        (CheckAction.CHECK_OUT, at(2025, 1, 7, 5, 0), MONDAY)
    ]


def test_holiday_outage_is_flagged_degraded_but_still_decides():
    holidays = GuardedHolidayProvider(DownHolidays(), policy=RetryPolicy(attempts=2, backoff_seconds=0), sleep=lambda s: None)
    machine, _ = _machine(holidays=holidays)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 6, 8, 0), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.flags.is_degraded is True


def test_day_off_overtime_check_out_without_check_in_proposes_the_start():
    provider = InMemoryOvertime()
    provider.add(overtime("EMP001", SATURDAY, time(9, 0), time(12, 0)))
    machine, _ = _machine(overtime_provider=provider)

    decision = machine.decide("EMP001", True, None, at(2025, 1, 4, 11, 50), action=CheckAction.CHECK_OUT)

    assert decision.allowed is True
    assert decision.period_type == PeriodType.OVERTIME
    assert decision.action == CheckAction.CHECK_OUT
    assert decision.requires_confirmation is True
    assert decision.flags.is_auto_check_in is True
    entries = decision.auto_completion.entries
    assert [(e.period_type, e.action, e.suggested_time) for e in entries] == [
        (PeriodType.OVERTIME, CheckAction.CHECK_IN, at(2025, 1, 4, 9, 0))
    ]


def test_overtime_left_open_yesterday_blocks_today_until_corrected():
    provider = InMemoryOvertime()
    provider.add(overtime("EMP001", MONDAY, time(17, 30), time(19, 30)))
    machine, attendance = _machine(overtime_provider=provider)
    record = _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))
    attendance.put(
        record.with_changes(
            regular_check_out=at(2025, 1, 6, 17, 0),
            state=AttendanceState.REGULAR_OUT,
            overtime_entries=(OvertimeEntry("OT1", at(2025, 1, 6, 17, 30)),),
        )
    )

    decision = machine.decide("EMP001", True, None, at(2025, 1, 7, 7, 55), action=CheckAction.CHECK_IN)

    assert decision.allowed is False
    assert decision.requires_manual_correction is True
    assert decision.period_type == PeriodType.OVERTIME
    assert decision.work_date == MONDAY


def test_closed_overtime_yesterday_does_not_block_today():
    provider = InMemoryOvertime()
    provider.add(overtime("EMP001", MONDAY, time(17, 30), time(19, 30)))
    machine, attendance = _machine(overtime_provider=provider)
    record = _checked_in(attendance, MONDAY, at(2025, 1, 6, 8, 0))
    attendance.put(
        record.with_changes(
            regular_check_out=at(2025, 1, 6, 17, 0),
            state=AttendanceState.REGULAR_OUT,
            overtime_entries=(OvertimeEntry("OT1", at(2025, 1, 6, 17, 30), at(2025, 1, 6, 19, 30)),),
        )
    )

    decision = machine.decide("EMP001", True, None, at(2025, 1, 7, 7, 55), action=CheckAction.CHECK_IN)

    assert decision.allowed is True
    assert decision.work_date == TUESDAY
