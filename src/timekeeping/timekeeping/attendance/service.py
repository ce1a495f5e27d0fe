from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Dict, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..common.validators import require_non_empty
from ..core.enums import AttendanceState, CheckAction, PeriodType
from ..core.exceptions import ConfigurationError, ValidationError
from ..shifts.resolver import ResolvedWindow, ShiftWindowResolver
from .model import (
    AttendanceRecord,
    AutoCompletionEntry,
    CheckResult,
    Location,
    OvertimeEntry,
    PeriodDecision,
    WindowStatus,
)
from .period_state import PeriodStateMachine
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _advance(record: AttendanceRecord, state: AttendanceState) -> AttendanceState:
    if state.rank < record.state.rank:
        raise ValidationError(
            f"Attendance state cannot move back from {record.state.value} to {state.value}"
        )
    return state


def _with_overtime_entry(record: AttendanceRecord, entry: OvertimeEntry) -> AttendanceRecord:
    others = tuple(e for e in record.overtime_entries if e.overtime_id != entry.overtime_id)
    return record.with_changes(overtime_entries=others + (entry,), is_overtime=True)


class AttendanceService:
    """Check-in / check-out use cases.

    Mutations for one employee are serialized by a per-employee lock; the
    repository adds a unique (employee, date) key and a version check, so a
    lost race always ends in ConcurrencyConflict instead of a duplicate row.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        state_machine: PeriodStateMachine,
        resolver: ShiftWindowResolver,
        *,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._state = state_machine
        self._resolver = resolver
        self._locks = locks or KeyedLock()
        self._clock = clock

    def get_window_status(self, employee_id: str, now: Optional[datetime] = None) -> WindowStatus:
        employee_id = require_non_empty(employee_id, "employee_id")
        now = now or self._clock()
        decision = self._state.decide(employee_id, True, None, now)

        record = None
        if decision.work_date is not None:
            record = self._attendance.get_for_employee_and_date(employee_id, decision.work_date)
        return WindowStatus(employee_id=employee_id, decision=decision, record=record)

    def submit_check(
        self,
        employee_id: str,
        action: CheckAction | str,
        timestamp: Optional[datetime],
        location: Location,
        *,
        confirm_auto_completion: bool = False,
        reason: Optional[str] = None,
    ) -> CheckResult:
        employee_id = require_non_empty(employee_id, "employee_id")
        try:
            action = CheckAction(action)
        except ValueError:
            raise ValidationError(f"Unknown action: {action!r}")
        now = timestamp or self._clock()

        with self._locks.hold(employee_id):
            decision = self._decide(employee_id, action, now, location, reason)
            if not decision.allowed or (decision.requires_confirmation and not confirm_auto_completion):
                return CheckResult(decision=decision, persisted=False)

            record = None
            strategy = decision.auto_completion
            if strategy is not None and strategy.entries:
                record = self._apply_entries(employee_id, strategy.entries, decision.resolved)
                if decision.action is None:
                    # The proposals closed an earlier period; now do what was asked.
                    decision = self._decide(employee_id, action, now, location, reason)
                    if (
                        not decision.allowed
                        or decision.auto_completion is not None
                        or (decision.requires_confirmation and not confirm_auto_completion)
                    ):
                        return CheckResult(decision=decision, persisted=True, record=record)

            record = self._apply_action(employee_id, decision, now, location, reason)
            logger.info(
                "%s %s %s at %s (work date %s)",
                employee_id,
                decision.period_type.value,
                decision.action.value,
                now.isoformat(),
                decision.work_date,
            )
            return CheckResult(decision=decision, persisted=True, record=record)

    def manual_correction(
        self,
        employee_id: str,
        work_date: date,
        *,
        check_in: Optional[datetime] = None,
        check_out: Optional[datetime] = None,
        overtime_entries: Optional[Sequence[OvertimeEntry]] = None,
        reason: str,
    ) -> AttendanceRecord:
        """Explicit correction by an operator; the only path allowed to move state backwards."""
        employee_id = require_non_empty(employee_id, "employee_id")
        reason = require_non_empty(reason or "", "reason")
        if check_out is not None and check_in is None:
            raise ValidationError("A check-out needs a check-in")
        if check_in is not None and check_out is not None and check_out <= check_in:
            raise ValidationError("Check-out must be after check-in")
        for entry in overtime_entries or ():
            if entry.actual_end is not None and entry.actual_end <= entry.actual_start:
                raise ValidationError(f"Overtime {entry.overtime_id} ends before it starts")

        if check_out is not None:
            state = AttendanceState.REGULAR_OUT
        elif check_in is not None:
            state = AttendanceState.REGULAR_IN
        else:
            state = AttendanceState.ABSENT

        with self._locks.hold(employee_id):
            record = self._load(employee_id, work_date)
            changes: Dict[str, object] = dict(
                regular_check_in=check_in,
                regular_check_out=check_out,
                state=state,
                is_manual_entry=True,
                is_auto_check_in=False,
                is_auto_check_out=False,
                note=reason,
            )
            if overtime_entries is not None:
                changes["overtime_entries"] = tuple(overtime_entries)
                changes["is_overtime"] = bool(overtime_entries)

            try:
                resolved = self._resolver.resolve_for_date(employee_id, work_date)
            except ConfigurationError:
                logger.warning("Manual correction for %s on %s without a resolvable shift", employee_id, work_date)
            else:
                changes.update(self._shift_snapshot(resolved))
                if check_in is not None:
                    late_after = resolved.regular.start + self._state.late_grace
                    changes["is_late_check_in"] = check_in > late_after

            saved = self._attendance.save(record.with_changes(**changes))
            logger.info("Manual correction for %s on %s: %s", employee_id, work_date, reason)
            return saved

    def _decide(
        self,
        employee_id: str,
        action: CheckAction,
        now: datetime,
        location: Location,
        reason: Optional[str],
    ) -> PeriodDecision:
        return self._state.decide(
            employee_id,
            location.in_premises,
            location.address,
            now,
            action=action,
            reason=reason,
        )

    def _load(self, employee_id: str, work_date: date) -> AttendanceRecord:
        record = self._attendance.get_for_employee_and_date(employee_id, work_date)
        return record or AttendanceRecord.empty(employee_id, work_date)

    @staticmethod
    def _shift_snapshot(resolved: Optional[ResolvedWindow]) -> Dict[str, object]:
        if resolved is None:
            return {}
        return dict(
            shift_start=resolved.regular.start,
            shift_end=resolved.regular.end,
            is_day_off=resolved.is_day_off,
        )

    def _apply_entries(
        self,
        employee_id: str,
        entries: Sequence[AutoCompletionEntry],
        resolved: Optional[ResolvedWindow],
    ) -> AttendanceRecord:
        record = None
        for entry in entries:
            if record is None or record.work_date != entry.work_date:
                if record is not None:
                    self._attendance.save(record)
                record = self._load(employee_id, entry.work_date)
                if resolved is not None and resolved.work_date == entry.work_date:
                    record = record.with_changes(**self._shift_snapshot(resolved))

            if entry.period_type == PeriodType.OVERTIME and entry.action == CheckAction.CHECK_IN:
                if record.overtime_entry(entry.overtime_id) is not None:
                    raise ValidationError(f"Overtime entry {entry.overtime_id} already started")
                record = _with_overtime_entry(
                    record,
                    OvertimeEntry(
                        overtime_id=entry.overtime_id,
                        actual_start=entry.suggested_time,
                        is_auto_check_in=True,
                    ),
                )
            elif entry.period_type == PeriodType.OVERTIME:
                current = record.overtime_entry(entry.overtime_id)
                if current is None:
                    raise ValidationError(f"No overtime entry {entry.overtime_id} to close")
                record = _with_overtime_entry(
                    record,
                    OvertimeEntry(
                        overtime_id=current.overtime_id,
                        actual_start=current.actual_start,
                        actual_end=entry.suggested_time,
                        is_auto_check_in=current.is_auto_check_in,
                        is_auto_check_out=True,
                    ),
                )
            elif entry.action == CheckAction.CHECK_IN:
                record = record.with_changes(
                    regular_check_in=entry.suggested_time,
                    state=_advance(record, AttendanceState.REGULAR_IN),
                    is_auto_check_in=True,
                )
            else:
                record = record.with_changes(
                    regular_check_out=entry.suggested_time,
                    state=_advance(record, AttendanceState.REGULAR_OUT),
                    is_auto_check_out=True,
                )

        saved = self._attendance.save(record)
        logger.info("Stored %d auto-completed entr(ies) for %s on %s", len(entries), employee_id, saved.work_date)
        return saved

    def _apply_action(
        self,
        employee_id: str,
        decision: PeriodDecision,
        now: datetime,
        location: Location,
        reason: Optional[str],
    ) -> AttendanceRecord:
        resolved = decision.resolved
        record = self._load(employee_id, resolved.work_date).with_changes(**self._shift_snapshot(resolved))
        if location.address:
            record = record.with_changes(location_address=location.address)
        if reason:
            record = record.with_changes(note=reason.strip())

        if decision.period_type == PeriodType.OVERTIME:
            current = record.overtime_entry(decision.overtime_id)
            if decision.action == CheckAction.CHECK_IN:
                if current is not None:
                    raise ValidationError("Overtime already started")
                record = _with_overtime_entry(record, OvertimeEntry(overtime_id=decision.overtime_id, actual_start=now))
            else:
                if current is None or not current.is_open:
                    raise ValidationError("Overtime has not been started")
                record = _with_overtime_entry(
                    record,
                    OvertimeEntry(
                        overtime_id=current.overtime_id,
                        actual_start=current.actual_start,
                        actual_end=now,
                        is_auto_check_in=current.is_auto_check_in,
                    ),
                )
        elif decision.action == CheckAction.CHECK_IN:
            record = record.with_changes(
                regular_check_in=now,
                state=_advance(record, AttendanceState.REGULAR_IN),
                is_late_check_in=decision.flags.is_late_check_in,
            )
        else:
            if record.regular_check_in is None:
                raise ValidationError("Not checked in yet")
            record = record.with_changes(
                regular_check_out=now,
                state=_advance(record, AttendanceState.REGULAR_OUT),
            )

        return self._attendance.save(record)
