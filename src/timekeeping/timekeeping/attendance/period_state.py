from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from ..common.resilience import degradation_scope
from ..core.constants import NO_ACTIVE_WINDOW_REASON
from ..core.enums import AttendanceState, CheckAction, LeaveKind, PeriodType
from ..core.exceptions import ConfigurationError
from ..leave.repository import LeaveProvider
from ..shifts.model import ShiftWindow
from ..shifts.resolver import ResolvedWindow, ShiftWindowResolver
from .auto_completion import AutoCompletionEngine
from .factory import CheckStrategyFactory
from .model import AttendanceRecord, AutoCompletionStrategy, PeriodDecision, PeriodFlags
from .repository import AttendanceRepository
from .strategies.base import CheckContext

logger = logging.getLogger(__name__)

MANUAL_CORRECTION_REASON = "Incomplete attendance needs a manual correction"


@dataclass(frozen=True)
class _Target:
    period_type: PeriodType
    action: CheckAction
    window: ShiftWindow
    overtime_id: Optional[str] = None


class PeriodStateMachine:
    """Decide whether a check action is allowed right now, and for which period.

    Regular cycle: ABSENT -> REGULAR_IN -> REGULAR_OUT. Each approved overtime
    window runs its own in/out cycle before, after or (day off) instead of the
    regular one. Gaps are handed to the AutoCompletionEngine rather than
    silently denied.
    """

    def __init__(
        self,
        resolver: ShiftWindowResolver,
        attendance: AttendanceRepository,
        leaves: LeaveProvider,
        *,
        auto_completion: Optional[AutoCompletionEngine] = None,
        strategy_factory: Optional[CheckStrategyFactory] = None,
        early_grace_minutes: int = 30,
        late_grace_minutes: int = 15,
    ):
        self._resolver = resolver
        self._attendance = attendance
        self._leaves = leaves
        self._early_grace = timedelta(minutes=int(early_grace_minutes))
        self._late_grace = timedelta(minutes=int(late_grace_minutes))
        self._auto_completion = auto_completion or AutoCompletionEngine(late_grace_minutes=late_grace_minutes)
        self._factory = strategy_factory or CheckStrategyFactory()

    @property
    def late_grace(self) -> timedelta:
        return self._late_grace

    def decide(
        self,
        employee_id: str,
        in_premises: bool,
        address: Optional[str],
        now: datetime,
        *,
        action: Optional[CheckAction] = None,
        reason: Optional[str] = None,
    ) -> PeriodDecision:
        with degradation_scope() as degraded_calls:
            decision = self._decide(employee_id, in_premises, address, now, action=action, reason=reason)

        if degraded_calls or (decision.resolved is not None and decision.resolved.degraded):
            decision = replace(decision, flags=decision.flags.merge(is_degraded=True))
        return decision

    def _decide(
        self,
        employee_id: str,
        in_premises: bool,
        address: Optional[str],
        now: datetime,
        *,
        action: Optional[CheckAction],
        reason: Optional[str],
    ) -> PeriodDecision:
        try:
            resolved = self._resolver.resolve(employee_id, now)
        except ConfigurationError:
            return PeriodDecision(allowed=False, reason=NO_ACTIVE_WINDOW_REASON)

        if not in_premises and not (reason and reason.strip()):
            return PeriodDecision(
                allowed=False,
                reason="Outside the work premises; a reason is required",
                resolved=resolved,
            )

        stale = self._stale_previous_day(employee_id, resolved, now)
        if stale is not None:
            return stale

        record = self._attendance.get_for_employee_and_date(employee_id, resolved.work_date)
        record = record or AttendanceRecord.empty(employee_id, resolved.work_date)

        leave = None
        if not resolved.is_day_off:
            leave = self._leaves.get_approved_leave_covering(employee_id, resolved.work_date)
        if leave == LeaveKind.FULL_DAY:
            return PeriodDecision(allowed=False, reason="Approved leave covers this date", resolved=resolved)
        if resolved.is_day_off and resolved.overtime is None:
            return PeriodDecision(
                allowed=False,
                reason="Not a working day and no approved overtime",
                resolved=resolved,
            )

        target = self._select_target(resolved, record, now, action)
        if target is None:
            return PeriodDecision(
                allowed=False,
                reason="Attendance for this date is already complete",
                resolved=resolved,
            )
        if action is not None and action != target.action:
            return PeriodDecision(
                allowed=False,
                reason="Already checked in" if action == CheckAction.CHECK_IN else "Not checked in yet",
                period_type=target.period_type,
                resolved=resolved,
            )

        if self._needs_completion(target, record, resolved, now):
            strategy = self._auto_completion.handle_missing_entries(
                record, now, resolved, intent=(target.period_type, target.action)
            )
            if strategy.entries:
                follow_up = self._follow_up(target, record, resolved, now)
                return self._confirmation_decision(follow_up, strategy, record, resolved, leave, now)
            if strategy.discarded or self._is_elapsed(target, now):
                return PeriodDecision(
                    allowed=False,
                    reason=MANUAL_CORRECTION_REASON,
                    period_type=target.period_type,
                    action=target.action,
                    resolved=resolved,
                    requires_manual_correction=True,
                )

        return self._judge(target, resolved, leave, now)

    def _stale_previous_day(
        self, employee_id: str, resolved: ResolvedWindow, now: datetime
    ) -> Optional[PeriodDecision]:
        """An open regular or overtime period left on the previous work date must be closed first."""
        previous_date = resolved.work_date - timedelta(days=1)
        previous = self._attendance.get_for_employee_and_date(employee_id, previous_date)
        if previous is None:
            return None
        open_regular = previous.state == AttendanceState.REGULAR_IN
        open_overtime = previous.open_overtime()
        if not open_regular and open_overtime is None:
            return None

        try:
            previous_window = self._resolver.resolve_for_date(employee_id, previous_date)
        except ConfigurationError:
            return None

        period_type = PeriodType.REGULAR if open_regular else PeriodType.OVERTIME
        window = previous_window.regular
        overtime = previous_window.overtime
        if not open_regular and overtime is not None and overtime.overtime_id == open_overtime.overtime_id:
            window = ShiftWindow(start=overtime.start, end=overtime.end)
        if now <= window.end + self._late_grace:
            return None

        strategy = self._auto_completion.handle_missing_entries(previous, now, previous_window)
        if not strategy.entries:
            logger.info("Open attendance on %s for %s needs manual correction", previous_date, employee_id)
            return PeriodDecision(
                allowed=False,
                reason=MANUAL_CORRECTION_REASON,
                period_type=period_type,
                action=CheckAction.CHECK_OUT,
                resolved=previous_window,
                requires_manual_correction=True,
            )

        return PeriodDecision(
            allowed=True,
            reason=strategy.message,
            period_type=period_type,
            action=None,
            flags=PeriodFlags(is_auto_check_out=True),
            window=window,
            auto_completion=strategy,
            requires_confirmation=True,
            resolved=previous_window,
        )

    def _select_target(
        self,
        resolved: ResolvedWindow,
        record: AttendanceRecord,
        now: datetime,
        action: Optional[CheckAction],
    ) -> Optional[_Target]:
        overtime = resolved.overtime
        overtime_target = None
        overtime_started = False
        if overtime is not None:
            entry = record.overtime_entry(overtime.overtime_id)
            overtime_started = entry is not None
            # A check-out with no overtime check-in goes to auto-completion once the regular period is done.
            checks_out_unstarted = (
                entry is None
                and action == CheckAction.CHECK_OUT
                and (resolved.is_day_off or record.regular_check_out is not None)
            )
            if entry is None or entry.is_open:
                overtime_target = _Target(
                    period_type=PeriodType.OVERTIME,
                    action=CheckAction.CHECK_OUT if entry or checks_out_unstarted else CheckAction.CHECK_IN,
                    window=ShiftWindow(start=overtime.start, end=overtime.end),
                    overtime_id=overtime.overtime_id,
                )

        if resolved.is_day_off:
            return overtime_target

        if overtime_target is not None and resolved.overtime_precedes_shift():
            if overtime_started or now <= overtime.end + self._late_grace:
                return overtime_target
            overtime_target = None

        regular = resolved.regular
        if record.state == AttendanceState.ABSENT:
            if action == CheckAction.CHECK_OUT:
                return _Target(PeriodType.REGULAR, CheckAction.CHECK_OUT, regular)
            if overtime_target is not None and now > regular.end + self._late_grace:
                return overtime_target
            return _Target(PeriodType.REGULAR, CheckAction.CHECK_IN, regular)

        if record.state == AttendanceState.REGULAR_IN:
            if (
                overtime_target is not None
                and overtime_target.action == CheckAction.CHECK_IN
                and now >= overtime.start
                and action != CheckAction.CHECK_OUT
            ):
                return overtime_target
            return _Target(PeriodType.REGULAR, CheckAction.CHECK_OUT, regular)

        return overtime_target

    def _is_elapsed(self, target: _Target, now: datetime) -> bool:
        return now > target.window.end + self._late_grace

    def _needs_completion(
        self,
        target: _Target,
        record: AttendanceRecord,
        resolved: ResolvedWindow,
        now: datetime,
    ) -> bool:
        if target.action == CheckAction.CHECK_OUT:
            if target.period_type == PeriodType.REGULAR and record.regular_check_in is None:
                return True
            if target.period_type == PeriodType.OVERTIME and record.overtime_entry(target.overtime_id) is None:
                return True
            return self._is_elapsed(target, now)

        # Overtime after the shift while the regular period is still open or never started.
        return (
            target.period_type == PeriodType.OVERTIME
            and not resolved.is_day_off
            and not resolved.overtime_precedes_shift()
            and record.regular_check_out is None
        )

    def _follow_up(
        self,
        target: _Target,
        record: AttendanceRecord,
        resolved: ResolvedWindow,
        now: datetime,
    ) -> Optional[_Target]:
        """What the employee is actually doing once the proposals are stored."""
        if not self._is_elapsed(target, now):
            return target
        overtime = resolved.overtime
        if (
            target.period_type == PeriodType.REGULAR
            and overtime is not None
            and not resolved.overtime_precedes_shift()
            and record.overtime_entry(overtime.overtime_id) is None
            and now <= overtime.end + self._late_grace
        ):
            return _Target(
                period_type=PeriodType.OVERTIME,
                action=CheckAction.CHECK_IN,
                window=ShiftWindow(start=overtime.start, end=overtime.end),
                overtime_id=overtime.overtime_id,
            )
        return None

    def _confirmation_decision(
        self,
        follow_up: Optional[_Target],
        strategy: AutoCompletionStrategy,
        record: AttendanceRecord,
        resolved: ResolvedWindow,
        leave: Optional[LeaveKind],
        now: datetime,
    ) -> PeriodDecision:
        auto_flags = dict(
            is_auto_check_in=any(e.action == CheckAction.CHECK_IN for e in strategy.entries),
            is_auto_check_out=any(e.action == CheckAction.CHECK_OUT for e in strategy.entries),
        )

        if follow_up is None:
            return PeriodDecision(
                allowed=True,
                reason=strategy.message,
                period_type=strategy.entries[-1].period_type,
                flags=PeriodFlags(**auto_flags),
                auto_completion=strategy,
                requires_confirmation=True,
                resolved=resolved,
            )

        judged = self._judge(follow_up, resolved, leave, now)
        if not judged.allowed:
            return replace(judged, requires_manual_correction=True)

        return replace(
            judged,
            reason=strategy.message,
            flags=judged.flags.merge(**auto_flags),
            auto_completion=strategy,
            requires_confirmation=True,
        )

    def _judge(
        self,
        target: _Target,
        resolved: ResolvedWindow,
        leave: Optional[LeaveKind],
        now: datetime,
    ) -> PeriodDecision:
        window = target.window
        if target.period_type == PeriodType.REGULAR:
            # Half-day leave shrinks the required window to the half being worked.
            window = window.working_half(leave)

        ctx = CheckContext(
            now=now,
            window=window,
            shift_window=resolved.regular,
            early_grace=self._early_grace,
            late_grace=self._late_grace,
            leave=leave,
            is_day_off=resolved.is_day_off,
        )
        outcome = self._factory.for_target(target.period_type, target.action).evaluate(ctx)

        return PeriodDecision(
            allowed=outcome.allowed,
            reason=outcome.reason,
            period_type=target.period_type,
            action=target.action,
            flags=outcome.flags,
            window=window,
            overtime_id=target.overtime_id,
            requires_confirmation=outcome.requires_confirmation,
            resolved=resolved,
        )
