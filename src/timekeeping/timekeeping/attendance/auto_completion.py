"""Back-dated proposals for entries an employee forgot to record.

The regular-period rules are a lookup table keyed by
(missing_check_in, missing_check_out, has_overtime_window). The value is the
ordered list of proposals to emit; an empty tuple means nothing to propose.
has_overtime_window is true once an approved overtime window (after the
shift) has begun.

Three more rules run alongside the table:
- a regular period whose window has fully elapsed with a check-in but no
  check-out gets a check-out at the shift end;
- an overtime check-out with no overtime check-in gets an overtime check-in
  at the approved start;
- an overtime entry still open after its approved end gets an overtime
  check-out at that end.

Every batch passes a validation gate (strictly increasing, not after now,
same calendar day as now unless the shift itself runs overnight). A batch
that fails is dropped as a whole and the caller must route to manual
correction.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from ..common.datetime_utils import fmt_hhmm
from ..core.enums import CheckAction, PeriodType
from ..core.exceptions import ValidationError
from ..shifts.resolver import ResolvedWindow
from .model import AttendanceRecord, AutoCompletionEntry, AutoCompletionStrategy

logger = logging.getLogger(__name__)

Intent = Tuple[PeriodType, CheckAction]

REGULAR_CHECK_IN = "regular_check_in"
REGULAR_CHECK_OUT = "regular_check_out"

# (missing_check_in, missing_check_out, has_overtime_window) -> proposals
REGULAR_RULES: Dict[Tuple[bool, bool, bool], Tuple[str, ...]] = {
    (False, False, False): (),
    (False, False, True): (),
    (False, True, False): (),
    (False, True, True): (REGULAR_CHECK_OUT,),
    (True, False, False): (REGULAR_CHECK_IN,),
    (True, False, True): (REGULAR_CHECK_IN,),
    (True, True, False): (REGULAR_CHECK_IN,),
    (True, True, True): (REGULAR_CHECK_IN, REGULAR_CHECK_OUT),
}

_ACTION_LABELS = {
    CheckAction.CHECK_IN: "เข้างาน",
    CheckAction.CHECK_OUT: "ออกงาน",
}
_PERIOD_LABELS = {
    PeriodType.REGULAR: "กะปกติ",
    PeriodType.OVERTIME: "โอที",
}


class AutoCompletionEngine:
    def __init__(self, *, late_grace_minutes: int = 15):
        self._late_grace = timedelta(minutes=int(late_grace_minutes))

    def handle_missing_entries(
        self,
        current_attendance: AttendanceRecord | None,
        now: datetime,
        window: ResolvedWindow,
        *,
        intent: Optional[Intent] = None,
    ) -> AutoCompletionStrategy:
        """Propose the missing entries for the attempted (period, action), if any."""
        if current_attendance is None:
            return AutoCompletionStrategy()

        entries = self._propose(current_attendance, now, window, intent)
        if not entries:
            return AutoCompletionStrategy()

        try:
            self._validate(entries, now, window)
        except ValidationError as exc:
            logger.warning(
                "Discarding auto-completion for %s on %s: %s",
                current_attendance.employee_id,
                window.work_date,
                exc,
            )
            return AutoCompletionStrategy(discarded=True)

        return AutoCompletionStrategy(
            requires_confirmation=True,
            message=self.build_message(entries),
            entries=tuple(entries),
        )

    def _missing_check_in(
        self, record: AttendanceRecord, now: datetime, window: ResolvedWindow, intent: Optional[Intent]
    ) -> bool:
        if record.regular_check_in is not None:
            return False
        if intent == (PeriodType.REGULAR, CheckAction.CHECK_OUT):
            return True
        if intent == (PeriodType.OVERTIME, CheckAction.CHECK_IN) and not window.overtime_precedes_shift():
            return True
        # Otherwise the employee can still check in for real until the window closes.
        return now > window.regular.end + self._late_grace

    def _propose(
        self, record: AttendanceRecord, now: datetime, window: ResolvedWindow, intent: Optional[Intent]
    ) -> List[AutoCompletionEntry]:
        entries: List[AutoCompletionEntry] = []
        overtime = window.overtime

        open_entry = record.open_overtime()
        # Checking out of overtime that was never checked into.
        opens_overtime = (
            intent == (PeriodType.OVERTIME, CheckAction.CHECK_OUT)
            and overtime is not None
            and record.overtime_entry(overtime.overtime_id) is None
        )
        closes_overtime = (
            overtime is not None
            and now > overtime.end
            and (opens_overtime or (open_entry is not None and open_entry.overtime_id == overtime.overtime_id))
        )
        overtime_entries: List[AutoCompletionEntry] = []
        if opens_overtime:
            overtime_entries.append(self._overtime_check_in(window))
        if closes_overtime:
            overtime_entries.append(self._overtime_check_out(window))

        if window.overtime_precedes_shift():
            entries.extend(overtime_entries)

        if not window.is_day_off:
            has_overtime_window = (
                overtime is not None and not window.overtime_precedes_shift() and now >= overtime.start
            )
            key = (
                self._missing_check_in(record, now, window, intent),
                record.regular_check_out is None,
                has_overtime_window,
            )
            proposals = REGULAR_RULES[key]
            if (
                key == (False, True, False)
                and now > window.regular.end + self._late_grace
            ):
                proposals = (REGULAR_CHECK_OUT,)

            for proposal in proposals:
                if proposal == REGULAR_CHECK_IN:
                    entries.append(
                        AutoCompletionEntry(
                            action=CheckAction.CHECK_IN,
                            suggested_time=window.regular.start,
                            period_type=PeriodType.REGULAR,
                            work_date=window.work_date,
                        )
                    )
                else:
                    entries.append(
                        AutoCompletionEntry(
                            action=CheckAction.CHECK_OUT,
                            suggested_time=window.regular.end,
                            period_type=PeriodType.REGULAR,
                            work_date=window.work_date,
                        )
                    )

        if not window.overtime_precedes_shift():
            entries.extend(overtime_entries)
        return entries

    @staticmethod
    def _overtime_check_in(window: ResolvedWindow) -> AutoCompletionEntry:
        return AutoCompletionEntry(
            action=CheckAction.CHECK_IN,
            suggested_time=window.overtime.start,
            period_type=PeriodType.OVERTIME,
            work_date=window.work_date,
            overtime_id=window.overtime.overtime_id,
        )

    @staticmethod
    def _overtime_check_out(window: ResolvedWindow) -> AutoCompletionEntry:
        return AutoCompletionEntry(
            action=CheckAction.CHECK_OUT,
            suggested_time=window.overtime.end,
            period_type=PeriodType.OVERTIME,
            work_date=window.work_date,
            overtime_id=window.overtime.overtime_id,
        )

    @staticmethod
    def _validate(entries: Sequence[AutoCompletionEntry], now: datetime, window: ResolvedWindow) -> None:
        for prev, nxt in zip(entries, entries[1:]):
            if prev.suggested_time >= nxt.suggested_time:
                raise ValidationError(
                    f"Invalid time order: {fmt_hhmm(prev.suggested_time)} >= {fmt_hhmm(nxt.suggested_time)}"
                )

        allowed_days = {now.date()}
        if window.is_overnight:
            allowed_days.add(window.work_date)

        for entry in entries:
            if entry.suggested_time > now:
                raise ValidationError(f"Future time suggestion: {entry.suggested_time.isoformat()}")
            if entry.suggested_time.date() not in allowed_days:
                raise ValidationError(f"Cross-day suggestion: {entry.suggested_time.date().isoformat()}")

    @staticmethod
    def build_message(entries: Sequence[AutoCompletionEntry]) -> str:
        if not entries:
            return ""

        parts = []
        for period_type in (PeriodType.REGULAR, PeriodType.OVERTIME):
            actions = [
                f"{_ACTION_LABELS[e.action]} {fmt_hhmm(e.suggested_time)}"
                for e in entries
                if e.period_type == period_type
            ]
            if actions:
                parts.append(f"{_PERIOD_LABELS[period_type]} {' และ '.join(actions)}")

        return f"พบการลงเวลาที่ไม่สมบูรณ์: {' และ '.join(parts)} ระบบจะทำการลงเวลาย้อนหลังให้อัตโนมัติ"
