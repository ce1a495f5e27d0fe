from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Tuple

from ..common.cache import TTLCache
from ..common.resilience import degradation_scope
from ..core.enums import PeriodType, RequestStatus
from ..core.exceptions import ConfigurationError
from ..holidays.repository import HolidayProvider
from ..overtime.model import OvertimeWindow
from ..overtime.repository import OvertimeProvider
from .model import ShiftDefinition, ShiftWindow
from .repository import ShiftCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedWindow:
    """Effective schedule of one employee-date, in absolute timestamps."""

    employee_id: str
    work_date: date
    shift: ShiftDefinition
    regular: ShiftWindow
    overtime: Optional[OvertimeWindow]
    is_holiday: bool
    is_day_off: bool
    is_adjusted: bool = False
    degraded: bool = False

    @property
    def is_overnight(self) -> bool:
        return self.shift.is_overnight

    def period_window(self, period_type: PeriodType) -> Optional[ShiftWindow]:
        if period_type == PeriodType.OVERTIME:
            if self.overtime is None:
                return None
            return ShiftWindow(start=self.overtime.start, end=self.overtime.end)
        if self.is_day_off:
            return None
        return self.regular

    def overtime_precedes_shift(self) -> bool:
        return self.overtime is not None and not self.is_day_off and self.overtime.end <= self.regular.start


class ShiftWindowResolver:
    """Resolve the day's effective window(s) for an employee.

    Order: approved adjustment for the date, assigned shift, system default.
    Results are cached per (employee, work date) for a few minutes; call
    invalidate() when an adjustment is approved or rejected.
    """

    def __init__(
        self,
        catalog: ShiftCatalog,
        holidays: HolidayProvider,
        overtime: OvertimeProvider,
        *,
        default_shift_code: Optional[str] = None,
        late_grace_minutes: int = 15,
        cache_ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._catalog = catalog
        self._holidays = holidays
        self._overtime = overtime
        self._default_shift_code = default_shift_code
        self._late_grace = timedelta(minutes=int(late_grace_minutes))
        self._cache: TTLCache[ResolvedWindow] = TTLCache(cache_ttl_seconds, clock=clock)

    def effective_shift(self, employee_id: str, work_date: date) -> Tuple[ShiftDefinition, bool]:
        """Return (shift, is_adjusted) for the date or raise ConfigurationError."""
        adjusted = self._catalog.get_approved_adjustment(employee_id, work_date)
        if adjusted:
            return adjusted, True

        assigned = self._catalog.get_assigned_shift(employee_id)
        if assigned:
            return assigned, False

        if self._default_shift_code:
            fallback = self._catalog.get_shift(self._default_shift_code)
            if fallback:
                logger.warning(
                    "Employee %s has no assigned shift; using default %s for %s",
                    employee_id,
                    self._default_shift_code,
                    work_date,
                )
                return fallback, False

        logger.error("No shift could be resolved for employee %s on %s", employee_id, work_date)
        raise ConfigurationError(f"No shift configured for employee {employee_id}")

    def resolve_for_date(self, employee_id: str, work_date: date) -> ResolvedWindow:
        key = (employee_id, work_date)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        with degradation_scope() as degraded_calls:
            shift, is_adjusted = self.effective_shift(employee_id, work_date)
            regular = shift.window_for(work_date)
            is_holiday = self._holidays.is_holiday(work_date, shift.is_afternoon_variant)
            is_day_off = is_holiday or not shift.works_on(work_date)
            overtime = self._overtime_window(employee_id, work_date, is_day_off)

        resolved = ResolvedWindow(
            employee_id=employee_id,
            work_date=work_date,
            shift=shift,
            regular=regular,
            overtime=overtime,
            is_holiday=is_holiday,
            is_day_off=is_day_off,
            is_adjusted=is_adjusted,
            degraded=bool(degraded_calls),
        )
        # A fallback answer must not outlive the outage.
        if not resolved.degraded:
            self._cache.set(key, resolved)
        return resolved

    def resolve(self, employee_id: str, reference_instant: datetime) -> ResolvedWindow:
        tail = self._overnight_tail(employee_id, reference_instant)
        if tail is not None:
            return tail
        return self.resolve_for_date(employee_id, reference_instant.date())

    def _overnight_tail(self, employee_id: str, instant: datetime) -> Optional[ResolvedWindow]:
        """Yesterday's window when instant still falls inside yesterday's overnight shift."""
        previous = instant.date() - timedelta(days=1)
        try:
            shift, _ = self.effective_shift(employee_id, previous)
        except ConfigurationError:
            return None
        if not shift.is_overnight:
            return None
        if instant > shift.window_for(previous).end + self._late_grace:
            return None

        resolved = self.resolve_for_date(employee_id, previous)
        if resolved.is_day_off and resolved.overtime is None:
            return None
        return resolved

    def _overtime_window(self, employee_id: str, work_date: date, is_day_off: bool) -> Optional[OvertimeWindow]:
        request = self._overtime.get_approved_overtime(employee_id, work_date)
        if request is None or request.status != RequestStatus.APPROVED:
            return None
        window = request.to_window()
        if is_day_off and not window.is_day_off_overtime:
            window = replace(window, is_day_off_overtime=True)
        return window

    def invalidate(self, employee_id: str) -> int:
        dropped = self._cache.invalidate(lambda key: key[0] == employee_id)
        logger.info("Dropped %d cached shift window(s) for employee %s", dropped, employee_id)
        return dropped
