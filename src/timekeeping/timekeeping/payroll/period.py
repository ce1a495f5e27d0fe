from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from ..core.constants import DEFAULT_PAYROLL_PERIOD_START_DAY
from ..core.exceptions import ValidationError

_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class PayrollPeriod:
    """Kỳ lương: từ ngày start_day của tháng trước đến ngày (start_day - 1) của tháng này."""

    start: date
    end: date

    @property
    def label(self) -> str:
        # Named after the month the period closes in.
        return self.end.strftime("%Y-%m")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _check_start_day(start_day: int) -> int:
    start_day = int(start_day)
    # Day 29..31 does not exist in every month.
    if not 2 <= start_day <= 28:
        raise ValidationError("Payroll period start day must be between 2 and 28")
    return start_day


def _period_closing_in(year: int, month: int, start_day: int) -> PayrollPeriod:
    prev_year, prev_month = _shift_month(year, month, -1)
    return PayrollPeriod(
        start=date(prev_year, prev_month, start_day),
        end=date(year, month, start_day - 1),
    )


def period_for(day: date, start_day: int = DEFAULT_PAYROLL_PERIOD_START_DAY) -> PayrollPeriod:
    """The period a calendar day belongs to."""
    start_day = _check_start_day(start_day)
    year, month = day.year, day.month
    if day.day >= start_day:
        year, month = _shift_month(year, month, 1)
    return _period_closing_in(year, month, start_day)


def from_label(label: str, start_day: int = DEFAULT_PAYROLL_PERIOD_START_DAY) -> PayrollPeriod:
    """Parse "YYYY-MM"; 2024-02 with start day 26 is 2024-01-26 .. 2024-02-25."""
    match = _LABEL_RE.match((label or "").strip())
    if not match:
        raise ValidationError("period must be YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError("period must be YYYY-MM")
    return _period_closing_in(year, month, _check_start_day(start_day))


def generate_periods(
    months_back: int,
    today: Optional[date] = None,
    start_day: int = DEFAULT_PAYROLL_PERIOD_START_DAY,
) -> List[PayrollPeriod]:
    """Current period first, then months_back earlier ones."""
    today = today or date.today()
    current = period_for(today, start_day)
    out = [current]
    for _ in range(max(int(months_back), 0)):
        out.append(period_for(out[-1].start - timedelta(days=1), start_day))
    return out
