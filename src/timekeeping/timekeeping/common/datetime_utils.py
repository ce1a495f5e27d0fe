from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Iterator, Optional, Sequence, Tuple

Interval = Tuple[datetime, datetime]

HOURS_QUANT = Decimal("0.01")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse a wall-clock HH:MM (or HH:MM:SS / HHMM) string."""
    v = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S", "%H%M"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time format: {value!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def js_weekday(day: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday (shift work-day convention)."""
    return (day.weekday() + 1) % 7


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def anchor_window(work_date: date, start: time, end: time) -> Interval:
    """Absolute [start, end] for a wall-clock window; end moves to the next day when it wraps."""
    start_dt = datetime.combine(work_date, start)
    end_dt = datetime.combine(work_date, end)
    if end_dt < start_dt:
        end_dt += timedelta(days=1)
    return start_dt, end_dt


def minutes_between(start: datetime, end: datetime) -> int:
    return max(int((end - start).total_seconds() // 60), 0)


def overlap_minutes(a: Interval, b: Interval) -> int:
    start = max(a[0], b[0])
    end = min(a[1], b[1])
    return minutes_between(start, end) if end > start else 0


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    ordered = sorted((i for i in intervals if i[1] > i[0]), key=lambda i: i[0])
    merged: list[Interval] = []
    for start, end in ordered:
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def minutes_outside(intervals: Sequence[Interval], window: Optional[Interval]) -> int:
    """Minutes covered by the union of intervals that fall outside window."""
    merged = merge_intervals(intervals)
    total = sum(minutes_between(s, e) for s, e in merged)
    if window is None:
        return total
    return total - sum(overlap_minutes(i, window) for i in merged)


def minutes_to_hours(minutes: int) -> Decimal:
    return (Decimal(int(minutes)) / Decimal(60)).quantize(HOURS_QUANT, rounding=ROUND_HALF_UP)


def round_minutes_to_hours(minutes: int, granularity_minutes: int) -> Decimal:
    """Round minutes half-up to the granularity and express them as hours."""
    if granularity_minutes <= 0:
        return minutes_to_hours(minutes)
    steps = (Decimal(int(minutes)) / Decimal(granularity_minutes)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return minutes_to_hours(int(steps) * granularity_minutes)


def fmt_hhmm(value: Optional[datetime]) -> str:
    return value.strftime("%H:%M") if value else "-"
