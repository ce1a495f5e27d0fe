from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Set


@dataclass(frozen=True)
class Holiday:
    holiday_date: date
    name: str
    local_name: Optional[str] = None


def observed_holidays(public_holidays: Iterable[date], is_afternoon_variant: bool) -> Set[date]:
    """Dates a shift group actually takes off; the afternoon group goes one day early."""
    if is_afternoon_variant:
        return {d - timedelta(days=1) for d in public_holidays}
    return set(public_holidays)
