from __future__ import annotations

import logging
import threading
from datetime import date, timedelta
from typing import Dict, Optional, Set

from .nager_client import NagerDateClient
from .repository import HolidayRepository

logger = logging.getLogger(__name__)


class HolidayService:
    """HolidayProvider backed by the holiday table, synced lazily per year."""

    def __init__(
        self,
        holidays: HolidayRepository,
        *,
        client: Optional[NagerDateClient] = None,
        country_code: str = "TH",
    ):
        self._holidays = holidays
        self._client = client
        self._country_code = country_code
        self._by_year: Dict[int, Set[date]] = {}
        self._lock = threading.Lock()

    def _year(self, year: int) -> Set[date]:
        with self._lock:
            cached = self._by_year.get(year)
        if cached is not None:
            return cached

        rows = self._holidays.list_between(date(year, 1, 1), date(year, 12, 31))
        if not rows and self._client is not None:
            logger.info("No holidays stored for %s; fetching %s calendar", year, self._country_code)
            fetched = self._client.fetch_public_holidays(year, self._country_code)
            if fetched:
                self._holidays.insert_many(fetched)
            rows = fetched

        days = {h.holiday_date for h in rows}
        with self._lock:
            self._by_year[year] = days
        return days

    def get_holidays(self, start: date, end: date) -> Set[date]:
        out: Set[date] = set()
        for year in range(start.year, end.year + 1):
            out.update(d for d in self._year(year) if start <= d <= end)
        return out

    def is_holiday(self, day: date, is_afternoon_variant: bool = False) -> bool:
        # The afternoon group observes a holiday on the day before it.
        check = day + timedelta(days=1) if is_afternoon_variant else day
        return check in self._year(check.year)

    def forget(self, year: Optional[int] = None) -> None:
        with self._lock:
            if year is None:
                self._by_year.clear()
            else:
                self._by_year.pop(year, None)
