from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

import requests

from .model import Holiday

logger = logging.getLogger(__name__)


class NagerDateClient:
    """Thin client for the public holiday calendar at date.nager.at."""

    def __init__(self, base_url: str, *, timeout: int = 10, session: Optional[requests.Session] = None):
        self._base_url = base_url.rstrip("/")
        self._timeout = int(timeout)
        self._session = session or requests.Session()

    def fetch_public_holidays(self, year: int, country_code: str) -> List[Holiday]:
        url = f"{self._base_url}/{int(year)}/{country_code}"
        response = self._session.get(url, timeout=self._timeout, headers={"Accept": "application/json"})
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, list):
            raise ValueError(f"Unexpected holiday payload for {year}: {type(payload).__name__}")

        holidays: List[Holiday] = []
        for item in payload:
            try:
                holidays.append(
                    Holiday(
                        holiday_date=date.fromisoformat(str(item["date"])),
                        name=str(item.get("name") or ""),
                        local_name=item.get("localName"),
                    )
                )
            except (KeyError, ValueError, TypeError):
                logger.warning("Skipping malformed holiday entry: %r", item)
        return holidays

    def close(self) -> None:
        self._session.close()
