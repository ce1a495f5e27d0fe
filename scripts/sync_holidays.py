"""Nạp lịch ngày lễ của một năm vào bảng holidays.

Usage: python scripts/sync_holidays.py 2025 [COUNTRY]
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.timekeeping.timekeeping.core.settings import EngineSettings
from src.timekeeping.timekeeping.database.connection import DBConfig, DatabaseConnection
from src.timekeeping.timekeeping.holidays.mysql_holiday_repository import MySQLHolidayRepository
from src.timekeeping.timekeeping.holidays.nager_client import NagerDateClient


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    engine = EngineSettings.from_module(settings)

    parser = argparse.ArgumentParser(description="Fetch public holidays into the holidays table")
    parser.add_argument("year", type=int)
    parser.add_argument("country", nargs="?", default=engine.holiday_country_code)
    args = parser.parse_args()

    client = NagerDateClient(engine.holiday_api_url, timeout=engine.http_timeout_seconds)
    try:
        holidays = client.fetch_public_holidays(args.year, args.country)
    finally:
        client.close()

    repo = MySQLHolidayRepository(DatabaseConnection(DBConfig.from_dict(dict(settings.DB_CONFIG))))
    inserted = repo.insert_many(holidays)
    print(f"OK: {len(holidays)} holidays for {args.country} {args.year} ({inserted} new)")


if __name__ == "__main__":
    main()
