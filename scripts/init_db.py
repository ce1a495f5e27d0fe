"""Tạo bảng cho cơ sở dữ liệu chấm công (và dữ liệu mẫu nếu cần).

Usage: python scripts/init_db.py [--seed]
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

from src.timekeeping.timekeeping.database.bootstrap import apply_schema, apply_seed_sql, list_tables

DATABASE_DIR = REPO_ROOT / "database"


def main() -> None:
    load_dotenv(override=False)
    parser = argparse.ArgumentParser(description="Apply database/schema.sql to the configured MySQL database")
    parser.add_argument("--seed", action="store_true", help="also load shifts SHIFT101..SHIFT104 and demo employees")
    args = parser.parse_args()

    db_config = dict(importlib.import_module(get_settings_module()).DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    if args.seed:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
    print(f"OK: {target} tables: {', '.join(list_tables(db_config))}")


if __name__ == "__main__":
    main()
