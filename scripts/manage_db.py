"""Database housekeeping for the EduRide gate service.

    python scripts/manage_db.py init    # create database + apply database/schema.sql
    python scripts/manage_db.py seed    # load database/seed.sql (demo buses, students, guardian)
    python scripts/manage_db.py check   # list tables, verify the open-session unique index
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

from src.eduride.eduride.database.bootstrap import (
    DBTarget,
    apply_schema,
    apply_seed_sql,
    has_open_session_guard,
    list_tables,
)


def _init(db_config: dict) -> int:
    count = apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    print(f"OK: applied {count} schema statements")
    return _check(db_config)


def _seed(db_config: dict) -> int:
    count = apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    print(f"OK: applied {count} seed statements")
    return 0


def _check(db_config: dict) -> int:
    tables = list_tables(db_config)
    print(f"tables ({len(tables)}): {', '.join(sorted(tables))}")
    if not has_open_session_guard(db_config):
        print("ERROR: attendance_sessions has no uq_open_session index; concurrent scans may open duplicate sessions")
        return 1
    print("OK: open-session guard present")
    return 0


COMMANDS = {"init": _init, "seed": _seed, "check": _check}


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage the EduRide database")
    parser.add_argument("command", choices=sorted(COMMANDS))
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    print(f"target: {DBTarget.from_config(db_config).describe()}")
    return COMMANDS[args.command](db_config)


if __name__ == "__main__":
    sys.exit(main())
