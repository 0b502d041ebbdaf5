"""Retry failed guardian notifications.

Meant to run from cron; each run sends every failed notification that has not
used up NOTIFY_MAX_ATTEMPTS yet.
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

from src.eduride.eduride.app_logger import setup_logging
from src.eduride.eduride.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--limit", type=int, default=100)
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(settings)
    try:
        retried = container.delivery.retry_failed(limit=args.limit)
    finally:
        container.delivery.shutdown()
    print(f"OK: Retried {retried} failed notifications")


if __name__ == "__main__":
    main()
