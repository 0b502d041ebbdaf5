"""Example: record a scan through the service layer (no Flask).

Controllers are a thin layer; the access decision lives in the services.
"""

import importlib
import sys

from config import get_settings_module

from src.eduride.eduride.container import build_container


def main():
    tag_id = sys.argv[1] if len(sys.argv) > 1 else "T1"
    bus_id = sys.argv[2] if len(sys.argv) > 2 else "B1"

    settings = importlib.import_module(get_settings_module())
    container = build_container(settings)
    try:
        outcome = container.access_service.handle_scan(tag_id, bus_id)
        print(outcome.http_status, outcome.to_response())
    finally:
        container.delivery.shutdown()


if __name__ == "__main__":
    main()
