from __future__ import annotations

from flask import Flask, jsonify, request

from ..app_logger import get_logger
from ..common.http import api_key_required, domain_error_response
from ..common.validators import require_positive_int
from ..container import Container
from ..core.constants import DEFAULT_EVENTS_LIMIT, MAX_EVENTS_LIMIT
from ..core.exceptions import DomainError

logger = get_logger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/rfid/events", methods=["GET"], endpoint="scan_events")
    @api_key_required
    def scan_events():
        """Outbox polling for dashboards: events with id greater than ``after``."""
        try:
            after = require_positive_int(request.args.get("after"), "after", default=0)
            limit = require_positive_int(request.args.get("limit"), "limit", default=DEFAULT_EVENTS_LIMIT)
            events = container.events_repo.list_after(after_id=after, limit=min(max(limit, 1), MAX_EVENTS_LIMIT))
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            logger.exception("error listing scan events")
            return jsonify({"message": "Server error"}), 500

        last_id = events[-1].event_id if events else after
        return jsonify({"events": [e.to_dict() for e in events], "lastId": last_id}), 200
