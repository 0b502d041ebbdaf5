from __future__ import annotations

from flask import Flask, jsonify, request

from ..app_logger import get_logger
from ..common.http import domain_error_response
from ..container import Container
from ..core.exceptions import DomainError

logger = get_logger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/rfid", methods=["POST"], endpoint="record_rfid_scan")
    def record_rfid_scan():
        """Scan from a bus-mounted reader: {uid|tagId, busId, timestamp?}."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        try:
            outcome = container.access_service.handle_scan(
                data.get("uid") or data.get("tagId"),
                data.get("busId"),
                data.get("timestamp"),
            )
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            logger.exception("error recording RFID scan")
            return jsonify({"message": "Server error"}), 500

        return jsonify(outcome.to_response()), outcome.http_status
