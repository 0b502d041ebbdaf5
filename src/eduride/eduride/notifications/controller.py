from __future__ import annotations

from flask import Flask, jsonify, request

from ..app_logger import get_logger
from ..common.http import api_key_required, domain_error_response
from ..common.validators import require_id_list, require_non_empty
from ..container import Container
from ..core.enums import NotificationType
from ..core.exceptions import DomainError, NotFoundError, ValidationError

logger = get_logger(__name__)

BROADCAST_TYPES = frozenset({NotificationType.DELAY, NotificationType.EMERGENCY, NotificationType.ANNOUNCEMENT})


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications/broadcast", methods=["POST"], endpoint="broadcast_notification")
    @api_key_required
    def broadcast_notification():
        """Admin broadcast: {userIds, type: delay|emergency|announcement, message, busId?}."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        try:
            user_ids = require_id_list(data.get("userIds"), "userIds")
            message = require_non_empty(data.get("message"), "message")
            try:
                notification_type = NotificationType(data.get("type"))
            except ValueError:
                raise ValidationError("type must be one of: announcement, delay, emergency")
            if notification_type not in BROADCAST_TYPES:
                raise ValidationError("type must be one of: announcement, delay, emergency")

            bus = None
            if data.get("busId"):
                bus = container.buses_repo.get_by_code(str(data["busId"]))
                if not bus:
                    raise NotFoundError("Bus not found")

            queued = container.dispatcher.broadcast(user_ids, notification_type, message, bus)
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            logger.exception("error sending broadcast notification")
            return jsonify({"message": "Server error"}), 500

        return (
            jsonify(
                {
                    "message": f"Broadcast notification sent to {len(queued)} recipients",
                    "notificationIds": queued,
                }
            ),
            201,
        )
