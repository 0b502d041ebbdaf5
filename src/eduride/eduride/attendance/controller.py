from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..app_logger import get_logger
from ..common.datetime_utils import parse_iso_date
from ..common.http import api_key_required, domain_error_response
from ..container import Container
from ..core.exceptions import DomainError

logger = get_logger(__name__)


def register(app: Flask, container: Container) -> None:
    def _date_arg(name: str):
        value: Optional[str] = request.args.get(name)
        return parse_iso_date(value) if value else None

    def _run(query, what: str):
        try:
            return jsonify(query()), 200
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            logger.exception("error getting %s", what)
            return jsonify({"message": "Server error"}), 500

    @app.route("/api/rfid/student/<int:student_id>", methods=["GET"], endpoint="student_attendance")
    @api_key_required
    def student_attendance(student_id: int):
        return _run(
            lambda: container.attendance_service.for_student(
                student_id,
                start=_date_arg("startDate"),
                end=_date_arg("endDate"),
            ),
            "student attendance",
        )

    @app.route("/api/rfid/bus/<bus_id>", methods=["GET"], endpoint="bus_attendance")
    @api_key_required
    def bus_attendance(bus_id: str):
        return _run(
            lambda: container.attendance_service.for_bus(bus_id, day=_date_arg("date")),
            "bus attendance",
        )

    @app.route("/api/rfid/today", methods=["GET"], endpoint="today_attendance")
    @api_key_required
    def today_attendance():
        return _run(container.attendance_service.for_day, "today's attendance")

    @app.route("/api/rfid/report", methods=["GET"], endpoint="attendance_report")
    @api_key_required
    def attendance_report():
        return _run(
            lambda: container.attendance_service.report(
                start=_date_arg("startDate"),
                end=_date_arg("endDate"),
                bus_code=request.args.get("busId") or None,
            ),
            "attendance report",
        )
