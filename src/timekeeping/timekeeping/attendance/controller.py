from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.validators import require_enum
from ..common.web import bulk_payload, current_actor, int_field, json_body, to_jsonable
from ..container import Container
from ..core.enums import PunchState
from ..core.exceptions import AuthorizationError, ValidationError
from .model import RawPunch


def register(app: Flask, container: Container) -> None:
    svc = container.attendance_service

    def _parse_punch(item) -> RawPunch:
        if not isinstance(item, dict):
            raise ValidationError("Each punch must be an object")
        try:
            employee_id = int(item["employee_id"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("employee_id is required")
        return RawPunch(
            employee_id=employee_id,
            punched_at=parse_iso_datetime(str(item.get("punched_at", ""))),
            punch_state=require_enum(PunchState, item.get("punch_state"), "punch_state"),
            device_id=(str(item["device_id"]) if item.get("device_id") else None),
        )

    @app.route("/api/attendance/punches", methods=["POST"], endpoint="api_ingest_punches")
    def ingest_punches():
        current_actor(container.employees_repo)
        data = json_body()
        raw = data.get("punches")
        if not isinstance(raw, list):
            raise ValidationError("punches must be a list")
        result = svc.ingest_punches([_parse_punch(p) for p in raw])
        return jsonify(
            {
                "received": result.received,
                "inserted": result.inserted,
                "recomputed": to_jsonable(result.recomputed),
                **bulk_payload(result.outcome),
            }
        )

    @app.route("/api/attendance/recalculate", methods=["POST"], endpoint="api_recalculate_attendance")
    def recalculate():
        ctx = current_actor(container.employees_repo)
        if not ctx.is_privileged:
            raise AuthorizationError("Only HRD or a super admin can recalculate attendance")
        data = json_body()
        summary = svc.recalculate_metrics(
            parse_iso_date(str(data.get("start_date", ""))),
            parse_iso_date(str(data.get("end_date", ""))),
            employee_id=int_field(data, "employee_id", required=False),
        )
        return jsonify(to_jsonable(summary))

    @app.route("/api/attendance/post", methods=["POST"], endpoint="api_post_attendance")
    def post_attendance():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        count = svc.post(
            parse_iso_date(str(data.get("start_date", ""))),
            parse_iso_date(str(data.get("end_date", ""))),
            ctx,
            employee_id=int_field(data, "employee_id", required=False),
        )
        return jsonify({"posted": count})

    @app.route("/api/attendance/<int:employee_id>/<attendance_date>", methods=["GET"], endpoint="api_get_attendance")
    def get_attendance(employee_id: int, attendance_date: str):
        current_actor(container.employees_repo)
        rec = svc.get(employee_id, parse_iso_date(attendance_date))
        return jsonify(to_jsonable(rec))

    @app.route(
        "/api/attendance/<int:employee_id>/<attendance_date>/problems",
        methods=["GET"],
        endpoint="api_attendance_problems",
    )
    def attendance_problems(employee_id: int, attendance_date: str):
        current_actor(container.employees_repo)
        found = svc.problems(employee_id, parse_iso_date(attendance_date))
        payload = to_jsonable(found)
        payload["severity"] = found.severity.value if found.severity else None
        return jsonify(payload)
