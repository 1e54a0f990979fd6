from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import Flask, jsonify

from ..common.datetime_utils import parse_clock, parse_iso_date
from ..common.validators import require_enum
from ..common.web import bulk_payload, current_actor, id_list, int_field, json_body, to_jsonable
from ..container import Container
from ..core.enums import OvertimeType, RequestStatus
from ..core.exceptions import ValidationError
from .service import OvertimeDraft


def _decimal_or_none(value, field_name: str):
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")


def _flag(data: dict, key: str):
    v = data.get(key)
    if v is None:
        return None
    return bool(v)


def register(app: Flask, container: Container) -> None:
    svc = container.overtime_service

    def _draft(data: dict) -> OvertimeDraft:
        start = parse_clock(data.get("start_time"))
        end = parse_clock(data.get("end_time"))
        if start is None or end is None:
            raise ValidationError("start_time and end_time are required")
        return OvertimeDraft(
            employee_id=int_field(data, "employee_id", required=False) or 0,
            overtime_date=parse_iso_date(str(data.get("date", ""))),
            start=start,
            end=end,
            overtime_type=(
                require_enum(OvertimeType, data["overtime_type"], "overtime_type") if data.get("overtime_type") else None
            ),
            rate_multiplier=_decimal_or_none(data.get("rate_multiplier"), "rate_multiplier"),
            total_hours=_decimal_or_none(data.get("total_hours"), "total_hours"),
            beyond_eight_hours=bool(data.get("beyond_eight_hours", False)),
            is_regular_holiday=bool(data.get("is_regular_holiday", False)),
            is_special_holiday=bool(data.get("is_special_holiday", False)),
            is_scheduled_rest_day=bool(data.get("is_scheduled_rest_day", False)),
            is_rest_day=_flag(data, "is_rest_day"),
            reason=data.get("reason"),
        )

    @app.route("/api/overtime", methods=["POST"], endpoint="api_create_overtime")
    def create_overtime():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        if "employee_ids" in data:
            result = svc.create_for_employees(id_list(data, "employee_ids"), _draft(data), ctx)
            return jsonify(bulk_payload(result))
        created = svc.create(_draft(data), ctx)
        return jsonify(to_jsonable(created)), 201

    @app.route("/api/overtime/<int:request_id>", methods=["GET"], endpoint="api_get_overtime")
    def get_overtime(request_id: int):
        current_actor(container.employees_repo)
        return jsonify(to_jsonable(svc.get(request_id)))

    @app.route("/api/overtime/<int:request_id>/rate", methods=["POST"], endpoint="api_overtime_rate")
    def update_rate(request_id: int):
        ctx = current_actor(container.employees_repo)
        data = json_body()
        updated = svc.update_rate(request_id, data.get("rate_multiplier"), ctx)
        return jsonify(to_jsonable(updated))

    @app.route("/api/overtime/<int:request_id>/status", methods=["POST"], endpoint="api_overtime_status")
    def update_status(request_id: int):
        ctx = current_actor(container.employees_repo)
        data = json_body()
        target = require_enum(RequestStatus, data.get("status"), "status")
        event = svc.transition(request_id, target, ctx, remarks=data.get("remarks"))
        return jsonify(to_jsonable(event))

    @app.route("/api/overtime/bulk-status", methods=["POST"], endpoint="api_overtime_bulk_status")
    def bulk_update_status():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        target = require_enum(RequestStatus, data.get("status"), "status")
        result = svc.bulk_transition(id_list(data, "request_ids"), target, ctx, remarks=data.get("remarks"))
        return jsonify(bulk_payload(result))
