from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_clock, parse_iso_date
from ..common.validators import require_enum
from ..common.web import bulk_payload, current_actor, id_list, int_field, json_body, to_jsonable
from ..container import Container
from ..core.enums import RequestKind, RequestStatus
from ..core.exceptions import ValidationError
from .model import NewSimpleRequest


def _hours(value):
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("hours must be a number")


def register(app: Flask, container: Container) -> None:
    svc = container.request_service

    @app.route("/api/requests/<kind>", methods=["POST"], endpoint="api_create_request")
    def create_request(kind: str):
        ctx = current_actor(container.employees_repo)
        data = json_body()
        end_date = data.get("end_date")
        created = svc.create(
            NewSimpleRequest(
                kind=require_enum(RequestKind, kind, "kind"),
                employee_id=int_field(data, "employee_id"),
                request_date=parse_iso_date(str(data.get("date", ""))),
                end_date=parse_iso_date(str(end_date)) if end_date else None,
                start_time=parse_clock(data.get("start_time")),
                end_time=parse_clock(data.get("end_time")),
                hours=_hours(data.get("hours")),
                destination=data.get("destination"),
                reason=data.get("reason"),
            ),
            ctx,
        )
        return jsonify(to_jsonable(created)), 201

    @app.route("/api/requests/<kind>", methods=["GET"], endpoint="api_list_requests")
    def list_requests(kind: str):
        current_actor(container.employees_repo)
        status = request.args.get("status")
        rows = svc.list_requests(
            require_enum(RequestKind, kind, "kind"),
            status=require_enum(RequestStatus, status, "status") if status else None,
            employee_id=int_field(request.args, "employee_id", required=False),
        )
        return jsonify(to_jsonable(list(rows)))

    @app.route("/api/requests/<kind>/<int:request_id>/status", methods=["POST"], endpoint="api_request_status")
    def update_status(kind: str, request_id: int):
        ctx = current_actor(container.employees_repo)
        data = json_body()
        event = svc.transition(
            require_enum(RequestKind, kind, "kind"),
            request_id,
            require_enum(RequestStatus, data.get("status"), "status"),
            ctx,
            remarks=data.get("remarks"),
        )
        return jsonify(to_jsonable(event))

    @app.route("/api/requests/<kind>/bulk-status", methods=["POST"], endpoint="api_request_bulk_status")
    def bulk_update_status(kind: str):
        ctx = current_actor(container.employees_repo)
        data = json_body()
        result = svc.bulk_transition(
            require_enum(RequestKind, kind, "kind"),
            id_list(data, "request_ids"),
            require_enum(RequestStatus, data.get("status"), "status"),
            ctx,
            remarks=data.get("remarks"),
        )
        return jsonify(bulk_payload(result))
