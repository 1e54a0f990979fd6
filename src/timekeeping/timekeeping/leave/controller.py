from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_enum
from ..common.web import bulk_payload, current_actor, id_list, int_field, json_body, to_jsonable
from ..container import Container
from ..core.enums import HalfDayPeriod, LeaveType, PayType, RequestStatus
from .service import LeaveDraft


def register(app: Flask, container: Container) -> None:
    svc = container.leave_service
    ledger = container.leave_ledger

    @app.route("/api/leave", methods=["POST"], endpoint="api_create_leave")
    def create_leave():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        half_day = bool(data.get("half_day", False))
        draft = LeaveDraft(
            employee_id=int_field(data, "employee_id"),
            leave_type=require_enum(LeaveType, data.get("leave_type"), "leave_type"),
            start_date=parse_iso_date(str(data.get("start_date", ""))),
            end_date=parse_iso_date(str(data.get("end_date") or data.get("start_date", ""))),
            pay_type=require_enum(PayType, data.get("pay_type") or PayType.WITH_PAY.value, "pay_type"),
            half_day=half_day,
            am_pm=require_enum(HalfDayPeriod, data["am_pm"], "am_pm") if data.get("am_pm") else None,
            bank_year=int_field(data, "bank_year", required=False),
            reason=data.get("reason"),
            documents_path=data.get("documents_path"),
        )
        created = svc.create(draft, ctx)
        return jsonify(to_jsonable(created)), 201

    @app.route("/api/leave/<int:request_id>", methods=["GET"], endpoint="api_get_leave")
    def get_leave(request_id: int):
        current_actor(container.employees_repo)
        return jsonify(to_jsonable(svc.get(request_id)))

    @app.route("/api/leave/<int:request_id>/status", methods=["POST"], endpoint="api_leave_status")
    def update_status(request_id: int):
        ctx = current_actor(container.employees_repo)
        data = json_body()
        target = require_enum(RequestStatus, data.get("status"), "status")
        event = svc.transition(request_id, target, ctx, remarks=data.get("remarks"))
        return jsonify(to_jsonable(event))

    @app.route("/api/leave/bulk-status", methods=["POST"], endpoint="api_leave_bulk_status")
    def bulk_update_status():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        target = require_enum(RequestStatus, data.get("status"), "status")
        result = svc.bulk_transition(id_list(data, "request_ids"), target, ctx, remarks=data.get("remarks"))
        return jsonify(bulk_payload(result))

    @app.route("/api/leave/banks/<int:employee_id>", methods=["GET"], endpoint="api_leave_banks")
    def banks(employee_id: int):
        current_actor(container.employees_repo)
        year = int_field(request.args, "year", required=False)
        return jsonify(
            {
                "employee_id": employee_id,
                "banks": to_jsonable(ledger.balances_for(employee_id, year)),
                "entries": to_jsonable(ledger.entries(employee_id, year)),
            }
        )

    @app.route("/api/leave/banks/allocate", methods=["POST"], endpoint="api_leave_allocate")
    def allocate():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        bal = ledger.allocate(
            int_field(data, "employee_id"),
            require_enum(LeaveType, data.get("leave_type"), "leave_type"),
            int_field(data, "year"),
            data.get("days"),
            ctx,
            notes=data.get("notes"),
        )
        return jsonify(to_jsonable(bal))

    @app.route("/api/leave/banks/bulk-allocate", methods=["POST"], endpoint="api_leave_bulk_allocate")
    def bulk_allocate():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        result = ledger.bulk_allocate(
            id_list(data, "employee_ids"),
            require_enum(LeaveType, data.get("leave_type"), "leave_type"),
            int_field(data, "year"),
            data.get("days"),
            ctx,
            notes=data.get("notes"),
        )
        return jsonify(bulk_payload(result))

    @app.route("/api/leave/banks/release", methods=["POST"], endpoint="api_leave_release")
    def release():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        bal = ledger.release(
            int_field(data, "employee_id"),
            require_enum(LeaveType, data.get("leave_type"), "leave_type"),
            int_field(data, "year"),
            data.get("days"),
            ctx,
            request_id=int_field(data, "request_id", required=False),
            notes=data.get("notes"),
        )
        return jsonify(to_jsonable(bal))

    @app.route("/api/leave/banks/initialize", methods=["POST"], endpoint="api_leave_initialize")
    def initialize():
        ctx = current_actor(container.employees_repo)
        data = json_body()
        created = ledger.initialize_year(
            int_field(data, "year"),
            ctx,
            sick_days=data.get("sick_days", 0),
            vacation_days=data.get("vacation_days", 0),
            department=data.get("department"),
        )
        return jsonify({"created": created})
