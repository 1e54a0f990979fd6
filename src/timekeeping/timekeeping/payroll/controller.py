from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, int_field, to_jsonable
from ..container import Container
from ..core.exceptions import AuthorizationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/payroll/summary", methods=["GET"], endpoint="api_payroll_summary")
    def payroll_summary():
        ctx = current_actor(container.employees_repo)
        department = request.args.get("department") or None
        if not (ctx.is_privileged or ctx.manages(department)):
            raise AuthorizationError("You are not allowed to view this payroll summary")

        rows = container.payroll_feed_service.build_summary(
            start=parse_iso_date(request.args.get("start", "")),
            end=parse_iso_date(request.args.get("end", "")),
            employee_id=int_field(request.args, "employee_id", required=False),
            department=department,
        )
        return jsonify(to_jsonable(rows))
