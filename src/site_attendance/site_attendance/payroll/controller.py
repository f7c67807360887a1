from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, current_user_id, login_required, report_window, to_json
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.payroll_report_service

    def _window():
        return report_window(request.args, container.clock, default_days=container.report_default_days)

    @app.route("/api/payroll/days", methods=["GET"], endpoint="payroll_my_days")
    @login_required
    def payroll_my_days():
        start, end = _window()
        days = service.build_day_summaries(current_user_id(), start=start, end=end)
        return jsonify({"success": True, "days": to_json(days)})

    @app.route("/api/admin/workers/<int:worker_id>/days", methods=["GET"], endpoint="payroll_worker_days")
    @admin_required
    def payroll_worker_days(worker_id: int):
        start, end = _window()
        days = service.build_day_summaries(worker_id, start=start, end=end)
        return jsonify({"success": True, "days": to_json(days)})

    @app.route("/api/admin/workers/<int:worker_id>/sites", methods=["GET"], endpoint="payroll_worker_sites")
    @admin_required
    def payroll_worker_sites(worker_id: int):
        start, end = _window()
        sites = service.build_site_summaries(worker_id, start=start, end=end)
        return jsonify({"success": True, "sites": to_json(sites)})

    @app.route(
        "/api/admin/workers/<int:worker_id>/days/<day>/paid",
        methods=["POST"],
        endpoint="payroll_mark_day_paid",
    )
    @admin_required
    def payroll_mark_day_paid(worker_id: int, day: str):
        try:
            civil_day = parse_iso_date(day)
        except ValueError:
            raise ValidationError("Invalid day (YYYY-MM-DD)")
        marked = service.mark_day_paid(worker_id, civil_day, paid_by=current_user_id())
        return jsonify({"success": True, "marked": marked})
