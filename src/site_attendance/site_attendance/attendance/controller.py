from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, current_user_id, json_body, login_required, to_json
from ..container import Container
from ..sites.model import GeoPoint


def _point(data: dict) -> GeoPoint:
    return GeoPoint(lat=data.get("lat"), lng=data.get("lng"), accuracy_m=data.get("accuracy_m"))


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/state", methods=["GET"], endpoint="attendance_state")
    @login_required
    def attendance_state():
        return jsonify({"success": True, "state": to_json(service.get_state(current_user_id()))})

    @app.route("/api/attendance/arrival", methods=["POST"], endpoint="attendance_arrival")
    @login_required
    def attendance_arrival():
        data = json_body()
        event_id = service.record_arrival(current_user_id(), data.get("site_id"), _point(data))
        return jsonify({"success": True, "event_id": event_id}), 201

    @app.route("/api/attendance/departure", methods=["POST"], endpoint="attendance_departure")
    @login_required
    def attendance_departure():
        data = json_body()
        event_id = service.record_departure(
            current_user_id(),
            _point(data),
            work_description=data.get("work_description"),
            site_id=data.get("site_id"),
            km=data.get("km"),
            material_description=data.get("material_description"),
            material_amount=data.get("material_amount"),
        )
        return jsonify({"success": True, "event_id": event_id}), 201

    @app.route("/api/attendance/offsite", methods=["POST"], endpoint="attendance_offsite")
    @login_required
    def attendance_offsite():
        data = json_body()
        event_id = service.record_offsite(
            current_user_id(),
            reason=data.get("reason"),
            hours=data.get("hours"),
            site_id=data.get("site_id"),
            material_description=data.get("material_description"),
            material_amount=data.get("material_amount"),
        )
        return jsonify({"success": True, "event_id": event_id}), 201

    @app.route("/api/attendance/events/<int:event_id>", methods=["PATCH"], endpoint="attendance_edit_event")
    @login_required
    def attendance_edit_event(event_id: int):
        updated = service.edit_event(current_user_id(), event_id, json_body())
        return jsonify({"success": updated})

    @app.route("/api/admin/events/<int:event_id>", methods=["PATCH"], endpoint="admin_edit_event")
    @admin_required
    def admin_edit_event(event_id: int):
        updated = service.admin_edit_event(event_id, json_body(), edited_by=current_user_id())
        return jsonify({"success": updated})
