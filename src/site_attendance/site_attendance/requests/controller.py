from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, current_user_id, json_body, login_required, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.close_request_service

    @app.route("/api/close-requests", methods=["POST"], endpoint="close_request_create")
    @login_required
    def close_request_create():
        data = json_body()
        request_id = service.create(
            current_user_id(),
            reported_time=data.get("reported_time"),
            forget_reason=data.get("forget_reason"),
            work_description=data.get("work_description"),
            km=data.get("km"),
            material_description=data.get("material_description"),
            material_amount=data.get("material_amount"),
        )
        return jsonify({"success": True, "request_id": request_id}), 201

    @app.route("/api/close-requests", methods=["GET"], endpoint="close_request_mine")
    @login_required
    def close_request_mine():
        return jsonify({"success": True, "requests": to_json(service.list_for_worker(current_user_id()))})

    @app.route("/api/admin/close-requests", methods=["GET"], endpoint="close_request_pending")
    @admin_required
    def close_request_pending():
        return jsonify({"success": True, "requests": to_json(service.list_pending())})

    @app.route("/api/admin/close-requests/<int:request_id>", methods=["GET"], endpoint="close_request_detail")
    @admin_required
    def close_request_detail(request_id: int):
        return jsonify({"success": True, "request": to_json(service.get(request_id))})

    @app.route(
        "/api/admin/close-requests/<int:request_id>/approve",
        methods=["POST"],
        endpoint="close_request_approve",
    )
    @admin_required
    def close_request_approve(request_id: int):
        data = json_body()
        override = data.get("out_time") if isinstance(data.get("out_time"), str) else None
        departure_id = service.approve(request_id, decided_by=current_user_id(), override_time=override)
        return jsonify({"success": True, "departure_event_id": departure_id, "already_decided": departure_id is None})

    @app.route(
        "/api/admin/close-requests/<int:request_id>/reject",
        methods=["POST"],
        endpoint="close_request_reject",
    )
    @admin_required
    def close_request_reject(request_id: int):
        rejected = service.reject(request_id, decided_by=current_user_id())
        return jsonify({"success": True, "rejected": rejected})
