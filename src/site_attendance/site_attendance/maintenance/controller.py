from __future__ import annotations

from flask import Flask, jsonify

from ..common.validators import optional_number
from ..common.web import admin_required, json_body, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/repair/arrival-times", methods=["POST"], endpoint="repair_arrival_times")
    @admin_required
    def repair_arrival_times():
        window_days = optional_number(json_body().get("window_days"), "Window days", minimum=1, maximum=366)
        report = container.repair_service.run(int(window_days) if window_days is not None else None)
        return jsonify({"success": True, "report": to_json(report)})
