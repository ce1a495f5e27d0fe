from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_errors
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route(
        "/api/shifts/adjustments/<int:adjustment_id>/approve", methods=["POST"], endpoint="shift_adjustment_approve"
    )
    @json_errors
    def shift_adjustment_approve(adjustment_id: int):
        adjustment = container.shift_adjustment_service.approve(adjustment_id=adjustment_id)
        return jsonify({"success": True, "message": "Đã duyệt đổi ca", **adjustment.to_dict()}), 200

    @app.route(
        "/api/shifts/adjustments/<int:adjustment_id>/reject", methods=["POST"], endpoint="shift_adjustment_reject"
    )
    @json_errors
    def shift_adjustment_reject(adjustment_id: int):
        adjustment = container.shift_adjustment_service.reject(adjustment_id=adjustment_id)
        return jsonify({"success": True, "message": "Đã từ chối đổi ca", **adjustment.to_dict()}), 200
