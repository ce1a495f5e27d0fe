from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, json_errors
from ..common.validators import optional_datetime, require_date
from ..container import Container
from ..core.exceptions import ValidationError
from .model import Location, OvertimeEntry


def _overtime_entries(raw) -> tuple[OvertimeEntry, ...] | None:
    if raw is None:
        return None
    out = []
    for item in raw:
        start = optional_datetime(item.get("actual_start"), "actual_start")
        if start is None or not item.get("overtime_id"):
            raise ValidationError("Each overtime entry needs overtime_id and actual_start")
        out.append(
            OvertimeEntry(
                overtime_id=str(item["overtime_id"]),
                actual_start=start,
                actual_end=optional_datetime(item.get("actual_end"), "actual_end"),
            )
        )
    return tuple(out)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/<employee_id>/status", methods=["GET"], endpoint="attendance_status")
    @json_errors
    def attendance_status(employee_id: str):
        now = optional_datetime(request.args.get("at"), "at")
        status = container.attendance_service.get_window_status(employee_id, now)
        return jsonify({"success": True, **status.to_dict()}), 200

    @app.route("/api/attendance/<employee_id>/check", methods=["POST"], endpoint="attendance_check")
    @json_errors
    def attendance_check(employee_id: str):
        data = json_body()
        location = Location(
            in_premises=bool(data.get("in_premises", False)),
            address=(data.get("address") or None),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )
        result = container.attendance_service.submit_check(
            employee_id,
            data.get("action") or "",
            optional_datetime(data.get("timestamp"), "timestamp"),
            location,
            confirm_auto_completion=bool(data.get("confirm_auto_completion", False)),
            reason=data.get("reason"),
        )
        # A denial is a normal answer, not an error.
        return jsonify({"success": result.decision.allowed, **result.to_dict()}), 200

    @app.route("/api/attendance/<employee_id>/corrections", methods=["POST"], endpoint="attendance_correction")
    @json_errors
    def attendance_correction(employee_id: str):
        data = json_body()
        record = container.attendance_service.manual_correction(
            employee_id,
            require_date(data.get("work_date"), "work_date"),
            check_in=optional_datetime(data.get("check_in"), "check_in"),
            check_out=optional_datetime(data.get("check_out"), "check_out"),
            overtime_entries=_overtime_entries(data.get("overtime_entries")),
            reason=str(data.get("reason") or ""),
        )
        return jsonify(
            {
                "success": True,
                "message": "Đã cập nhật chấm công",
                "work_date": record.work_date.isoformat(),
                "state": record.state.value,
                "version": record.version,
            }
        ), 200

    @app.route("/api/attendance/<employee_id>/processed", methods=["GET"], endpoint="attendance_processed")
    @json_errors
    def attendance_processed(employee_id: str):
        rows = container.payroll_service.get_processed_attendance(
            employee_id,
            require_date(request.args.get("start"), "start"),
            require_date(request.args.get("end"), "end"),
        )
        return jsonify({"success": True, "days": [r.to_dict() for r in rows]}), 200
