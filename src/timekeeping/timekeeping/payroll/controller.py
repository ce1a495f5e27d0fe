from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, json_errors
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/payroll/<employee_id>/summary", methods=["GET"], endpoint="payroll_summary")
    @json_errors
    def payroll_summary(employee_id: str):
        summary = container.payroll_service.get_payroll_summary(employee_id, request.args.get("period") or "")
        return jsonify({"success": True, **summary.to_dict()}), 200

    @app.route("/api/payroll/<employee_id>/jobs", methods=["POST"], endpoint="payroll_enqueue")
    @json_errors
    def payroll_enqueue(employee_id: str):
        data = json_body()
        start, end = data.get("start"), data.get("end")
        if data.get("period"):
            period = container.payroll_service.period(str(data["period"]))
            start, end = period.start, period.end
        job_id = container.payroll_service.enqueue_processing(employee_id, start, end)
        return jsonify({"success": True, "job_id": job_id}), 202

    @app.route("/api/jobs/<path:job_id>", methods=["GET"], endpoint="job_status")
    @json_errors
    def job_status(job_id: str):
        job = container.payroll_service.get_job(job_id)
        return jsonify({"success": True, **job.to_dict()}), 200
