from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok
from ..container import Container
from .csv_export import attendance_csv, fee_csv
from .service import ReportRange, parse_range


def _range_from_args() -> ReportRange:
    return parse_range(
        request.args.get("startDate"),
        request.args.get("endDate"),
        request.args.get("batch"),
    )


def register(app: Flask, container: Container) -> None:
    prefix = app.config["API_PREFIX"]

    def _csv_response(text: str, filename: str):
        return app.response_class(
            text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route(f"{prefix}/reports/attendance", methods=["GET"], endpoint="attendance_report")
    def attendance_report():
        return ok(container.report_service.attendance_report(_range_from_args()))

    @app.route(f"{prefix}/reports/fees", methods=["GET"], endpoint="fee_report")
    def fee_report():
        return ok(container.report_service.fee_report(_range_from_args()))

    @app.route(f"{prefix}/reports/attendance/export", methods=["GET"], endpoint="export_attendance_report")
    def export_attendance_report():
        rng = _range_from_args()
        matrix = container.report_service.attendance_matrix(rng)
        return _csv_response(attendance_csv(matrix), f"attendance_report_{rng.label}.csv")

    @app.route(f"{prefix}/reports/fees/export", methods=["GET"], endpoint="export_fee_report")
    def export_fee_report():
        rng = _range_from_args()
        payments = container.report_service.fee_rows(rng)
        return _csv_response(fee_csv(payments), f"fee_report_{rng.label}.csv")
