from __future__ import annotations

from flask import Flask, request

from ..api.request_utils import json_body
from ..api.responses import ok
from ..common.datetime_utils import iso_day
from ..container import Container
from ..serializers import attendance_row_to_dict, attendance_to_dict, mark_result_to_dict


def register(app: Flask, container: Container) -> None:
    prefix = app.config["API_PREFIX"]

    def _day_response(value):
        day, rows = container.attendance_service.by_date(value)
        return ok([attendance_row_to_dict(r) for r in rows], count=len(rows), date=iso_day(day))

    @app.route(f"{prefix}/attendance", methods=["POST"], endpoint="mark_attendance")
    def mark_attendance():
        result = container.attendance_service.mark_attendance(json_body())
        return ok(message="Attendance marked successfully", result=mark_result_to_dict(result))

    @app.route(f"{prefix}/attendance/date/<date_str>", methods=["GET"], endpoint="attendance_by_date")
    def attendance_by_date(date_str: str):
        return _day_response(date_str)

    @app.route(f"{prefix}/attendance/date-wise", methods=["GET"], endpoint="attendance_date_wise")
    def attendance_date_wise():
        return _day_response(request.args.get("date"))

    @app.route(f"{prefix}/attendance/student/<int:student_id>", methods=["GET"], endpoint="student_attendance")
    def student_attendance(student_id: int):
        result = container.attendance_service.for_student(
            student_id,
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        s = result.student
        return ok(
            count=len(result.records),
            student={"id": s.student_id, "name": s.name, "batch": s.batch, "grade": s.grade},
            summary={
                "presentDays": result.present_days,
                "absentDays": result.absent_days,
                "attendancePercentage": result.attendance_percentage,
            },
            attendanceRecords=[attendance_to_dict(r) for r in result.records],
        )

    @app.route(f"{prefix}/attendance/student/<int:student_id>", methods=["POST"], endpoint="add_attendance_record")
    def add_attendance_record(student_id: int):
        record = container.attendance_service.add_record(student_id, json_body())
        return ok(attendance_to_dict(record), status=201)

    @app.route(f"{prefix}/attendance/<int:attendance_id>", methods=["PUT"], endpoint="update_attendance")
    def update_attendance(attendance_id: int):
        record = container.attendance_service.update_status(attendance_id, json_body())
        return ok(attendance_to_dict(record))

    @app.route(f"{prefix}/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    def delete_attendance(attendance_id: int):
        container.attendance_service.delete(attendance_id)
        return ok(message="Attendance record deleted successfully")

    @app.route(f"{prefix}/attendance/all", methods=["DELETE"], endpoint="delete_all_attendance")
    def delete_all_attendance():
        deleted = container.attendance_service.delete_all()
        return ok(message=f"Successfully deleted {deleted} attendance records")
