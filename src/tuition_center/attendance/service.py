from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.numbers import percent
from ..common.validators import require_bool, require_int_in_range
from ..core.exceptions import NotFoundError, ValidationError
from ..students.model import Student
from ..students.repository import StudentRepository
from .model import AttendanceMark, AttendanceRecord, AttendanceRow, MarkResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_MAX_ID = 2**31 - 1


@dataclass(frozen=True)
class StudentAttendance:
    student: Student
    records: Sequence[AttendanceRecord]
    present_days: int
    absent_days: int
    attendance_percentage: float


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, students: StudentRepository):
        self._attendance = attendance
        self._students = students

    def _require_student(self, student_id: Any) -> Student:
        sid = require_int_in_range(student_id, "studentId", low=1, high=_MAX_ID)
        student = self._students.get_by_id(sid)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def mark_attendance(self, payload: Any) -> MarkResult:
        if not isinstance(payload, dict) or not payload.get("date") or not isinstance(payload.get("records"), list):
            raise ValidationError("Please provide date and records array")

        day = parse_iso_date(payload["date"])
        by_student: dict[int, bool] = {}
        for record in payload["records"]:
            if not isinstance(record, dict):
                raise ValidationError("Each record must be an object")
            sid = require_int_in_range(record.get("studentId"), "studentId", low=1, high=_MAX_ID)
            # The same student twice in one request: the last entry wins.
            by_student[sid] = require_bool(record.get("status"), "status")

        missing = sorted(set(by_student) - self._students.existing_ids(by_student))
        if missing:
            raise NotFoundError(f"Student not found: {', '.join(str(i) for i in missing)}")

        marks = [AttendanceMark(student_id=sid, present=present) for sid, present in by_student.items()]
        result = self._attendance.upsert_many(attendance_date=day, marks=marks)
        logger.info(
            "Marked attendance for %s: %d new, %d changed, %d total",
            day.isoformat(),
            result.upserted,
            result.modified,
            result.total,
        )
        return result

    def add_record(self, student_id: int, payload: Any) -> AttendanceRecord:
        """Insert a single record; an existing (student, day) row is a conflict."""
        if not isinstance(payload, dict) or not payload.get("date"):
            raise ValidationError("Please provide date and status")
        student = self._require_student(student_id)
        day = parse_iso_date(payload["date"])
        present = require_bool(payload.get("status"), "status")

        attendance_id = self._attendance.create(student_id=student.student_id, attendance_date=day, present=present)
        return AttendanceRecord(
            attendance_id=attendance_id,
            student_id=student.student_id,
            attendance_date=day,
            present=present,
        )

    def by_date(self, value: Optional[str]) -> tuple[date, Sequence[AttendanceRow]]:
        if not value:
            raise ValidationError("Date parameter is required")
        day = parse_iso_date(value)
        return day, self._attendance.rows_between(start=day, end=day)

    def for_student(
        self,
        student_id: int,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> StudentAttendance:
        student = self._require_student(student_id)
        start = parse_iso_date(start_date, "startDate") if start_date else None
        end = parse_iso_date(end_date, "endDate") if end_date else None
        if start and end and start > end:
            raise ValidationError("startDate must not be after endDate")

        records = self._attendance.list_for_student(student.student_id, start=start, end=end)
        present = sum(1 for r in records if r.present)
        return StudentAttendance(
            student=student,
            records=records,
            present_days=present,
            absent_days=len(records) - present,
            attendance_percentage=percent(present, len(records)),
        )

    def update_status(self, attendance_id: int, payload: Any) -> AttendanceRecord:
        if not isinstance(payload, dict) or "status" not in payload:
            raise ValidationError("Status field is required")
        present = require_bool(payload["status"], "status")

        updated = self._attendance.update_status(int(attendance_id), present)
        if not updated:
            raise NotFoundError("Attendance record not found")
        return updated

    def delete(self, attendance_id: int) -> None:
        if not self._attendance.delete(int(attendance_id)):
            raise NotFoundError("Attendance record not found")

    def delete_all(self) -> int:
        deleted = self._attendance.delete_all()
        logger.warning("Deleted all attendance records (%d rows)", deleted)
        return deleted
