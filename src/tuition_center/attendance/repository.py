from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceMark, AttendanceRecord, AttendanceRow, MarkResult


class AttendanceRepository(Protocol):
    def upsert_many(self, *, attendance_date: date, marks: Sequence[AttendanceMark]) -> MarkResult:
        """Insert or update one row per (student, day) in a single transaction."""

        raise NotImplementedError

    def create(self, *, student_id: int, attendance_date: date, present: bool) -> int:
        """Plain insert; raises ConflictError if the (student, day) row exists."""

        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def rows_between(self, *, start: date, end: date, batch: Optional[str] = None) -> Sequence[AttendanceRow]:
        """Rows with start <= day <= end, ordered by day then student name."""

        raise NotImplementedError

    def list_for_student(
        self,
        student_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest day first."""

        raise NotImplementedError

    def update_status(self, attendance_id: int, present: bool) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def delete_all(self) -> int:
        raise NotImplementedError
