from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: presence of one student on one calendar day (UTC)."""

    attendance_id: int
    student_id: int
    attendance_date: date
    present: bool


@dataclass(frozen=True)
class AttendanceMark:
    student_id: int
    present: bool


@dataclass(frozen=True)
class MarkResult:
    modified: int
    upserted: int
    total: int


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model joined with the student, for day views and reports."""

    attendance_id: int
    attendance_date: date
    present: bool
    student_id: int
    name: Optional[str]
    batch: Optional[str]
    phone: Optional[str]
    grade: Optional[int]
