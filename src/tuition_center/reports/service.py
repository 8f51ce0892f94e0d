from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..attendance.model import AttendanceRow
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import day_bounds, iso_day, parse_iso_date
from ..common.numbers import money, percent
from ..core.exceptions import ValidationError
from ..fees.model import PaymentWithStudent
from ..fees.repository import FeeRepository
from ..students.repository import StudentRepository


@dataclass(frozen=True)
class ReportRange:
    start: date
    end: date
    batch: Optional[str]

    @property
    def label(self) -> str:
        return f"{iso_day(self.start)}_to_{iso_day(self.end)}"


@dataclass(frozen=True)
class AttendanceMatrix:
    """Per-student presence by day, the shape of the attendance export."""

    dates: list[str]
    # (name, batch, {date: present}) sorted by name
    students: list[tuple[str, str, dict[str, bool]]]


def parse_range(start_date: Optional[str], end_date: Optional[str], batch: Optional[str]) -> ReportRange:
    if not start_date or not end_date:
        raise ValidationError("Please provide startDate and endDate")
    start = parse_iso_date(start_date, "startDate")
    end = parse_iso_date(end_date, "endDate")
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    return ReportRange(start=start, end=end, batch=(batch or "").strip() or None)


class ReportService:
    def __init__(self, students: StudentRepository, attendance: AttendanceRepository, fees: FeeRepository):
        self._students = students
        self._attendance = attendance
        self._fees = fees

    def _attendance_rows(self, rng: ReportRange) -> list[AttendanceRow]:
        return list(self._attendance.rows_between(start=rng.start, end=rng.end, batch=rng.batch))

    def _payments(self, rng: ReportRange) -> list[PaymentWithStudent]:
        student_ids = None
        if rng.batch:
            student_ids = [s.student_id for s in self._students.list_by_batch(rng.batch)]
        start = day_bounds(rng.start)[0]
        end = day_bounds(rng.end)[1]
        return list(self._fees.list_between(start=start, end=end, student_ids=student_ids))

    def attendance_report(self, rng: ReportRange) -> dict:
        rows = self._attendance_rows(rng)

        by_date: dict[str, dict] = {}
        by_student: dict[int, dict] = {}
        for r in rows:
            key = iso_day(r.attendance_date)
            day = by_date.setdefault(key, {"date": key, "present": 0, "absent": 0, "total": 0})
            st = by_student.setdefault(
                r.student_id,
                {"studentId": r.student_id, "name": r.name, "batch": r.batch, "presentDays": 0, "absentDays": 0, "totalDays": 0},
            )
            bucket = "present" if r.present else "absent"
            day[bucket] += 1
            st[f"{bucket}Days"] += 1
            day["total"] += 1
            st["totalDays"] += 1

        for day in by_date.values():
            day["attendanceRate"] = percent(day["present"], day["total"])
        for st in by_student.values():
            st["attendancePercentage"] = percent(st["presentDays"], st["totalDays"])

        return {
            "reportType": "Attendance",
            "startDate": iso_day(rng.start),
            "endDate": iso_day(rng.end),
            "batch": rng.batch or "All",
            "totalStudents": len(self._students.list_by_batch(rng.batch)),
            "attendanceByDate": sorted(by_date.values(), key=lambda d: d["date"]),
            "studentSummary": sorted(by_student.values(), key=lambda s: (s["name"] or "").lower()),
        }

    def fee_report(self, rng: ReportRange) -> dict:
        payments = self._payments(rng)

        total = Decimal("0.00")
        modes: dict[str, dict] = {}
        daily: dict[str, dict] = {}
        per_student: dict[int, dict] = {}
        transactions: list[dict] = []

        for item in payments:
            p = item.payment
            key = iso_day(p.payment_date)
            total += p.amount_paid

            m = modes.setdefault(p.payment_mode.value, {"mode": p.payment_mode.value, "count": 0, "total": Decimal("0.00")})
            m["count"] += 1
            m["total"] += p.amount_paid

            d = daily.setdefault(key, {"date": key, "count": 0, "total": Decimal("0.00")})
            d["count"] += 1
            d["total"] += p.amount_paid

            s = per_student.setdefault(
                p.student_id,
                {"studentId": p.student_id, "name": item.student_name, "batch": item.batch, "totalPaid": Decimal("0.00"), "transactionCount": 0},
            )
            s["totalPaid"] += p.amount_paid
            s["transactionCount"] += 1

            transactions.append(
                {
                    "id": p.transaction_id,
                    "studentName": item.student_name,
                    "amount": money(p.amount_paid),
                    "date": key,
                    "paymentMode": p.payment_mode.value,
                    "notes": p.notes or "",
                }
            )

        mode_rows = sorted(modes.values(), key=lambda x: x["total"], reverse=True)
        for m in mode_rows:
            m["percentage"] = percent(m["total"], total)
            m["total"] = money(m["total"])
        daily_rows = sorted(daily.values(), key=lambda x: x["date"])
        for d in daily_rows:
            d["total"] = money(d["total"])
        student_rows = sorted(per_student.values(), key=lambda x: x["totalPaid"], reverse=True)
        for s in student_rows:
            s["totalPaid"] = money(s["totalPaid"])

        return {
            "reportType": "Fees",
            "startDate": iso_day(rng.start),
            "endDate": iso_day(rng.end),
            "batch": rng.batch or "All",
            "summary": {
                "totalCollection": money(total),
                "transactionCount": len(payments),
                "paymentModes": mode_rows,
            },
            "dailyCollection": daily_rows,
            "studentCollection": student_rows,
            "transactions": transactions,
        }

    def attendance_matrix(self, rng: ReportRange) -> AttendanceMatrix:
        rows = self._attendance_rows(rng)
        dates = sorted({iso_day(r.attendance_date) for r in rows})

        students: dict[int, tuple[str, str, dict[str, bool]]] = {}
        for r in rows:
            entry = students.setdefault(r.student_id, (r.name or "", r.batch or "", {}))
            entry[2][iso_day(r.attendance_date)] = r.present

        ordered = sorted(students.values(), key=lambda s: s[0].lower())
        return AttendanceMatrix(dates=dates, students=ordered)

    def fee_rows(self, rng: ReportRange) -> list[PaymentWithStudent]:
        return self._payments(rng)
