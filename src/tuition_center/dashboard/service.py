from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import day_bounds, iso_day, month_bounds, parse_iso_date, utc_now
from ..common.numbers import money, percent
from ..core.constants import DEFAULT_DEFAULTERS_LIMIT, DEFAULT_RECENT_TRANSACTIONS
from ..core.exceptions import ValidationError
from ..fees.repository import FeeRepository
from ..students.repository import StudentRepository
from .repository import DashboardRepository


class DashboardService:
    def __init__(
        self,
        dashboard: DashboardRepository,
        students: StudentRepository,
        fees: FeeRepository,
        attendance: AttendanceRepository,
        *,
        clock=utc_now,
    ):
        self._dashboard = dashboard
        self._students = students
        self._fees = fees
        self._attendance = attendance
        self._clock = clock

    def summary(self) -> dict:
        today = self._clock().date()

        defaulters = self._students.list_with_balance(limit=DEFAULT_DEFAULTERS_LIMIT)
        rows = self._attendance.rows_between(start=today, end=today)
        present = sum(1 for r in rows if r.present)
        absentees = [
            {"id": r.attendance_id, "studentId": r.student_id, "name": r.name, "batch": r.batch}
            for r in rows
            if not r.present
        ]

        first, last = month_bounds(today)
        month_start, _ = day_bounds(first)
        _, month_end = day_bounds(last)

        return {
            "totalStudents": self._dashboard.count_students(),
            "feeDefaulters": {
                "count": len(defaulters),
                "students": [
                    {
                        "id": s.student_id,
                        "name": s.name,
                        "batch": s.batch,
                        "phone": s.phone,
                        "balanceFees": money(s.balance_fees),
                    }
                    for s in defaulters
                ],
            },
            "todayAttendance": {
                "total": len(rows),
                "present": present,
                "absent": len(absentees),
                "absentees": absentees,
                "attendanceRate": percent(present, len(rows)),
            },
            "financials": {
                "recentTransactions": list(self._fees.recent(DEFAULT_RECENT_TRANSACTIONS)),
                "monthlyCollection": money(self._fees.total_collected(start=month_start, end=month_end)),
            },
            "batchDistribution": [{"batch": b.batch, "count": b.count} for b in self._dashboard.batch_distribution()],
        }

    def batch_statistics(self) -> list[dict]:
        return [
            {
                "batch": b.batch,
                "studentCount": b.student_count,
                "totalFees": money(b.total_fees),
                "collectedFees": money(b.collected_fees),
                "pendingFees": money(b.pending_fees),
            }
            for b in self._dashboard.batch_stats()
        ]

    def fee_statistics(self, *, start_date: Optional[str] = None, end_date: Optional[str] = None) -> dict:
        first, last = month_bounds(self._clock().date())
        start_day = parse_iso_date(start_date, "startDate") if start_date else first
        end_day = parse_iso_date(end_date, "endDate") if end_date else last
        if start_day > end_day:
            raise ValidationError("startDate must not be after endDate")

        start = day_bounds(start_day)[0]
        end = day_bounds(end_day)[1]

        daily = self._dashboard.daily_collection(start=start, end=end)
        modes = self._fees.mode_totals(start=start, end=end)
        total = sum((d.total for d in daily), Decimal("0.00"))
        count = sum(d.count for d in daily)
        average = (total / count).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if count else Decimal("0.00")

        return {
            "summary": {
                "startDate": iso_day(start_day),
                "endDate": iso_day(end_day),
                "totalAmount": money(total),
                "totalTransactions": count,
                "averagePerTransaction": money(average),
            },
            "dailyCollection": [
                {"date": iso_day(d.day), "total": money(d.total), "count": d.count} for d in daily
            ],
            "paymentModeStats": list(modes),
        }
