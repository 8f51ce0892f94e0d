"""JSON shapes of domain objects (camelCase keys, as the front end expects)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from .attendance.model import AttendanceRecord, AttendanceRow, MarkResult
from .common.datetime_utils import iso_day
from .common.numbers import money
from .fees.model import ModeTotal, PaymentTransaction, PaymentWithStudent
from .reminders.service import Reminder
from .students.model import Student


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def student_to_dict(s: Student) -> dict[str, Any]:
    return {
        "id": s.student_id,
        "name": s.name,
        "phone": s.phone,
        "batch": s.batch,
        "grade": s.grade,
        "feeStructure": s.fee_structure.value,
        "monthlyFees": money(s.monthly_fees),
        "yearlyFees": money(s.yearly_fees),
        "totalFees": money(s.total_fees),
        "paidFees": money(s.paid_fees),
        "balanceFees": money(s.balance_fees),
        "notes": s.notes,
        "createdAt": _ts(s.created_at),
        "updatedAt": _ts(s.updated_at),
    }


def fee_snapshot(s: Student) -> dict[str, Any]:
    return {
        "name": s.name,
        "totalFees": money(s.total_fees),
        "paidFees": money(s.paid_fees),
        "balanceFees": money(s.balance_fees),
    }


def payment_to_dict(p: PaymentTransaction) -> dict[str, Any]:
    return {
        "id": p.transaction_id,
        "studentId": p.student_id,
        "amountPaid": money(p.amount_paid),
        "paymentDate": _ts(p.payment_date),
        "paymentMode": p.payment_mode.value,
        "notes": p.notes,
        "createdAt": _ts(p.created_at),
    }


def payment_with_student_to_dict(item: PaymentWithStudent) -> dict[str, Any]:
    data = payment_to_dict(item.payment)
    data["student"] = (
        {"id": item.payment.student_id, "name": item.student_name, "batch": item.batch}
        if item.student_name is not None
        else None
    )
    return data


def mode_total_to_dict(m: ModeTotal) -> dict[str, Any]:
    return {"mode": m.payment_mode.value, "total": money(m.total), "count": m.count}


def reminder_to_dict(r: Reminder) -> dict[str, Any]:
    s = r.student
    return {
        "id": s.student_id,
        "name": s.name,
        "batch": s.batch,
        "phone": s.phone,
        "totalFees": money(s.total_fees),
        "paidFees": money(s.paid_fees),
        "balanceFees": money(s.balance_fees),
        "whatsappLink": r.whatsapp_link,
    }


def attendance_to_dict(a: AttendanceRecord) -> dict[str, Any]:
    return {
        "id": a.attendance_id,
        "studentId": a.student_id,
        "date": iso_day(a.attendance_date),
        "status": a.present,
    }


def attendance_row_to_dict(row: AttendanceRow) -> dict[str, Any]:
    return {
        "attendanceId": row.attendance_id,
        "date": iso_day(row.attendance_date),
        "status": row.present,
        "student": {
            "id": row.student_id,
            "name": row.name,
            "batch": row.batch,
            "grade": row.grade,
            "phone": row.phone,
        },
    }


def mark_result_to_dict(r: MarkResult) -> dict[str, Any]:
    return {"modified": r.modified, "upserted": r.upserted, "total": r.total}
