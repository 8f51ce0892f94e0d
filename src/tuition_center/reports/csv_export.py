from __future__ import annotations

import csv
import io
from decimal import Decimal
from typing import Sequence

from ..common.datetime_utils import iso_day
from ..common.numbers import money, percent
from ..fees.model import PaymentWithStudent
from .service import AttendanceMatrix

ATTENDANCE_FIXED_HEADER = ["Student Name", "Batch"]
ATTENDANCE_TOTALS_HEADER = ["Present Days", "Absent Days", "Percentage"]
FEE_HEADER = ["Date", "Student Name", "Batch", "Amount", "Payment Mode", "Notes"]


def attendance_csv(matrix: AttendanceMatrix) -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(ATTENDANCE_FIXED_HEADER + matrix.dates + ATTENDANCE_TOTALS_HEADER)

    for name, batch, days in matrix.students:
        row: list[object] = [name, batch]
        present = absent = 0
        for d in matrix.dates:
            if d not in days:
                row.append("N/A")
            elif days[d]:
                row.append("Present")
                present += 1
            else:
                row.append("Absent")
                absent += 1
        row += [present, absent, f"{percent(present, present + absent):.2f}%"]
        writer.writerow(row)

    return out.getvalue()


def fee_csv(payments: Sequence[PaymentWithStudent]) -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(FEE_HEADER)

    total = Decimal("0.00")
    for item in payments:
        # Payments of deleted students have no name to show.
        if item.student_name is None:
            continue
        p = item.payment
        total += p.amount_paid
        writer.writerow(
            [
                iso_day(p.payment_date),
                item.student_name,
                item.batch or "",
                money(p.amount_paid),
                p.payment_mode.value,
                p.notes or "",
            ]
        )

    writer.writerow(["", "", "TOTAL", money(total), "", ""])
    return out.getvalue()
