from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Sequence

from ..core.enums import PaymentMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from ..students.model import Student
from ..students.mysql_student_repository import lock_student, write_student_fees
from .model import ModeTotal, NewPayment, PaymentResult, PaymentTransaction, PaymentWithStudent, VoidResult
from .repository import FeeRepository

_COLUMNS = "t.transaction_id, t.student_id, t.amount_paid, t.payment_date, t.payment_mode, t.notes, t.created_at"


def _row_to_payment(r: dict[str, Any]) -> PaymentTransaction:
    return PaymentTransaction(
        transaction_id=int(r["transaction_id"]),
        student_id=int(r["student_id"]),
        amount_paid=as_decimal(r["amount_paid"]),
        payment_date=r["payment_date"],
        payment_mode=PaymentMode(r["payment_mode"]),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


def _range_clause(start: Optional[datetime], end: Optional[datetime]) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []
    if start is not None:
        clauses.append("t.payment_date >= %s")
        params.append(start)
    if end is not None:
        clauses.append("t.payment_date < %s")
        params.append(end)
    return " AND ".join(clauses), params


class MySQLFeeRepository(FeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, transaction_id: int) -> Optional[PaymentTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM fee_transactions t WHERE t.transaction_id=%s", (int(transaction_id),))
            r = fetchone(cur)
            return _row_to_payment(r) if r else None

    def record_payment(self, new: NewPayment, apply: Callable[[Student], Student]) -> Optional[PaymentResult]:
        with db_cursor(self._conn_factory) as (_, cur):
            student = lock_student(cur, new.student_id)
            if not student:
                return None

            # Raises before any write when the amount is rejected.
            updated = apply(student)

            cur.execute(
                """
                INSERT INTO fee_transactions(student_id, amount_paid, payment_date, payment_mode, notes)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (new.student_id, new.amount_paid, new.payment_date, new.payment_mode.value, new.notes),
            )
            transaction_id = int(cur.lastrowid)
            write_student_fees(cur, updated)

            cur.execute(f"SELECT {_COLUMNS} FROM fee_transactions t WHERE t.transaction_id=%s", (transaction_id,))
            payment = _row_to_payment(fetchone(cur))
            return PaymentResult(payment=payment, student=updated)

    def delete_payment(
        self,
        transaction_id: int,
        reverse: Callable[[Student, PaymentTransaction], Student],
    ) -> Optional[VoidResult]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM fee_transactions t WHERE t.transaction_id=%s FOR UPDATE",
                (int(transaction_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            payment = _row_to_payment(r)

            student = lock_student(cur, payment.student_id)
            updated = None
            if student:
                updated = reverse(student, payment)
                write_student_fees(cur, updated)

            cur.execute("DELETE FROM fee_transactions WHERE transaction_id=%s", (payment.transaction_id,))
            return VoidResult(payment=payment, student=updated)

    def list_for_student(self, student_id: int) -> Sequence[PaymentTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM fee_transactions t
                WHERE t.student_id=%s
                ORDER BY t.payment_date DESC, t.transaction_id DESC
                """,
                (int(student_id),),
            )
            return [_row_to_payment(r) for r in fetchall(cur)]

    def count_for_student(self, student_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM fee_transactions WHERE student_id=%s", (int(student_id),))
            return int(fetchone(cur)["n"])

    def total_collected(self, *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Decimal:
        where, params = _range_clause(start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT SUM(t.amount_paid) AS total FROM fee_transactions t WHERE {where}", tuple(params))
            return as_decimal(fetchone(cur)["total"])

    def recent(self, limit: int) -> Sequence[PaymentWithStudent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, s.name AS student_name, s.batch
                FROM fee_transactions t
                LEFT JOIN students s ON s.student_id = t.student_id
                ORDER BY t.payment_date DESC, t.transaction_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                PaymentWithStudent(payment=_row_to_payment(r), student_name=r.get("student_name"), batch=r.get("batch"))
                for r in fetchall(cur)
            ]

    def mode_totals(self, *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Sequence[ModeTotal]:
        where, params = _range_clause(start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT t.payment_mode, SUM(t.amount_paid) AS total, COUNT(*) AS n
                FROM fee_transactions t
                WHERE {where}
                GROUP BY t.payment_mode
                ORDER BY total DESC
                """,
                tuple(params),
            )
            return [
                ModeTotal(payment_mode=PaymentMode(r["payment_mode"]), total=as_decimal(r["total"]), count=int(r["n"]))
                for r in fetchall(cur)
            ]

    def list_between(
        self,
        *,
        start: datetime,
        end: datetime,
        student_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[PaymentWithStudent]:
        where, params = _range_clause(start, end)
        if student_ids is not None:
            ids = sorted({int(i) for i in student_ids})
            if not ids:
                return []
            where += f" AND t.student_id IN ({','.join(['%s'] * len(ids))})"
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, s.name AS student_name, s.batch
                FROM fee_transactions t
                LEFT JOIN students s ON s.student_id = t.student_id
                WHERE {where}
                ORDER BY t.payment_date ASC, t.transaction_id ASC
                """,
                tuple(params),
            )
            return [
                PaymentWithStudent(payment=_row_to_payment(r), student_name=r.get("student_name"), batch=r.get("batch"))
                for r in fetchall(cur)
            ]
