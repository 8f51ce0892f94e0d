from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import BatchCount, BatchStats, DailyCollection
from .repository import DashboardRepository


class MySQLDashboardRepository(DashboardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def count_students(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM students")
            return int(fetchone(cur)["n"])

    def batch_distribution(self) -> Sequence[BatchCount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT batch, COUNT(*) AS n
                FROM students
                GROUP BY batch
                ORDER BY n DESC, batch ASC
                """
            )
            return [BatchCount(batch=r["batch"], count=int(r["n"])) for r in fetchall(cur)]

    def batch_stats(self) -> Sequence[BatchStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT batch,
                       COUNT(*) AS student_count,
                       SUM(total_fees) AS total_fees,
                       SUM(paid_fees) AS collected_fees,
                       SUM(balance_fees) AS pending_fees
                FROM students
                GROUP BY batch
                ORDER BY student_count DESC, batch ASC
                """
            )
            return [
                BatchStats(
                    batch=r["batch"],
                    student_count=int(r["student_count"]),
                    total_fees=as_decimal(r["total_fees"]),
                    collected_fees=as_decimal(r["collected_fees"]),
                    pending_fees=as_decimal(r["pending_fees"]),
                )
                for r in fetchall(cur)
            ]

    def daily_collection(self, *, start: datetime, end: datetime) -> Sequence[DailyCollection]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DATE(payment_date) AS day, SUM(amount_paid) AS total, COUNT(*) AS n
                FROM fee_transactions
                WHERE payment_date >= %s AND payment_date < %s
                GROUP BY DATE(payment_date)
                ORDER BY day ASC
                """,
                (start, end),
            )
            return [
                DailyCollection(day=r["day"], total=as_decimal(r["total"]), count=int(r["n"]))
                for r in fetchall(cur)
            ]
