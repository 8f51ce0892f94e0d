from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceMark, AttendanceRecord, AttendanceRow, MarkResult
from .repository import AttendanceRepository


def _row_to_record(r: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        attendance_date=r["attendance_date"],
        present=bool(r["present"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert_many(self, *, attendance_date: date, marks: Sequence[AttendanceMark]) -> MarkResult:
        upserted = 0
        modified = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for mark in marks:
                cur.execute(
                    """
                    INSERT INTO attendance_records(student_id, attendance_date, present)
                    VALUES(%s,%s,%s)
                    ON DUPLICATE KEY UPDATE present=VALUES(present)
                    """,
                    (int(mark.student_id), attendance_date, int(mark.present)),
                )
                # MySQL: 1 = inserted, 2 = existing row changed, 0 = unchanged.
                if cur.rowcount == 1:
                    upserted += 1
                elif cur.rowcount == 2:
                    modified += 1
        return MarkResult(modified=modified, upserted=upserted, total=len(marks))

    def create(self, *, student_id: int, attendance_date: date, present: bool) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO attendance_records(student_id, attendance_date, present) VALUES(%s,%s,%s)",
                    (int(student_id), attendance_date, int(present)),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("Attendance already marked for this student and date") from e
            raise

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, student_id, attendance_date, present
                FROM attendance_records
                WHERE attendance_id=%s
                """,
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def rows_between(self, *, start: date, end: date, batch: Optional[str] = None) -> Sequence[AttendanceRow]:
        clauses = ["a.attendance_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if batch:
            clauses.append("s.batch=%s")
            params.append(batch)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.attendance_id, a.attendance_date, a.present, a.student_id,
                       s.name, s.batch, s.phone, s.grade
                FROM attendance_records a
                JOIN students s ON s.student_id = a.student_id
                WHERE {where}
                ORDER BY a.attendance_date ASC, s.name ASC
                """,
                tuple(params),
            )
            return [
                AttendanceRow(
                    attendance_id=int(r["attendance_id"]),
                    attendance_date=r["attendance_date"],
                    present=bool(r["present"]),
                    student_id=int(r["student_id"]),
                    name=r.get("name"),
                    batch=r.get("batch"),
                    phone=r.get("phone"),
                    grade=int(r["grade"]) if r.get("grade") is not None else None,
                )
                for r in fetchall(cur)
            ]

    def list_for_student(
        self,
        student_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["student_id=%s"]
        params: list[object] = [int(student_id)]
        if start is not None:
            clauses.append("attendance_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("attendance_date <= %s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT attendance_id, student_id, attendance_date, present
                FROM attendance_records
                WHERE {" AND ".join(clauses)}
                ORDER BY attendance_date DESC
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def update_status(self, attendance_id: int, present: bool) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET present=%s WHERE attendance_id=%s",
                (int(present), int(attendance_id)),
            )
            cur.execute(
                "SELECT attendance_id, student_id, attendance_date, present FROM attendance_records WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def delete_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records")
            return int(cur.rowcount)
