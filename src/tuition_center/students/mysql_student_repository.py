from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import FeeStructure
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import NewStudent, Student
from .repository import StudentRepository

_COLUMNS = """
    student_id, name, phone, batch, grade, fee_structure,
    monthly_fees, yearly_fees, total_fees, paid_fees, balance_fees,
    notes, created_at, updated_at
"""


def row_to_student(r: dict[str, Any]) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        name=r["name"],
        phone=r["phone"],
        batch=r["batch"],
        grade=int(r["grade"]),
        fee_structure=FeeStructure(r["fee_structure"]),
        monthly_fees=as_decimal(r["monthly_fees"]),
        yearly_fees=as_decimal(r["yearly_fees"]),
        total_fees=as_decimal(r["total_fees"]),
        paid_fees=as_decimal(r["paid_fees"]),
        balance_fees=as_decimal(r["balance_fees"]),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def lock_student(cur, student_id: int) -> Optional[Student]:
    """Read a student row with an exclusive lock held until the transaction ends."""
    cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s FOR UPDATE", (int(student_id),))
    r = fetchone(cur)
    return row_to_student(r) if r else None


def write_student_fees(cur, student: Student) -> None:
    cur.execute(
        """
        UPDATE students
        SET grade=%s, fee_structure=%s, monthly_fees=%s, yearly_fees=%s,
            total_fees=%s, paid_fees=%s, balance_fees=%s
        WHERE student_id=%s
        """,
        (
            student.grade,
            student.fee_structure.value,
            student.monthly_fees,
            student.yearly_fees,
            student.total_fees,
            student.paid_fees,
            student.balance_fees,
            student.student_id,
        ),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students ORDER BY name ASC")
            return [row_to_student(r) for r in fetchall(cur)]

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return row_to_student(r) if r else None

    def existing_ids(self, student_ids: Iterable[int]) -> set[int]:
        ids = sorted({int(i) for i in student_ids})
        if not ids:
            return set()
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT student_id FROM students WHERE student_id IN ({placeholders})", tuple(ids))
            return {int(r["student_id"]) for r in fetchall(cur)}

    @staticmethod
    def _insert(cur, new: NewStudent) -> int:
        fees = new.fees()
        cur.execute(
            """
            INSERT INTO students(
                name, phone, batch, grade, fee_structure,
                monthly_fees, yearly_fees, total_fees, paid_fees, balance_fees, notes
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                new.name,
                new.phone,
                new.batch,
                new.grade,
                fees.fee_structure.value,
                new.monthly_fees,
                new.yearly_fees,
                fees.total_fees,
                0,
                fees.balance_fees,
                new.notes,
            ),
        )
        return int(cur.lastrowid)

    def create(self, new: NewStudent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._insert(cur, new)

    def create_many(self, items: Sequence[NewStudent]) -> list[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            return [self._insert(cur, new) for new in items]

    def update_locked(self, student_id: int, mutate: Callable[[Student], Student]) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            current = lock_student(cur, student_id)
            if not current:
                return None

            updated = mutate(current)
            cur.execute(
                "UPDATE students SET name=%s, phone=%s, batch=%s, notes=%s WHERE student_id=%s",
                (updated.name, updated.phone, updated.batch, updated.notes, updated.student_id),
            )
            write_student_fees(cur, updated)
            return updated

    def delete(self, student_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM students WHERE student_id=%s", (int(student_id),))
                return cur.rowcount > 0
        except IntegrityError as e:
            if getattr(e, "errno", None) == errorcode.ER_ROW_IS_REFERENCED_2:
                raise ConflictError("Student has fee payments on record") from e
            raise

    def list_with_balance(self, *, limit: Optional[int] = None) -> Sequence[Student]:
        sql = f"SELECT {_COLUMNS} FROM students WHERE balance_fees > 0 ORDER BY balance_fees DESC, name ASC"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT %s"
            params = (int(limit),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [row_to_student(r) for r in fetchall(cur)]

    def list_by_batch(self, batch: Optional[str]) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            if batch:
                cur.execute(f"SELECT {_COLUMNS} FROM students WHERE batch=%s ORDER BY name ASC", (batch,))
            else:
                cur.execute(f"SELECT {_COLUMNS} FROM students ORDER BY name ASC")
            return [row_to_student(r) for r in fetchall(cur)]
