from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.locks import KeyedLocks
from ..common.validators import (
    optional_text,
    require_int_in_range,
    require_non_empty,
    require_non_negative_amount,
)
from ..core.constants import MAX_AMOUNT, MAX_GRADE, MIN_GRADE
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..fees.repository import FeeRepository
from .model import NewStudent, Student, StudentChanges
from .repository import StudentRepository

logger = logging.getLogger(__name__)

# Derived or ledger-owned; accepted in payloads for compatibility but never written.
DERIVED_FIELDS = ("feeStructure", "totalFees", "paidFees", "balanceFees")


def _ensure_total_fits(total_fees) -> None:
    if total_fees > MAX_AMOUNT:
        raise ValidationError(f"Total fees must not exceed {MAX_AMOUNT}")


class StudentService:
    def __init__(self, students: StudentRepository, fees: FeeRepository, *, locks: Optional[KeyedLocks] = None):
        self._students = students
        self._fees = fees
        self._locks = locks if locks is not None else KeyedLocks()

    @staticmethod
    def parse_new_student(payload: Any) -> NewStudent:
        if not isinstance(payload, dict):
            raise ValidationError("Student data must be an object")

        grade = payload.get("grade", MIN_GRADE)
        return NewStudent(
            name=require_non_empty(payload.get("name"), "name"),
            phone=require_non_empty(payload.get("phone"), "phone"),
            batch=require_non_empty(payload.get("batch"), "batch"),
            grade=require_int_in_range(grade, "grade", low=MIN_GRADE, high=MAX_GRADE),
            monthly_fees=require_non_negative_amount(payload.get("monthlyFees", 0), "monthlyFees"),
            yearly_fees=require_non_negative_amount(payload.get("yearlyFees", 0), "yearlyFees"),
            notes=optional_text(payload.get("notes"), "notes"),
        )

    @staticmethod
    def parse_changes(payload: Any) -> StudentChanges:
        if not isinstance(payload, dict):
            raise ValidationError("Student data must be an object")

        def text(field: str) -> Optional[str]:
            return require_non_empty(payload[field], field) if field in payload else None

        def amount(field: str):
            return require_non_negative_amount(payload[field], field) if field in payload else None

        ignored = [f for f in DERIVED_FIELDS if f in payload]
        if ignored:
            logger.debug("Ignoring derived fields in student update: %s", ", ".join(ignored))

        return StudentChanges(
            name=text("name"),
            phone=text("phone"),
            batch=text("batch"),
            notes=optional_text(payload.get("notes"), "notes"),
            clear_notes="notes" in payload and not optional_text(payload.get("notes"), "notes"),
            grade=(
                require_int_in_range(payload["grade"], "grade", low=MIN_GRADE, high=MAX_GRADE)
                if "grade" in payload
                else None
            ),
            monthly_fees=amount("monthlyFees"),
            yearly_fees=amount("yearlyFees"),
        )

    def list_students(self) -> Sequence[Student]:
        return self._students.list_all()

    def get_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        return student

    def create_student(self, payload: Any) -> Student:
        new = self.parse_new_student(payload)
        _ensure_total_fits(new.fees().total_fees)
        student_id = self._students.create(new)
        logger.info("Enrolled student %s (%s, grade %s)", student_id, new.name, new.grade)
        return self.get_student(student_id)

    def create_students_bulk(self, payloads: Any) -> list[Student]:
        if not isinstance(payloads, list) or not payloads:
            raise ValidationError("Please provide a non-empty array of students")

        items: list[NewStudent] = []
        for index, payload in enumerate(payloads):
            try:
                new = self.parse_new_student(payload)
                _ensure_total_fits(new.fees().total_fees)
                items.append(new)
            except ValidationError as e:
                raise ValidationError(f"Student #{index + 1}: {e}") from e

        ids = self._students.create_many(items)
        logger.info("Enrolled %d students in bulk", len(ids))
        return [self.get_student(i) for i in ids]

    def update_student(self, student_id: int, payload: Any) -> Student:
        changes = self.parse_changes(payload)

        def apply(student: Student) -> Student:
            updated = changes.apply(student)
            _ensure_total_fits(updated.total_fees)
            return updated

        with self._locks.hold(int(student_id)):
            updated = self._students.update_locked(int(student_id), apply)
        if not updated:
            raise NotFoundError("Student not found")

        if updated.balance_fees < 0:
            logger.warning(
                "Student %s now has a negative balance %s (paid %s of %s)",
                updated.student_id,
                updated.balance_fees,
                updated.paid_fees,
                updated.total_fees,
            )
        return updated

    def delete_student(self, student_id: int) -> None:
        student_id = int(student_id)
        with self._locks.hold(student_id):
            if self._fees.count_for_student(student_id) > 0:
                raise ConflictError("Cannot delete a student with fee payments on record; delete the payments first")
            if not self._students.delete(student_id):
                raise NotFoundError("Student not found")
        logger.info("Removed student %s", student_id)
