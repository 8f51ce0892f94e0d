from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_CURRENCY_LABEL
from ..core.exceptions import NotFoundError, ValidationError
from ..students.model import Student
from ..students.repository import StudentRepository
from .whatsapp import build_reminder_message, build_whatsapp_link


@dataclass(frozen=True)
class Reminder:
    student: Student
    message: str
    whatsapp_link: str


class ReminderService:
    """Builds wa.me deep links; nothing is sent from the server."""

    def __init__(self, students: StudentRepository, *, currency: str = DEFAULT_CURRENCY_LABEL):
        self._students = students
        self._currency = currency

    def reminder_for(self, student: Student) -> Reminder:
        message = build_reminder_message(student.name, student.balance_fees, currency=self._currency)
        return Reminder(student=student, message=message, whatsapp_link=build_whatsapp_link(student.phone, message))

    def reminder_for_student(self, student_id: int) -> Reminder:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        if student.balance_fees <= 0:
            raise ValidationError("Student has no pending fees")
        return self.reminder_for(student)

    def pending_reminders(self) -> list[Reminder]:
        students = self._students.list_with_balance()
        if not students:
            raise NotFoundError("No students with pending fees found")
        return [self.reminder_for(s) for s in students]

    def custom_message(self, student_id: int, message: Any) -> Reminder:
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Please provide a message")
        text = require_non_empty(message, "message")

        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        return Reminder(student=student, message=text, whatsapp_link=build_whatsapp_link(student.phone, text))
