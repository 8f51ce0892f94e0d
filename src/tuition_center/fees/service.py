from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_timestamp, utc_now
from ..common.locks import KeyedLocks
from ..common.validators import optional_text, require_int_in_range, require_positive_amount
from ..core.constants import DEFAULT_RECENT_TRANSACTIONS
from ..core.enums import PaymentMode
from ..core.exceptions import NotFoundError, ValidationError
from ..reminders.service import Reminder, ReminderService
from ..students.model import Student
from ..students.repository import StudentRepository
from .ledger import apply_payment, reverse_payment
from .model import ModeTotal, NewPayment, PaymentResult, PaymentTransaction, PaymentWithStudent, VoidResult
from .repository import FeeRepository

logger = logging.getLogger(__name__)

_MAX_ID = 2**31 - 1


@dataclass(frozen=True)
class StudentPayments:
    student: Student
    payments: Sequence[PaymentTransaction]


@dataclass(frozen=True)
class FeesSummary:
    total_collected: Decimal
    recent: Sequence[PaymentWithStudent]
    modes: Sequence[ModeTotal]


class FeeService:
    """Records and voids payments while keeping each student's balance consistent.

    A payment is either fully committed (ledger row + balance delta) or not
    at all; voiding removes the row and reverses the delta. Mutations for the
    same student are serialized by an in-process lock and, in MySQL, by a
    row lock taken inside the same transaction.
    """

    def __init__(
        self,
        fees: FeeRepository,
        students: StudentRepository,
        reminders: ReminderService,
        *,
        locks: Optional[KeyedLocks] = None,
        clock=utc_now,
    ):
        self._fees = fees
        self._students = students
        self._reminders = reminders
        self._locks = locks if locks is not None else KeyedLocks()
        self._clock = clock

    def parse_payment(self, payload: Any) -> NewPayment:
        if not isinstance(payload, dict):
            raise ValidationError("Payment data must be an object")

        if payload.get("studentId") in (None, ""):
            raise ValidationError("studentId is required")
        student_id = require_int_in_range(payload["studentId"], "studentId", low=1, high=_MAX_ID)
        amount = require_positive_amount(payload.get("amountPaid"), "amountPaid")

        raw_date = payload.get("paymentDate")
        payment_date = parse_timestamp(raw_date, "paymentDate") if raw_date else self._clock()

        raw_mode = payload.get("paymentMode") or PaymentMode.CASH.value
        try:
            mode = PaymentMode(raw_mode)
        except ValueError:
            allowed = ", ".join(m.value for m in PaymentMode)
            raise ValidationError(f"paymentMode must be one of: {allowed}")

        return NewPayment(
            student_id=student_id,
            amount_paid=amount,
            payment_date=payment_date,
            payment_mode=mode,
            notes=optional_text(payload.get("notes"), "notes"),
        )

    def record_payment(self, payload: Any) -> PaymentResult:
        new = self.parse_payment(payload)

        with self._locks.hold(new.student_id):
            result = self._fees.record_payment(new, lambda student: apply_payment(student, new.amount_paid))
        if result is None:
            raise NotFoundError("Student not found")

        logger.info(
            "Recorded payment %s of %s (%s) for student %s; balance now %s",
            result.payment.transaction_id,
            result.payment.amount_paid,
            result.payment.payment_mode.value,
            new.student_id,
            result.student.balance_fees,
        )
        return result

    def delete_payment(self, transaction_id: int) -> VoidResult:
        payment = self._fees.get_by_id(int(transaction_id))
        if not payment:
            raise NotFoundError("Payment record not found")

        with self._locks.hold(payment.student_id):
            # Re-read under the lock: a concurrent void of the same row returns None here.
            result = self._fees.delete_payment(
                int(transaction_id),
                lambda student, p: reverse_payment(student, p.amount_paid),
            )
        if result is None:
            raise NotFoundError("Payment record not found")

        if result.student is None:
            logger.warning(
                "Voided payment %s of %s for missing student %s; no balance to adjust",
                result.payment.transaction_id,
                result.payment.amount_paid,
                result.payment.student_id,
            )
        else:
            logger.info(
                "Voided payment %s of %s for student %s; balance now %s",
                result.payment.transaction_id,
                result.payment.amount_paid,
                result.payment.student_id,
                result.student.balance_fees,
            )
        return result

    def payments_for_student(self, student_id: int) -> StudentPayments:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        return StudentPayments(student=student, payments=self._fees.list_for_student(student.student_id))

    def pending_fees(self) -> list[Reminder]:
        return [self._reminders.reminder_for(s) for s in self._students.list_with_balance()]

    def summary(self, *, recent_limit: int = DEFAULT_RECENT_TRANSACTIONS) -> FeesSummary:
        return FeesSummary(
            total_collected=self._fees.total_collected(),
            recent=self._fees.recent(recent_limit),
            modes=self._fees.mode_totals(),
        )
