from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Protocol, Sequence

from ..students.model import Student
from .model import ModeTotal, NewPayment, PaymentResult, PaymentTransaction, PaymentWithStudent, VoidResult


class FeeRepository(Protocol):
    def get_by_id(self, transaction_id: int) -> Optional[PaymentTransaction]:
        raise NotImplementedError

    def record_payment(self, new: NewPayment, apply: Callable[[Student], Student]) -> Optional[PaymentResult]:
        """Insert the ledger row and persist `apply(student)` as one transaction.

        The student row is locked for the duration. Returns None if the
        student does not exist; if `apply` raises, nothing is written.
        """

        raise NotImplementedError

    def delete_payment(
        self,
        transaction_id: int,
        reverse: Callable[[Student, PaymentTransaction], Student],
    ) -> Optional[VoidResult]:
        """Delete the ledger row and persist `reverse(student, payment)` as one transaction.

        Returns None if the transaction does not exist. When the owning
        student is gone the row is still deleted and `VoidResult.student` is None.
        """

        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[PaymentTransaction]:
        """Newest payment first."""

        raise NotImplementedError

    def count_for_student(self, student_id: int) -> int:
        raise NotImplementedError

    def total_collected(self, *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Decimal:
        """Sum of amount_paid; `end` is exclusive."""

        raise NotImplementedError

    def recent(self, limit: int) -> Sequence[PaymentWithStudent]:
        raise NotImplementedError

    def mode_totals(self, *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Sequence[ModeTotal]:
        """Totals per payment mode, largest total first."""

        raise NotImplementedError

    def list_between(
        self,
        *,
        start: datetime,
        end: datetime,
        student_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[PaymentWithStudent]:
        """Payments with start <= payment_date < end, oldest first."""

        raise NotImplementedError
