from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PaymentMode
from ..students.model import Student


@dataclass(frozen=True)
class PaymentTransaction:
    """One committed fee payment. Voiding deletes the row."""

    transaction_id: int
    student_id: int
    amount_paid: Decimal
    payment_date: datetime
    payment_mode: PaymentMode
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewPayment:
    student_id: int
    amount_paid: Decimal
    payment_date: datetime
    payment_mode: PaymentMode
    notes: Optional[str] = None


@dataclass(frozen=True)
class PaymentResult:
    payment: PaymentTransaction
    student: Student


@dataclass(frozen=True)
class VoidResult:
    payment: PaymentTransaction
    # None when the owning student no longer exists.
    student: Optional[Student]


@dataclass(frozen=True)
class PaymentWithStudent:
    """Read-model for listings that show who paid."""

    payment: PaymentTransaction
    student_name: Optional[str]
    batch: Optional[str]


@dataclass(frozen=True)
class ModeTotal:
    payment_mode: PaymentMode
    total: Decimal
    count: int
