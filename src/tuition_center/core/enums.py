from __future__ import annotations

from enum import Enum


class FeeStructure(str, Enum):
    """Billing cycle of a student, derived from the grade."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class PaymentMode(str, Enum):
    """How a fee payment was received."""

    CASH = "cash"
    UPI = "UPI"
    BANK = "bank"
    CHECK = "check"
    OTHER = "other"
