"""Balance arithmetic for the fee ledger.

Every function returns a new Student whose derived fields satisfy
balance_fees == total_fees - paid_fees, with total_fees re-derived from the
active fee structure rather than trusted from storage.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..core.exceptions import ValidationError
from ..students.model import Student

logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")


def apply_payment(student: Student, amount: Decimal) -> Student:
    if amount <= 0:
        raise ValidationError("amountPaid must be greater than 0")

    current = student.with_fee_inputs()
    if amount > current.balance_fees:
        raise ValidationError(
            f"amountPaid {amount} exceeds the pending balance {max(current.balance_fees, _ZERO)}"
        )
    return current.with_fee_inputs(paid_fees=current.paid_fees + amount)


def reverse_payment(student: Student, amount: Decimal) -> Student:
    paid = student.paid_fees - amount
    if paid < 0:
        # Only reachable if paid_fees was edited outside the ledger.
        logger.warning(
            "Voiding %s from student %s would make paidFees negative (%s); clamping to 0",
            amount,
            student.student_id,
            paid,
        )
        paid = _ZERO
    return student.with_fee_inputs(paid_fees=paid)
