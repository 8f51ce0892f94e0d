from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.constants import MONTHS_PER_YEAR, YEARLY_FEE_MIN_GRADE
from ..core.enums import FeeStructure


@dataclass(frozen=True)
class FeeBreakdown:
    """Derived fee fields; never written from client input."""

    fee_structure: FeeStructure
    total_fees: Decimal
    balance_fees: Decimal


def fee_structure_for_grade(grade: int) -> FeeStructure:
    return FeeStructure.YEARLY if int(grade) >= YEARLY_FEE_MIN_GRADE else FeeStructure.MONTHLY


def derive_fees(*, grade: int, monthly_fees: Decimal, yearly_fees: Decimal, paid_fees: Decimal) -> FeeBreakdown:
    """Single source of truth for feeStructure / totalFees / balanceFees.

    Only the rate matching the grade's fee structure counts towards the total.
    The balance is not clamped: lowering a rate below what was already paid
    leaves a negative balance (a credit) rather than breaking
    balance == total - paid.
    """
    structure = fee_structure_for_grade(grade)
    if structure is FeeStructure.YEARLY:
        total = Decimal(yearly_fees)
    else:
        total = Decimal(monthly_fees) * MONTHS_PER_YEAR
    return FeeBreakdown(fee_structure=structure, total_fees=total, balance_fees=total - Decimal(paid_fees))


@dataclass(frozen=True)
class Student:
    """Domain entity: a student enrolled at the center."""

    student_id: int
    name: str
    phone: str
    batch: str
    grade: int
    fee_structure: FeeStructure
    monthly_fees: Decimal
    yearly_fees: Decimal
    total_fees: Decimal
    paid_fees: Decimal
    balance_fees: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def with_fee_inputs(
        self,
        *,
        grade: Optional[int] = None,
        monthly_fees: Optional[Decimal] = None,
        yearly_fees: Optional[Decimal] = None,
        paid_fees: Optional[Decimal] = None,
    ) -> "Student":
        """Return a copy with new fee inputs and freshly derived totals."""
        grade = self.grade if grade is None else grade
        monthly = self.monthly_fees if monthly_fees is None else monthly_fees
        yearly = self.yearly_fees if yearly_fees is None else yearly_fees
        paid = self.paid_fees if paid_fees is None else paid_fees

        fees = derive_fees(grade=grade, monthly_fees=monthly, yearly_fees=yearly, paid_fees=paid)
        return replace(
            self,
            grade=grade,
            monthly_fees=monthly,
            yearly_fees=yearly,
            paid_fees=paid,
            fee_structure=fees.fee_structure,
            total_fees=fees.total_fees,
            balance_fees=fees.balance_fees,
        )


@dataclass(frozen=True)
class NewStudent:
    name: str
    phone: str
    batch: str
    grade: int
    monthly_fees: Decimal
    yearly_fees: Decimal
    notes: Optional[str] = None

    def fees(self) -> FeeBreakdown:
        return derive_fees(
            grade=self.grade,
            monthly_fees=self.monthly_fees,
            yearly_fees=self.yearly_fees,
            paid_fees=Decimal("0.00"),
        )


@dataclass(frozen=True)
class StudentChanges:
    """Partial update; None means "leave as is"."""

    name: Optional[str] = None
    phone: Optional[str] = None
    batch: Optional[str] = None
    notes: Optional[str] = None
    clear_notes: bool = False
    grade: Optional[int] = None
    monthly_fees: Optional[Decimal] = None
    yearly_fees: Optional[Decimal] = None

    def apply(self, student: Student) -> Student:
        notes = None if self.clear_notes else (self.notes if self.notes is not None else student.notes)
        profiled = replace(
            student,
            name=self.name if self.name is not None else student.name,
            phone=self.phone if self.phone is not None else student.phone,
            batch=self.batch if self.batch is not None else student.batch,
            notes=notes,
        )
        # Always re-derive, even when no fee input changed.
        return profiled.with_fee_inputs(
            grade=self.grade,
            monthly_fees=self.monthly_fees,
            yearly_fees=self.yearly_fees,
        )
