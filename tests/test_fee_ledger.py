from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from fakes import FIXED_NOW
from tuition_center.core.enums import FeeStructure, PaymentMode
from tuition_center.core.exceptions import NotFoundError, ValidationError
from tuition_center.fees.ledger import apply_payment, reverse_payment


def _assert_consistent(student):
    assert student.balance_fees == student.total_fees - student.paid_fees


def test_worked_example_record_then_void(container, enroll):
    student = enroll(monthlyFees=1000, grade=5)
    assert student.fee_structure is FeeStructure.MONTHLY
    assert student.total_fees == Decimal("12000")
    assert student.balance_fees == Decimal("12000")

    result = container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 5000})
    assert result.student.paid_fees == Decimal("5000")
    assert result.student.balance_fees == Decimal("7000")
    assert result.payment.payment_mode is PaymentMode.CASH
    assert result.payment.payment_date == FIXED_NOW

    container.fee_service.delete_payment(result.payment.transaction_id)
    after = container.student_service.get_student(student.student_id)
    assert after.paid_fees == 0
    assert after.balance_fees == Decimal("12000")


def test_balance_stays_consistent_over_a_sequence(container, enroll):
    student = enroll(monthlyFees=1500)
    service = container.fee_service

    ids = []
    for amount in (100, 250.5, 999, 1):
        ids.append(service.record_payment({"studentId": student.student_id, "amountPaid": amount}).payment.transaction_id)
        _assert_consistent(container.student_service.get_student(student.student_id))

    service.delete_payment(ids[1])
    _assert_consistent(container.student_service.get_student(student.student_id))
    service.record_payment({"studentId": student.student_id, "amountPaid": 40})
    service.delete_payment(ids[0])

    current = container.student_service.get_student(student.student_id)
    _assert_consistent(current)
    assert current.paid_fees == Decimal("1040.00")


def test_round_trip_restores_previous_values(container, enroll):
    student = enroll(monthlyFees=800)
    container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 300})
    before = container.student_service.get_student(student.student_id)

    result = container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 1200})
    container.fee_service.delete_payment(result.payment.transaction_id)

    after = container.student_service.get_student(student.student_id)
    assert (after.paid_fees, after.balance_fees) == (before.paid_fees, before.balance_fees)


def test_grade_change_switches_to_yearly_fees(container, enroll):
    student = enroll(grade=8, monthlyFees=1000, yearlyFees=10000)
    assert student.total_fees == Decimal("12000")

    updated = container.student_service.update_student(student.student_id, {"grade": 9})

    assert updated.fee_structure is FeeStructure.YEARLY
    assert updated.total_fees == Decimal("10000")
    _assert_consistent(updated)


@pytest.mark.parametrize("amount", [0, -50, "abc", None])
def test_invalid_amount_is_rejected_without_writing(container, enroll, store, amount):
    student = enroll()

    with pytest.raises(ValidationError):
        container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": amount})

    assert store.payments == {}
    assert container.student_service.get_student(student.student_id).paid_fees == 0


def test_unknown_student_creates_no_transaction(container, store):
    with pytest.raises(NotFoundError):
        container.fee_service.record_payment({"studentId": 999, "amountPaid": 100})
    assert store.payments == {}


def test_overpayment_is_rejected(container, enroll, store):
    student = enroll(monthlyFees=1000)

    with pytest.raises(ValidationError, match="exceeds the pending balance"):
        container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 12000.01})

    assert store.payments == {}
    # Paying the exact balance is fine.
    result = container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 12000})
    assert result.student.balance_fees == 0


def test_payment_fields_are_parsed(container, enroll):
    student = enroll()
    result = container.fee_service.record_payment(
        {
            "studentId": str(student.student_id),
            "amountPaid": "250.75",
            "paymentDate": "2024-03-01",
            "paymentMode": "UPI",
            "notes": "  March  ",
        }
    )
    assert result.payment.amount_paid == Decimal("250.75")
    assert result.payment.payment_date == datetime(2024, 3, 1)
    assert result.payment.payment_mode is PaymentMode.UPI
    assert result.payment.notes == "March"


def test_unknown_payment_mode_lists_allowed_values(container, enroll):
    student = enroll()
    with pytest.raises(ValidationError, match="cash, UPI, bank, check, other"):
        container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 10, "paymentMode": "card"})


def test_voiding_twice_reports_not_found(container, enroll):
    student = enroll()
    payment = container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 10}).payment

    container.fee_service.delete_payment(payment.transaction_id)
    with pytest.raises(NotFoundError):
        container.fee_service.delete_payment(payment.transaction_id)


def test_void_for_missing_student_still_removes_transaction(container, enroll, store):
    student = enroll()
    payment = container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 10}).payment
    # Simulate a student row removed outside the service.
    del store.students[student.student_id]

    result = container.fee_service.delete_payment(payment.transaction_id)

    assert result.student is None
    assert store.payments == {}


def test_concurrent_payments_for_one_student_both_land(container, enroll):
    student = enroll(monthlyFees=1000)
    container.fees_repo.write_delay = 0.05
    errors = []

    def pay(amount):
        try:
            container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": amount})
        except Exception as e:  # surfaced below
            errors.append(e)

    threads = [threading.Thread(target=pay, args=(a,)) for a in (100, 200)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    current = container.student_service.get_student(student.student_id)
    assert current.paid_fees == Decimal("300")
    assert current.balance_fees == Decimal("11700")


def test_payments_for_student_newest_first(container, enroll):
    student = enroll()
    for day in ("2024-01-10", "2024-03-01", "2024-02-05"):
        container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 10, "paymentDate": day})

    result = container.fee_service.payments_for_student(student.student_id)

    assert [p.payment_date.day for p in result.payments] == [1, 5, 10]
    assert result.student.paid_fees == Decimal("30")


def test_pending_fees_sorted_by_balance(container, enroll):
    small = enroll(name="Small", monthlyFees=100)
    big = enroll(name="Big", monthlyFees=900)
    cleared = enroll(name="Cleared", monthlyFees=10)
    container.fee_service.record_payment({"studentId": cleared.student_id, "amountPaid": 120})

    reminders = container.fee_service.pending_fees()

    assert [r.student.student_id for r in reminders] == [big.student_id, small.student_id]
    assert reminders[0].whatsapp_link.startswith("https://wa.me/919876543210?text=")


def test_summary_totals_and_modes(container, enroll):
    student = enroll()
    container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 100, "paymentMode": "UPI"})
    container.fee_service.record_payment({"studentId": student.student_id, "amountPaid": 300})

    summary = container.fee_service.summary()

    assert summary.total_collected == Decimal("400")
    assert [m.payment_mode for m in summary.modes] == [PaymentMode.CASH, PaymentMode.UPI]
    assert len(summary.recent) == 2


def test_reverse_payment_never_goes_below_zero(enroll):
    student = enroll(monthlyFees=100)

    reversed_ = reverse_payment(student, Decimal("50"))

    assert reversed_.paid_fees == 0
    assert reversed_.balance_fees == Decimal("1200")


def test_apply_payment_rederives_total_from_rates(enroll):
    student = enroll(monthlyFees=100)
    stale = replace(student, total_fees=Decimal("1"), balance_fees=Decimal("1"))

    updated = apply_payment(stale, Decimal("200"))

    assert updated.total_fees == Decimal("1200")
    assert updated.balance_fees == Decimal("1000")


def test_student_updates_and_payments_share_one_lock_registry(container):
    assert container.student_service._locks is container.fee_service._locks
