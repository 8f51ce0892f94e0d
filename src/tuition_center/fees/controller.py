from __future__ import annotations

from flask import Flask

from ..api.request_utils import json_body
from ..api.responses import ok
from ..common.numbers import money
from ..container import Container
from ..serializers import (
    fee_snapshot,
    mode_total_to_dict,
    payment_to_dict,
    payment_with_student_to_dict,
    reminder_to_dict,
)


def register(app: Flask, container: Container) -> None:
    prefix = app.config["API_PREFIX"]

    @app.route(f"{prefix}/fees", methods=["POST"], endpoint="record_payment")
    def record_payment():
        result = container.fee_service.record_payment(json_body())
        return ok(
            {"payment": payment_to_dict(result.payment), "updatedStudent": fee_snapshot(result.student)},
            status=201,
            message="Payment recorded successfully",
        )

    @app.route(f"{prefix}/fees/<int:transaction_id>", methods=["DELETE"], endpoint="delete_payment")
    def delete_payment(transaction_id: int):
        container.fee_service.delete_payment(transaction_id)
        return ok(message="Payment record deleted successfully")

    @app.route(f"{prefix}/fees/student/<int:student_id>", methods=["GET"], endpoint="student_payments")
    def student_payments(student_id: int):
        result = container.fee_service.payments_for_student(student_id)
        return ok(
            [payment_to_dict(p) for p in result.payments],
            count=len(result.payments),
            studentInfo=fee_snapshot(result.student),
        )

    @app.route(f"{prefix}/fees/pending", methods=["GET"], endpoint="pending_fees")
    def pending_fees():
        reminders = container.fee_service.pending_fees()
        return ok([reminder_to_dict(r) for r in reminders], count=len(reminders))

    @app.route(f"{prefix}/fees/summary", methods=["GET"], endpoint="fees_summary")
    def fees_summary():
        summary = container.fee_service.summary()
        return ok(
            {
                "totalFeesCollected": money(summary.total_collected),
                "recentTransactions": [payment_with_student_to_dict(p) for p in summary.recent],
                "paymentModeDistribution": [mode_total_to_dict(m) for m in summary.modes],
            }
        )
