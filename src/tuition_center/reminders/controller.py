from __future__ import annotations

from flask import Flask

from ..api.request_utils import json_body
from ..api.responses import ok
from ..common.numbers import money
from ..container import Container
from ..serializers import reminder_to_dict
from .service import Reminder


def _link_payload(r: Reminder) -> dict:
    s = r.student
    return {
        "studentName": s.name,
        "phone": s.phone,
        "balanceFees": money(s.balance_fees),
        "message": r.message,
        "whatsappLink": r.whatsapp_link,
    }


def register(app: Flask, container: Container) -> None:
    prefix = app.config["API_PREFIX"]

    @app.route(f"{prefix}/whatsapp/pending", methods=["GET"], endpoint="pending_reminders")
    def pending_reminders():
        reminders = container.reminder_service.pending_reminders()
        return ok([reminder_to_dict(r) for r in reminders], count=len(reminders))

    @app.route(f"{prefix}/whatsapp/<int:student_id>", methods=["GET"], endpoint="student_reminder")
    def student_reminder(student_id: int):
        return ok(_link_payload(container.reminder_service.reminder_for_student(student_id)))

    @app.route(f"{prefix}/whatsapp/custom/<int:student_id>", methods=["POST"], endpoint="custom_reminder")
    def custom_reminder(student_id: int):
        body = json_body()
        message = body.get("message") if isinstance(body, dict) else None
        reminder = container.reminder_service.custom_message(student_id, message)
        return ok(_link_payload(reminder))
