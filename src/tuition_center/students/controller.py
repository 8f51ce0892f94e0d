from __future__ import annotations

from flask import Flask

from ..api.request_utils import json_body
from ..api.responses import ok
from ..container import Container
from ..serializers import student_to_dict


def register(app: Flask, container: Container) -> None:
    prefix = app.config["API_PREFIX"]

    @app.route(f"{prefix}/students", methods=["GET"], endpoint="list_students")
    def list_students():
        students = container.student_service.list_students()
        return ok([student_to_dict(s) for s in students], count=len(students))

    @app.route(f"{prefix}/students", methods=["POST"], endpoint="create_student")
    def create_student():
        student = container.student_service.create_student(json_body())
        return ok(student_to_dict(student), status=201, message="Student created")

    @app.route(f"{prefix}/students/bulk", methods=["POST"], endpoint="create_students_bulk")
    def create_students_bulk():
        students = container.student_service.create_students_bulk(json_body())
        return ok(
            [student_to_dict(s) for s in students],
            status=201,
            message=f"{len(students)} students created",
            count=len(students),
        )

    @app.route(f"{prefix}/students/<int:student_id>", methods=["GET"], endpoint="get_student")
    def get_student(student_id: int):
        return ok(student_to_dict(container.student_service.get_student(student_id)))

    @app.route(f"{prefix}/students/<int:student_id>", methods=["PUT"], endpoint="update_student")
    def update_student(student_id: int):
        student = container.student_service.update_student(student_id, json_body())
        return ok(student_to_dict(student), message="Student updated")

    @app.route(f"{prefix}/students/<int:student_id>", methods=["DELETE"], endpoint="delete_student")
    def delete_student(student_id: int):
        container.student_service.delete_student(student_id)
        return ok(message="Student deleted")
