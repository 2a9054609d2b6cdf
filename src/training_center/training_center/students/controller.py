from __future__ import annotations

from flask import Flask

from ..common.http import json_body, ok
from ..container import Container
from ..core.enums import OperationType


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    log_operation = container.log_operation
    service = container.student_service

    @app.route("/students", methods=["POST"], endpoint="create_student")
    @guards.operator_required
    @log_operation(OperationType.CREATE_STUDENT, "student")
    def create_student():
        body = json_body()
        data = service.create_student(name=body.get("name"), phone=body.get("phone"))
        return ok(data, "Student created", 201)

    @app.route("/students", methods=["GET"], endpoint="list_students")
    @guards.operator_required
    def list_students():
        return ok([s.to_dict() for s in service.list_students()])

    @app.route("/students/<int:student_id>", methods=["GET"], endpoint="student_detail")
    @guards.operator_required
    def student_detail(student_id: int):
        return ok(service.get_detail(student_id))

    @app.route("/students/<int:student_id>/recharge", methods=["POST"], endpoint="recharge_student")
    @guards.operator_required
    @log_operation(OperationType.ADD_INCOME, "income")
    def recharge_student(student_id: int):
        body = json_body()
        data = service.recharge(student_id, amount=body.get("amount"), hours=body.get("hours"))
        return ok(data, "Recharge recorded")

    @app.route("/students/<int:student_id>/consume", methods=["POST"], endpoint="consume_hours")
    @guards.teacher_required
    @log_operation(OperationType.ADD_CLASS, "class")
    def consume_hours(student_id: int):
        body = json_body()
        data = service.consume(student_id, hours_used=body.get("hours_used"))
        return ok(data, "Class recorded")

    @app.route("/students/<int:student_id>/delete", methods=["POST"], endpoint="delete_student")
    @guards.admin_required
    @log_operation(OperationType.DELETE_STUDENT, "student")
    def delete_student(student_id: int):
        return ok(service.delete_student(student_id), "Student deleted")
