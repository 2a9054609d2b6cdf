from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..container import Container
from ..core.enums import OperationType


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    log_operation = container.log_operation
    configs = container.deduction_config_service
    assignments = container.student_deduction_service
    details = container.deduction_detail_service

    # ----- configs -----
    @app.route("/deduction-configs", methods=["POST"], endpoint="create_deduction_config")
    @guards.admin_required
    @log_operation(OperationType.CREATE_DEDUCTION_CONFIG, "deduction_config")
    def create_deduction_config():
        config = configs.create(json_body())
        return ok(config.to_dict(), "Deduction config created", 201)

    @app.route("/deduction-configs", methods=["GET"], endpoint="list_deduction_configs")
    @guards.operator_required
    def list_deduction_configs():
        return ok([c.to_dict() for c in configs.list_configs()])

    @app.route("/deduction-configs/<int:config_id>", methods=["PUT"], endpoint="update_deduction_config")
    @guards.admin_required
    @log_operation(OperationType.UPDATE_DEDUCTION_CONFIG, "deduction_config")
    def update_deduction_config(config_id: int):
        config = configs.update(config_id, json_body())
        return ok(config.to_dict(), "Deduction config updated")

    # ----- per-student assignments -----
    @app.route("/students/<int:student_id>/deductions", methods=["GET"], endpoint="student_deductions")
    @guards.operator_required
    def student_deductions(student_id: int):
        return ok([sd.to_dict() for sd in assignments.list_for_student(student_id)])

    @app.route("/students/<int:student_id>/deductions", methods=["POST"], endpoint="set_student_deductions")
    @guards.admin_required
    @log_operation(OperationType.CREATE_STUDENT_DEDUCTION, "student_deduction")
    def set_student_deductions(student_id: int):
        data = assignments.set_for_student(student_id, json_body().get("deduction_ids"))
        return ok(data, "Student deductions updated")

    # ----- manual details -----
    @app.route("/students/<int:student_id>/deduction-details", methods=["POST"], endpoint="create_deduction_detail")
    @guards.admin_required
    @log_operation(OperationType.CREATE_DEDUCTION_DETAIL, "deduction_detail")
    def create_deduction_detail(student_id: int):
        detail = details.create(student_id, json_body())
        return ok(detail.to_dict(), "Deduction detail created", 201)

    @app.route("/students/<int:student_id>/deduction-details", methods=["GET"], endpoint="student_deduction_details")
    @guards.operator_required
    def student_deduction_details(student_id: int):
        return ok([d.to_dict() for d in details.list_for_student(student_id, request.args)])

    @app.route("/deduction-details", methods=["GET"], endpoint="search_deduction_details")
    @guards.operator_required
    def search_deduction_details():
        return ok(details.search(request.args).to_dict())

    @app.route("/deduction-details/<int:detail_id>", methods=["PUT"], endpoint="update_deduction_detail")
    @guards.admin_required
    @log_operation(OperationType.UPDATE_DEDUCTION_DETAIL, "deduction_detail")
    def update_deduction_detail(detail_id: int):
        detail = details.update(detail_id, json_body())
        return ok(detail.to_dict(), "Deduction detail updated")

    @app.route("/deduction-details/<int:detail_id>", methods=["DELETE"], endpoint="delete_deduction_detail")
    @guards.admin_required
    @log_operation(OperationType.DELETE_DEDUCTION_DETAIL, "deduction_detail")
    def delete_deduction_detail(detail_id: int):
        return ok(details.delete(detail_id), "Deduction detail deleted")
