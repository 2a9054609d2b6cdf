from __future__ import annotations

from flask import Flask

from ..common.http import ok
from ..container import Container
from ..core.enums import OperationType


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    log_operation = container.log_operation

    @app.route("/income/<int:income_id>", methods=["DELETE"], endpoint="delete_income")
    @guards.admin_required
    @log_operation(OperationType.DELETE_INCOME, "income")
    def delete_income(income_id: int):
        result = container.income_service.delete_income(income_id)
        return ok(result, "Income record deleted")
