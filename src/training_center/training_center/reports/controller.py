from __future__ import annotations

from flask import Flask, request

from ..common.http import ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    stats = container.stats_service
    profit = container.profit_report_service

    @app.route("/stats", methods=["GET"], endpoint="stats")
    @guards.operator_required
    def stats_view():
        return ok(stats.stats(request.args.get("period")))

    @app.route("/stats/income-trend", methods=["GET"], endpoint="income_trend")
    @guards.operator_required
    def income_trend():
        return ok(stats.income_trend(request.args.get("months")))

    @app.route("/stats/hours-trend", methods=["GET"], endpoint="hours_trend")
    @guards.operator_required
    def hours_trend():
        return ok(stats.hours_trend(request.args.get("months")))

    @app.route("/students/<int:student_id>/profit", methods=["GET"], endpoint="student_profit")
    @guards.operator_required
    def student_profit(student_id: int):
        return ok(profit.student_profit(student_id))

    @app.route("/profit", methods=["GET"], endpoint="overall_profit")
    @guards.operator_required
    def overall_profit():
        return ok(profit.overall_profit(request.args.get("period")))
