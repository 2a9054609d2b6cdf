from __future__ import annotations

from flask import Flask, request

from ..common.http import ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route("/operation-logs", methods=["GET"], endpoint="operation_logs")
    @guards.admin_required
    def operation_logs():
        return ok(container.operation_log_service.recent(limit=request.args.get("limit")))
