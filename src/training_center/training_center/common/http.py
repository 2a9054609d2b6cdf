from __future__ import annotations

from typing import Any

from flask import jsonify, request


def ok(data: Any = None, message: str = "", status: int = 200):
    return jsonify({"success": True, "data": data, "message": message}), status


def fail(error: str, message: str, status: int, data: Any = None):
    payload = {"success": False, "error": error, "message": message}
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}
