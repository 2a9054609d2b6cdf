from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import g, make_response, request

from ..core.enums import OperationType
from .service import OperationLogService, describe


def _response_target_id(response) -> Optional[int]:
    payload = response.get_json(silent=True) if response.is_json else None
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        value = payload["data"].get("id")
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _route_target_id() -> Optional[int]:
    for value in (request.view_args or {}).values():
        if isinstance(value, int):
            return value
    return None


def make_log_operation(log_service: OperationLogService):
    """Build the `log_operation(op, target_type)` route decorator.

    Place it under the auth guard so `g.current_user` is populated; the login
    view sets it itself before returning.
    """

    def log_operation(operation_type: OperationType, target_type: str):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                response = make_response(view(*args, **kwargs))
                user = g.get("current_user")
                if user is None or response.status_code >= 400:
                    return response

                body: Any = request.get_json(silent=True) or {}
                target_id = _response_target_id(response) or _route_target_id() or user.user_id
                log_service.record(
                    operation_type=operation_type,
                    target_id=target_id,
                    target_type=target_type,
                    description=describe(
                        operation_type,
                        body=body if isinstance(body, dict) else {},
                        target_id=target_id,
                        username=user.username,
                    ),
                    user_id=user.user_id,
                )
                return response

            return wrapper

        return decorator

    return log_operation
