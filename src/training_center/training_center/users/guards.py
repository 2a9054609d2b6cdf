from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional

from flask import g, request, session

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .service import AuthService

OPERATOR_ROLES = (Role.ADMIN, Role.TEACHER, Role.OPERATOR)
TEACHER_ROLES = (Role.ADMIN, Role.TEACHER)
ADMIN_ROLES = (Role.ADMIN,)


def extract_token() -> Optional[str]:
    """Bearer header first, then the `token` cookie, then the Flask session."""
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        token = header[len("Bearer "):].strip()
        if token:
            return token
    return request.cookies.get("token") or session.get("token")


def current_user():
    return g.get("current_user")


@dataclass(frozen=True)
class Guards:
    login_required: Callable
    admin_required: Callable
    teacher_required: Callable
    operator_required: Callable
    role_required: Callable


def make_guards(auth_service: AuthService) -> Guards:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = extract_token()
            g.current_user = auth_service.authenticate_token(token)
            g.current_token = token
            return view(*args, **kwargs)

        return wrapper

    def role_required(*roles: Role):
        allowed = {Role(r) for r in roles}

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = current_user()
                if user is None:
                    raise AuthenticationError("User is not authenticated")
                if user.role not in allowed:
                    raise AuthorizationError("Insufficient permissions for this operation")
                return view(*args, **kwargs)

            return login_required(wrapper)

        return decorator

    return Guards(
        login_required=login_required,
        admin_required=role_required(*ADMIN_ROLES),
        teacher_required=role_required(*TEACHER_ROLES),
        operator_required=role_required(*OPERATOR_ROLES),
        role_required=role_required,
    )
