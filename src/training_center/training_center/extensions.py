"""Shared Flask extension instances, bound to the app in `create_app()`."""

from __future__ import annotations

from flask import current_app
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

jwt = JWTManager()

# Default limits, storage and the on/off switch come from RATELIMIT_* settings.
limiter = Limiter(key_func=get_remote_address)


def login_rate_limit() -> str:
    return current_app.config.get("RATELIMIT_LOGIN", "5 per 15 minutes")
