from __future__ import annotations

import logging

from flask import Flask
from flask_limiter.errors import RateLimitExceeded
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError
from .http import fail

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if e.status_code >= 500:
            logger.error("%s: %s", type(e).__name__, e.message)
        return fail(e.error, e.message, e.status_code, e.data)

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(e: RateLimitExceeded):
        logger.warning("Rate limit hit: %s", e.description)
        return fail("Too many requests", "Too many requests, please try again later", 429)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.name, e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        return fail("Internal server error", "Something went wrong, please try again later", 500)
