from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import ExpiredSignatureError, InvalidTokenError

from ..core.exceptions import AuthenticationError


class TokenIssuer(Protocol):
    def issue(self, user_id: int, *, expires_in: timedelta) -> str:
        raise NotImplementedError

    def decode_user_id(self, token: str) -> int:
        raise NotImplementedError


class JWTTokenIssuer(TokenIssuer):
    """Signs tokens with flask-jwt-extended. Must run inside an app context."""

    def issue(self, user_id: int, *, expires_in: timedelta) -> str:
        return create_access_token(identity=str(user_id), expires_delta=expires_in)

    def decode_user_id(self, token: str) -> int:
        try:
            claims = decode_token(token)
        except ExpiredSignatureError:
            raise AuthenticationError("Access token expired, please log in again")
        except (InvalidTokenError, JWTExtendedException):
            raise AuthenticationError("Invalid access token")

        try:
            return int(claims["sub"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid access token")
