from __future__ import annotations

from flask import Flask, g, request, session

from ..common.http import json_body, ok
from ..common.validators import as_bool
from ..container import Container
from ..core.enums import OperationType
from ..core.exceptions import ValidationError
from ..extensions import limiter, login_rate_limit
from .guards import current_user


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    log_operation = container.log_operation
    auth = container.auth_service
    users = container.user_service

    @app.route("/auth/login", methods=["POST"], endpoint="login")
    @limiter.limit(login_rate_limit, methods=["POST"])
    @log_operation(OperationType.LOGIN, "user")
    def login():
        body = json_body()
        result = auth.login(
            body.get("username"),
            body.get("password"),
            remember_me=as_bool(body.get("rememberMe")),
            ip_address=request.remote_addr,
        )
        session["token"] = result.token
        session.permanent = True
        g.current_user = result.user
        return ok(result.to_dict(), "Login successful")

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    @guards.login_required
    @log_operation(OperationType.LOGOUT, "user")
    def logout():
        auth.logout(g.get("current_token"))
        session.clear()
        return ok(None, "Logged out")

    @app.route("/auth/register", methods=["POST"], endpoint="register")
    @guards.admin_required
    def register_user():
        body = json_body()
        user = users.register(
            username=body.get("username"),
            password=body.get("password"),
            role=body.get("role"),
            real_name=body.get("real_name"),
            email=body.get("email"),
            phone=body.get("phone"),
        )
        return ok(user.to_brief(), "User created", 201)

    @app.route("/auth/profile", methods=["GET"], endpoint="profile")
    @guards.login_required
    def profile():
        return ok(auth.get_profile(current_user().user_id).to_public())

    @app.route("/auth/profile", methods=["PUT"], endpoint="update_profile")
    @guards.login_required
    def update_profile():
        body = json_body()
        auth.update_profile(
            current_user().user_id,
            real_name=body.get("real_name"),
            email=body.get("email"),
            phone=body.get("phone"),
        )
        return ok(None, "Profile updated")

    @app.route("/auth/change-password", methods=["POST"], endpoint="change_password")
    @guards.login_required
    def change_password():
        body = json_body()
        auth.change_password(
            current_user().user_id,
            current_password=body.get("currentPassword"),
            new_password=body.get("newPassword"),
        )
        session.clear()
        return ok(None, "Password changed, please log in again")

    @app.route("/auth/verify", methods=["GET"], endpoint="verify")
    @guards.login_required
    def verify():
        return ok({"user": current_user().to_public()}, "Token is valid")

    @app.route("/auth/users", methods=["GET"], endpoint="list_users")
    @guards.admin_required
    def list_users():
        return ok([u.to_public() for u in users.list_users()])

    @app.route("/auth/users/<int:user_id>/status", methods=["PUT"], endpoint="set_user_status")
    @guards.admin_required
    def set_user_status(user_id: int):
        body = json_body()
        if "is_active" not in body:
            raise ValidationError("is_active is required")
        is_active = as_bool(body.get("is_active"))
        users.set_status(current_user_id=current_user().user_id, user_id=user_id, is_active=is_active)
        return ok({"id": user_id, "is_active": is_active}, "User enabled" if is_active else "User disabled")
