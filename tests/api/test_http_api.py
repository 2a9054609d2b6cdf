from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from src.training_center.training_center.core.enums import Role


@pytest.fixture
def staff(add_user):
    add_user("admin", Role.ADMIN)
    add_user("teacher", Role.TEACHER)
    add_user("operator", Role.OPERATOR)


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert "uptime" in body
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_unknown_route_returns_json_error(client):
    resp = client.get("/nope")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_login_envelope_and_verify(client, staff, store):
    resp = client.post("/auth/login", json={"username": "operator", "password": "secret123", "rememberMe": True})

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["expiresIn"] == "7d"
    assert body["data"]["user"]["role"] == "operator"

    headers = {"Authorization": f"Bearer {body['data']['token']}"}
    verify = client.get("/auth/verify", headers=headers)
    assert verify.get_json()["data"]["user"]["username"] == "operator"

    assert [log.operation_type for log in store.logs] == ["LOGIN"]


def test_failed_login(client, staff, store):
    resp = client.post("/auth/login", json={"username": "operator", "password": "bad-pass1"})

    assert resp.status_code == 401
    assert resp.get_json() == {
        "success": False,
        "error": "Unauthorized",
        "message": "Invalid username or password",
    }
    assert not store.logs


def test_missing_token_is_401(client):
    resp = client.get("/students")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_garbage_token_is_401(client):
    assert client.get("/students", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


@pytest.mark.parametrize(
    "username, method, url, expected",
    [
        ("operator", "post", "/students/1/consume", 403),
        ("operator", "post", "/students/1/delete", 403),
        ("teacher", "get", "/operation-logs", 403),
        ("operator", "post", "/deduction-configs", 403),
        ("teacher", "get", "/stats", 200),
        ("admin", "get", "/operation-logs", 200),
    ],
)
def test_role_gates(client, staff, login, username, method, url, expected):
    headers = login(username)

    resp = getattr(client, method)(url, headers=headers, json={})

    assert resp.status_code == expected


def test_student_lifecycle(client, staff, login, store):
    operator = login("operator")
    teacher = login("teacher")
    admin = login("admin")

    created = client.post("/students", headers=operator, json={"name": "Alice", "phone": "13800000001"})
    assert created.status_code == 201
    sid = created.get_json()["data"]["id"]

    recharge = client.post(f"/students/{sid}/recharge", headers=operator, json={"amount": 900, "hours": 9})
    assert recharge.status_code == 200
    income_id = recharge.get_json()["data"]["id"]

    consume = client.post(f"/students/{sid}/consume", headers=teacher, json={"hours_used": 20})
    assert consume.status_code == 400
    assert consume.get_json()["data"] == {"remaining_hours": 9, "requested_hours": 20}

    detail = client.get(f"/students/{sid}", headers=operator).get_json()["data"]
    assert detail["student"]["remaining_hours"] == 9
    assert detail["income_records"][0]["id"] == income_id

    deleted = client.delete(f"/income/{income_id}", headers=admin)
    assert deleted.status_code == 200
    assert deleted.get_json()["data"]["updated_student"]["remaining_hours"] == 0

    logged = [(log.operation_type, log.target_type, log.target_id) for log in store.logs if log.operation_type != "LOGIN"]
    assert logged == [
        ("CREATE_STUDENT", "student", sid),
        ("ADD_INCOME", "income", income_id),
        ("DELETE_INCOME", "income", income_id),
    ]


def test_duplicate_phone_is_400(client, staff, login):
    headers = login("operator")
    client.post("/students", headers=headers, json={"name": "Alice", "phone": "13800000001"})

    resp = client.post("/students", headers=headers, json={"name": "Bob", "phone": "13800000001"})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Phone number already exists"


def test_deduction_config_and_profit_report(client, staff, login):
    admin = login("admin")

    created = client.post(
        "/deduction-configs",
        headers=admin,
        json={"name": "Platform", "type": "percentage", "value": 10, "frequency": "multiple"},
    )
    assert created.status_code == 201
    config_id = created.get_json()["data"]["id"]

    sid = client.post("/students", headers=admin, json={"name": "Alice", "phone": "13800000001"}).get_json()["data"]["id"]
    assigned = client.post(f"/students/{sid}/deductions", headers=admin, json={"deduction_ids": [config_id]})
    assert assigned.status_code == 200
    client.post(f"/students/{sid}/recharge", headers=admin, json={"amount": 1000, "hours": 10})

    report = client.get(f"/students/{sid}/profit", headers=admin).get_json()["data"]
    assert report["total_income"] == 1000.0
    assert report["total_multiple_deductions"] == 100.0
    assert report["profit"] == 900.0

    overall = client.get("/profit?period=all", headers=admin).get_json()["data"]
    assert overall["period"] == "all"
    assert overall["total_deductions"] == 100.0


def test_deduction_details_pagination_over_http(client, staff, login):
    admin = login("admin")
    sid = client.post("/students", headers=admin, json={"name": "Alice", "phone": "13800000001"}).get_json()["data"]["id"]
    for day in (1, 2, 3):
        resp = client.post(
            f"/students/{sid}/deduction-details",
            headers=admin,
            json={"deduction_type": "material_fee", "amount": 10, "date": f"2025-03-0{day}", "operator": "admin"},
        )
        assert resp.status_code == 201

    page = client.get("/deduction-details?limit=2&page=1", headers=admin).get_json()["data"]

    assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert [row["date"] for row in page["list"]] == ["2025-03-03", "2025-03-02"]
    assert page["list"][0]["student_name"] == "Alice"


def test_logout_ends_session(client, staff, login):
    headers = login("teacher")

    assert client.post("/auth/logout", headers=headers).status_code == 200
    assert client.get("/auth/verify", headers=headers).status_code == 401


def test_change_password_logs_everyone_out(client, staff, login):
    headers = login("teacher")

    resp = client.post(
        "/auth/change-password",
        headers=headers,
        json={"currentPassword": "secret123", "newPassword": "better123"},
    )

    assert resp.status_code == 200
    assert client.get("/auth/verify", headers=headers).status_code == 401
    login("teacher", "better123")


@pytest.mark.parametrize("current", [12345678, ["secret123"], {"p": "secret123"}])
def test_change_password_with_non_text_current_is_400(client, staff, login, current):
    headers = login("teacher")

    resp = client.post(
        "/auth/change-password",
        headers=headers,
        json={"currentPassword": current, "newPassword": "better123"},
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Current password is incorrect"
    assert client.get("/auth/verify", headers=headers).status_code == 200


def test_admin_registers_user_and_toggles_status(client, staff, login):
    admin = login("admin")

    created = client.post(
        "/auth/register",
        headers=admin,
        json={"username": "newop", "password": "newop1234", "role": "operator", "real_name": "New Op"},
    )
    assert created.status_code == 201
    user_id = created.get_json()["data"]["id"]

    disabled = client.put(f"/auth/users/{user_id}/status", headers=admin, json={"is_active": False})
    assert disabled.status_code == 200
    assert client.post("/auth/login", json={"username": "newop", "password": "newop1234"}).status_code == 401

    missing = client.put(f"/auth/users/{user_id}/status", headers=admin, json={})
    assert missing.status_code == 400


def test_operation_logs_endpoint(client, staff, login):
    admin = login("admin")
    client.post("/students", headers=admin, json={"name": "Alice", "phone": "13800000001"})

    data = client.get("/operation-logs?limit=1", headers=admin).get_json()["data"]

    assert len(data["logs"]) == 1
    assert data["logs"][0]["operation_type"] == "CREATE_STUDENT"
    assert {row["operation_type"] for row in data["counts"]} == {"LOGIN", "CREATE_STUDENT"}


def test_stats_endpoints(client, staff, login):
    headers = login("operator")

    stats = client.get("/stats?period=month", headers=headers).get_json()["data"]
    trend = client.get("/stats/income-trend?months=3", headers=headers).get_json()["data"]

    assert stats["period"] == "month"
    assert stats["total_students"] == 0
    assert trend == []


def test_expired_token_is_401(app, client, add_user, repos):
    user = add_user("teacher", Role.TEACHER)
    with app.app_context():
        token = create_access_token(identity=str(user.user_id), expires_delta=timedelta(seconds=-1))
    repos["sessions_repo"].create_session(
        user_id=user.user_id, token=token, expires_at=datetime.now() + timedelta(hours=1)
    )

    resp = client.get("/auth/verify", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.get_json() == {
        "success": False,
        "error": "Unauthorized",
        "message": "Access token expired, please log in again",
    }


def test_token_cookie_authenticates(app, staff, login):
    token = login("teacher")["Authorization"].split(" ", 1)[1]
    other = app.test_client()
    other.set_cookie("token", token)

    resp = other.get("/auth/verify")

    assert resp.status_code == 200
    assert resp.get_json()["data"]["user"]["username"] == "teacher"


def test_login_session_authenticates_without_header(app, client, staff):
    assert client.post("/auth/login", json={"username": "teacher", "password": "secret123"}).status_code == 200

    resp = client.get("/auth/verify")

    assert resp.status_code == 200
    assert resp.get_json()["data"]["user"]["username"] == "teacher"
    assert app.test_client().get("/auth/verify").status_code == 401


def test_login_throttled_after_five_failures(client, staff, store):
    for _ in range(5):
        resp = client.post("/auth/login", json={"username": "teacher", "password": "wrong-pass1"})
        assert resp.status_code == 401

    resp = client.post("/auth/login", json={"username": "teacher", "password": "secret123"})

    assert resp.status_code == 429
    assert resp.get_json() == {
        "success": False,
        "error": "Too many attempts",
        "message": "Too many failed logins, try again in 5 minutes",
    }
    assert len(store.attempts) == 5


@pytest.mark.parametrize(
    "body",
    [{"username": 123, "password": "secret123"}, {"username": "teacher", "password": ["secret123"]}],
)
def test_login_with_non_text_credentials_is_400(client, staff, body):
    resp = client.post("/auth/login", json=body)

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
    assert resp.get_json()["error"] == "Invalid parameters"
