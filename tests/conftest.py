from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.training_center.training_center.common.datetime_utils import DateRange
from src.training_center.training_center.container import assemble
from src.training_center.training_center.core.enums import DeductionFrequency, DeductionType, Role
from src.training_center.training_center.core.exceptions import AuthenticationError, ValidationError
from src.training_center.training_center.deductions.model import (
    DeductionConfig,
    DeductionDetail,
    DetailFilter,
    DetailInput,
    StudentDeduction,
)
from src.training_center.training_center.income.repository import ReversalOutcome
from src.training_center.training_center.operation_logs.model import OperationLog
from src.training_center.training_center.reports.model import PeriodFigures, StudentFigures
from src.training_center.training_center.students.model import ClassRecord, IncomeRecord, Student
from src.training_center.training_center.users.model import User, UserSession


class InMemoryStore:
    """Tables shared by the in-memory repositories below."""

    def __init__(self):
        self.users: dict[int, User] = {}
        self.sessions: dict[str, UserSession] = {}
        self.attempts: list[dict] = []
        self.students: dict[int, Student] = {}
        self.income: dict[int, IncomeRecord] = {}
        self.classes: dict[int, ClassRecord] = {}
        self.configs: dict[int, DeductionConfig] = {}
        # (student_id, config_id) -> {"id", "applied_count", "last_applied_date"}
        self.assignments: dict[tuple[int, int], dict] = {}
        self.details: dict[int, DeductionDetail] = {}
        self.logs: list[OperationLog] = []
        self._ids: Counter = Counter()

    def next_id(self, table: str) -> int:
        self._ids[table] += 1
        return self._ids[table]


def _in_range(day: date, period: DateRange) -> bool:
    if not period.is_bounded:
        return True
    return period.start <= day <= period.end


# ---------------- users ----------------
class InMemoryUsers:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, user_id):
        return self._s.users.get(int(user_id))

    def get_by_username(self, username):
        return next((u for u in self._s.users.values() if u.username == username), None)

    def create_user(self, *, username, password_hash, role, real_name, email, phone) -> int:
        uid = self._s.next_id("users")
        self._s.users[uid] = User(
            user_id=uid,
            username=username,
            password_hash=password_hash,
            role=Role(role),
            real_name=real_name,
            email=email,
            phone=phone,
            created_at=datetime(2025, 1, 1) + timedelta(minutes=uid),
        )
        return uid

    def _update(self, user_id, **changes) -> bool:
        user = self._s.users.get(int(user_id))
        if not user:
            return False
        self._s.users[user.user_id] = replace(user, **changes)
        return True

    def update_profile(self, user_id, *, real_name, email, phone) -> bool:
        return self._update(user_id, real_name=real_name, email=email, phone=phone)

    def update_password(self, user_id, *, password_hash) -> bool:
        return self._update(user_id, password_hash=password_hash)

    def set_active(self, user_id, *, is_active) -> bool:
        return self._update(user_id, is_active=bool(is_active))

    def touch_last_login(self, user_id, *, at) -> None:
        self._update(user_id, last_login=at)

    def list_all(self):
        return sorted(self._s.users.values(), key=lambda u: u.created_at, reverse=True)


class InMemorySessions:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def create_session(self, *, user_id, token, expires_at) -> int:
        sid = self._s.next_id("sessions")
        self._s.sessions[token] = UserSession(session_id=sid, user_id=user_id, token=token, expires_at=expires_at)
        return sid

    def get_active(self, token, *, now):
        session = self._s.sessions.get(token)
        return session if session and session.expires_at > now else None

    def delete_by_token(self, token) -> bool:
        return self._s.sessions.pop(token, None) is not None

    def delete_for_user(self, user_id) -> int:
        tokens = [t for t, s in self._s.sessions.items() if s.user_id == int(user_id)]
        for t in tokens:
            del self._s.sessions[t]
        return len(tokens)

    def purge_expired(self, *, now) -> int:
        expired = [t for t, s in self._s.sessions.items() if s.expires_at <= now]
        for t in expired:
            del self._s.sessions[t]
        return len(expired)


class InMemoryAttempts:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def record(self, *, username, ip_address, success, at) -> None:
        self._s.attempts.append({"username": username, "ip_address": ip_address, "success": success, "at": at})

    def count_recent_failures(self, *, username, ip_address, since) -> int:
        return sum(
            1
            for a in self._s.attempts
            if a["username"] == username and a["ip_address"] == ip_address and not a["success"] and a["at"] > since
        )


class FakeTokens:
    """Deterministic tokens: tok-<user_id>-<n>."""

    def __init__(self):
        self.issued: list[tuple[int, timedelta]] = []

    def issue(self, user_id, *, expires_in) -> str:
        self.issued.append((user_id, expires_in))
        return f"tok-{user_id}-{len(self.issued)}"

    def decode_user_id(self, token) -> int:
        parts = str(token).split("-")
        if len(parts) != 3 or parts[0] != "tok":
            raise AuthenticationError("Invalid access token")
        return int(parts[1])


# ---------------- students / income ----------------
class InMemoryStudents:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, student_id):
        return self._s.students.get(int(student_id))

    def get_by_phone(self, phone):
        return next((s for s in self._s.students.values() if s.phone == phone), None)

    def list_all(self):
        return sorted(self._s.students.values(), key=lambda s: s.student_id)

    def create_with_deductions(self, *, name, phone, applied_at):
        if self.get_by_phone(phone):
            raise ValidationError("Phone number already exists")
        sid = self._s.next_id("students")
        self._s.students[sid] = Student(student_id=sid, name=name, phone=phone, remaining_hours=0, created_at=applied_at)
        attached = 0
        for config in self._s.configs.values():
            if config.is_active and config.frequency == DeductionFrequency.ONCE:
                self._s.assignments[(sid, config.config_id)] = {
                    "id": self._s.next_id("assignments"),
                    "applied_count": 1,
                    "last_applied_date": applied_at,
                }
                attached += 1
        return sid, attached

    def _add_hours(self, student_id: int, delta: int) -> None:
        student = self._s.students[student_id]
        self._s.students[student_id] = replace(student, remaining_hours=student.remaining_hours + delta)

    def recharge(self, student_id, *, amount, hours, on, applied_at):
        sid = int(student_id)
        self._add_hours(sid, hours)
        iid = self._s.next_id("income")
        self._s.income[iid] = IncomeRecord(
            income_id=iid, student_id=sid, amount=float(amount), hours=int(hours), date=on, created_at=applied_at
        )
        bumped = 0
        for (s_id, c_id), row in self._s.assignments.items():
            config = self._s.configs.get(c_id)
            if s_id == sid and config and config.is_active and config.frequency == DeductionFrequency.MULTIPLE:
                row["applied_count"] += 1
                row["last_applied_date"] = applied_at
                bumped += 1
        return iid, bumped

    def consume_hours(self, student_id, *, hours, on, at):
        sid = int(student_id)
        if self._s.students[sid].remaining_hours < hours:
            return None
        self._add_hours(sid, -hours)
        cid = self._s.next_id("classes")
        self._s.classes[cid] = ClassRecord(class_id=cid, student_id=sid, hours_used=int(hours), date=on, created_at=at)
        return cid

    def delete_cascade(self, student_id) -> bool:
        sid = int(student_id)
        self._s.details = {k: v for k, v in self._s.details.items() if v.student_id != sid}
        self._s.assignments = {k: v for k, v in self._s.assignments.items() if k[0] != sid}
        self._s.classes = {k: v for k, v in self._s.classes.items() if v.student_id != sid}
        self._s.income = {k: v for k, v in self._s.income.items() if v.student_id != sid}
        return self._s.students.pop(sid, None) is not None

    def list_income(self, student_id):
        rows = [r for r in self._s.income.values() if r.student_id == int(student_id)]
        return sorted(rows, key=lambda r: (r.date, r.income_id), reverse=True)

    def list_classes(self, student_id):
        rows = [r for r in self._s.classes.values() if r.student_id == int(student_id)]
        return sorted(rows, key=lambda r: (r.date, r.class_id), reverse=True)


class InMemoryIncome:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, income_id):
        return self._s.income.get(int(income_id))

    def has_classes_after(self, student_id, *, since) -> bool:
        return any(c.student_id == int(student_id) and c.created_at > since for c in self._s.classes.values())

    def delete_and_reverse_hours(self, income) -> ReversalOutcome:
        if income.income_id not in self._s.income:
            return ReversalOutcome.MISSING
        student = self._s.students.get(income.student_id)
        if not student or student.remaining_hours < income.hours:
            return ReversalOutcome.INSUFFICIENT_HOURS
        self._s.students[student.student_id] = replace(student, remaining_hours=student.remaining_hours - income.hours)
        del self._s.income[income.income_id]
        return ReversalOutcome.DELETED


# ---------------- deductions ----------------
class InMemoryConfigs:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def create(self, *, name, type, value, description, frequency, is_active) -> int:
        cid = self._s.next_id("configs")
        self._s.configs[cid] = DeductionConfig(
            config_id=cid,
            name=name,
            type=DeductionType(type),
            value=float(value),
            description=description,
            frequency=DeductionFrequency(frequency),
            is_active=bool(is_active),
        )
        return cid

    def update(self, config_id, *, name, type, value, description, frequency, is_active) -> bool:
        if int(config_id) not in self._s.configs:
            return False
        self._s.configs[int(config_id)] = DeductionConfig(
            config_id=int(config_id),
            name=name,
            type=DeductionType(type),
            value=float(value),
            description=description,
            frequency=DeductionFrequency(frequency),
            is_active=bool(is_active),
        )
        return True

    def get_by_id(self, config_id):
        return self._s.configs.get(int(config_id))

    def list_all(self):
        return [self._s.configs[k] for k in sorted(self._s.configs)]

    def list_active(self):
        return [c for c in self.list_all() if c.is_active]

    def existing_ids(self, config_ids):
        return {int(i) for i in config_ids if int(i) in self._s.configs}


class InMemoryAssignments:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def _view(self, student_id: int, config: DeductionConfig) -> StudentDeduction:
        row = self._s.assignments.get((student_id, config.config_id))
        if not row:
            return StudentDeduction(config=config)
        return StudentDeduction(
            config=config,
            student_deduction_id=row["id"],
            applied_count=row["applied_count"],
            last_applied_date=row["last_applied_date"],
        )

    def list_for_student(self, student_id):
        return [self._view(int(student_id), c) for c in InMemoryConfigs(self._s).list_active()]

    def list_attached(self, student_id):
        return [v for v in self.list_for_student(student_id) if v.student_deduction_id is not None]

    def replace_for_student(self, student_id, config_ids, *, applied_at) -> None:
        sid = int(student_id)
        self._s.assignments = {k: v for k, v in self._s.assignments.items() if k[0] != sid}
        for cid in config_ids:
            self._s.assignments[(sid, int(cid))] = {
                "id": self._s.next_id("assignments"),
                "applied_count": 0,
                "last_applied_date": applied_at,
            }


class InMemoryDetails:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def _joined(self, detail: DeductionDetail) -> DeductionDetail:
        student = self._s.students.get(detail.student_id)
        klass = self._s.classes.get(detail.related_class_id) if detail.related_class_id else None
        return replace(
            detail,
            student_name=student.name if student else None,
            student_phone=student.phone if student else None,
            related_class_hours=klass.hours_used if klass else None,
            related_class_date=klass.date if klass else None,
        )

    def create(self, student_id, data: DetailInput, *, created_at) -> int:
        did = self._s.next_id("details")
        self._s.details[did] = DeductionDetail(
            detail_id=did,
            student_id=int(student_id),
            deduction_type=data.deduction_type,
            amount=data.amount,
            description=data.description,
            date=data.date,
            operator=data.operator,
            related_class_id=data.related_class_id,
            created_at=created_at,
        )
        return did

    def update(self, detail_id, data: DetailInput, *, updated_at) -> bool:
        current = self._s.details.get(int(detail_id))
        if not current:
            return False
        self._s.details[current.detail_id] = replace(
            current,
            deduction_type=data.deduction_type,
            amount=data.amount,
            description=data.description,
            date=data.date,
            operator=data.operator,
            related_class_id=data.related_class_id,
            updated_at=updated_at,
        )
        return True

    def delete(self, detail_id) -> bool:
        return self._s.details.pop(int(detail_id), None) is not None

    def get_by_id(self, detail_id):
        detail = self._s.details.get(int(detail_id))
        return self._joined(detail) if detail else None

    def _matching(self, filters: DetailFilter):
        for d in self._s.details.values():
            if filters.student_id is not None and d.student_id != filters.student_id:
                continue
            if filters.deduction_type is not None and d.deduction_type != filters.deduction_type:
                continue
            if filters.start_date is not None and d.date < filters.start_date:
                continue
            if filters.end_date is not None and d.date > filters.end_date:
                continue
            yield d

    def search(self, filters, *, offset=0, limit=None):
        rows = sorted(self._matching(filters), key=lambda d: (d.date, d.created_at, d.detail_id), reverse=True)
        if limit is not None:
            rows = rows[offset: offset + limit]
        return [self._joined(d) for d in rows]

    def count(self, filters) -> int:
        return sum(1 for _ in self._matching(filters))

    def class_belongs_to_student(self, class_id, student_id) -> bool:
        klass = self._s.classes.get(int(class_id))
        return bool(klass and klass.student_id == int(student_id))


# ---------------- reports / logs ----------------
class InMemoryReports:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def period_figures(self, period):
        income = [r for r in self._s.income.values() if _in_range(r.date, period)]
        classes = [c for c in self._s.classes.values() if _in_range(c.date, period)]
        students = [s for s in self._s.students.values() if _in_range(s.created_at.date(), period)]
        return PeriodFigures(
            total_income=sum(r.amount for r in income),
            income_count=len(income),
            total_hours_used=sum(c.hours_used for c in classes),
            class_count=len(classes),
            new_students=len(students),
        )

    def recharge_hours(self, period) -> int:
        return sum(r.hours for r in self._s.income.values() if _in_range(r.date, period))

    def student_totals(self):
        return len(self._s.students), sum(s.remaining_hours for s in self._s.students.values())

    def income_trend(self, *, since):
        months: dict[str, dict] = {}
        for r in self._s.income.values():
            if r.date >= since:
                row = months.setdefault(r.date.strftime("%Y-%m"), {"total_amount": 0.0, "count": 0})
                row["total_amount"] += r.amount
                row["count"] += 1
        return [{"month": m, **months[m]} for m in sorted(months)]

    def hours_trend(self, *, since):
        months: dict[str, dict] = {}
        for c in self._s.classes.values():
            if c.date >= since:
                row = months.setdefault(c.date.strftime("%Y-%m"), {"total_hours": 0, "count": 0})
                row["total_hours"] += c.hours_used
                row["count"] += 1
        return [{"month": m, **months[m]} for m in sorted(months)]

    def student_figures(self, student_id):
        sid = int(student_id)
        income = sorted((r for r in self._s.income.values() if r.student_id == sid), key=lambda r: (r.date, r.income_id))
        return StudentFigures(
            total_income=sum(r.amount for r in income),
            first_income_amount=income[0].amount if income else 0.0,
            total_hours_used=sum(c.hours_used for c in self._s.classes.values() if c.student_id == sid),
            manual_deductions=sum(d.amount for d in self._s.details.values() if d.student_id == sid),
        )

    def manual_deductions_by_type(self, period):
        grouped: dict[str, dict] = {}
        for d in self._s.details.values():
            if _in_range(d.date, period):
                row = grouped.setdefault(d.deduction_type.value, {"amount": 0.0, "count": 0})
                row["amount"] += d.amount
                row["count"] += 1
        return [{"type": t, **grouped[t]} for t in sorted(grouped)]


class InMemoryLogs:
    def __init__(self, store: InMemoryStore, *, fail: bool = False):
        self._s = store
        self.fail = fail

    def create(self, *, operation_type, target_id, target_type, description, user_id) -> int:
        if self.fail:
            raise RuntimeError("operation_logs table is unavailable")
        lid = self._s.next_id("logs")
        self._s.logs.append(
            OperationLog(
                log_id=lid,
                operation_type=operation_type,
                target_id=target_id,
                target_type=target_type,
                description=description,
                user_id=user_id,
                created_at=datetime(2025, 1, 1) + timedelta(seconds=lid),
            )
        )
        return lid

    def list_recent(self, *, limit):
        return sorted(self._s.logs, key=lambda log: log.log_id, reverse=True)[:limit]

    def count_by_type(self):
        counts = Counter(log.operation_type for log in self._s.logs)
        return [{"operation_type": op, "count": n} for op, n in counts.most_common()]


# ---------------- fixtures ----------------
@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def repos(store):
    return {
        "users_repo": InMemoryUsers(store),
        "sessions_repo": InMemorySessions(store),
        "attempts_repo": InMemoryAttempts(store),
        "token_issuer": FakeTokens(),
        "students_repo": InMemoryStudents(store),
        "income_repo": InMemoryIncome(store),
        "configs_repo": InMemoryConfigs(store),
        "assignments_repo": InMemoryAssignments(store),
        "details_repo": InMemoryDetails(store),
        "reports_repo": InMemoryReports(store),
        "logs_repo": InMemoryLogs(store),
    }


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 12, 10, 30)


@pytest.fixture
def add_user(repos):
    users = repos["users_repo"]

    def _add(username: str, role: Role = Role.ADMIN, password: str = "secret123", **extra) -> User:
        uid = users.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            real_name=extra.pop("real_name", username.title()),
            email=extra.pop("email", None),
            phone=extra.pop("phone", None),
        )
        if extra.get("is_active") is False:
            users.set_active(uid, is_active=False)
        return users.get_by_id(uid)

    return _add


@pytest.fixture
def add_config(repos):
    configs = repos["configs_repo"]

    def _add(name, type_, value, frequency=DeductionFrequency.ONCE, is_active=True) -> DeductionConfig:
        cid = configs.create(
            name=name,
            type=DeductionType(type_),
            value=value,
            description=None,
            frequency=DeductionFrequency(frequency),
            is_active=is_active,
        )
        return configs.get_by_id(cid)

    return _add


@pytest.fixture
def app(monkeypatch, repos):
    """Flask app over the in-memory repositories, real JWT signing."""
    from src.training_center.training_center.main import create_app
    from src.training_center.training_center.users.tokens import JWTTokenIssuer

    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.delenv("SETTINGS_MODULE", raising=False)
    container = assemble(**{**repos, "token_issuer": JWTTokenIssuer()})
    flask_app = create_app(container)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(username: str, password: str = "secret123") -> dict:
        resp = client.post("/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['data']['token']}"}

    return _login



@pytest.fixture
def student_factory(repos):
    students = repos["students_repo"]

    def _make(name="Alice", phone="13800000001", *, hours=0, amount=0.0, at: Optional[datetime] = None) -> Student:
        at = at or datetime.now()
        sid, _ = students.create_with_deductions(name=name, phone=phone, applied_at=at)
        if hours:
            students.recharge(sid, amount=amount, hours=hours, on=at.date(), applied_at=at)
        return students.get_by_id(sid)

    return _make
