"""HTTP surface tests: student and admin clients sharing one store"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from jigesh.app import build_services
from jigesh.services.completion import CompletionService
from jigesh.utils.config import Settings
from jigesh.utils.exceptions import CompletionError
from jigesh_web.main import create_app

ADMIN_EMAIL = "admin@jigesh.com"
ADMIN_SECRET = "adminpass"


class EchoCompletion(CompletionService):
    def __init__(self):
        self.error = None

    def complete(self, prompt_context, user_turn, attachment=None, cancel=None):
        if self.error:
            raise CompletionError(self.error)
        yield "Answer: "
        yield user_turn


def _settings(tmp_dir: Path) -> Settings:
    settings = Settings()
    settings.storage.data_dir = str(tmp_dir)
    settings.auth.bcrypt_rounds = 4
    settings.auth.admin_email = ADMIN_EMAIL
    settings.auth.admin_secret = ADMIN_SECRET
    settings.logging.file_path = None
    return settings


@pytest.fixture
def completion():
    return EchoCompletion()


@pytest.fixture
def app(tmp_path, completion):
    services = build_services(_settings(tmp_path), completion=completion)
    return create_app(services)


@pytest.fixture
def student_client(app):
    client = TestClient(app)
    res = client.post("/auth/register", data={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 201, res.text
    res = client.post(
        "/auth/profile",
        json={"display_name": "Rahim", "institution": "Dhaka College", "track": "12"},
    )
    assert res.status_code == 200, res.text
    return client


@pytest.fixture
def admin_client(app):
    # Separate client so we don't reuse the student's cookie
    client = TestClient(app)
    res = client.post("/auth/login", data={"email": ADMIN_EMAIL, "password": ADMIN_SECRET})
    assert res.status_code == 200, res.text
    return client


def test_register_sets_client_cookie_and_me(student_client):
    assert student_client.cookies.get("jigesh_client")
    me = student_client.get("/auth/me").json()
    assert me["email"] == "a@x.com"
    assert me["profile_complete"] is True
    assert "credential_secret" not in me


def test_duplicate_register_conflict(app, student_client):
    other = TestClient(app)
    res = other.post("/auth/register", data={"email": "A@X.com", "password": "x"})
    assert res.status_code == 409


def test_invalid_login(app):
    client = TestClient(app)
    res = client.post("/auth/login", data={"email": ADMIN_EMAIL, "password": "wrong-password"})
    assert res.status_code == 401


def test_logout_ends_session(student_client):
    assert student_client.post("/auth/logout").json() == {"status": "success"}
    assert student_client.get("/auth/me").status_code == 401


def test_chat_consumes_quota(student_client):
    res = student_client.post("/chat", json={"question": "What is F=ma?"})
    assert res.status_code == 200, res.text
    assert res.json() == {"text": "Answer: What is F=ma?", "remaining": 49}
    assert student_client.get("/quota").json()["remaining"] == 49


def test_chat_failure_mapped_without_quota(student_client, completion):
    completion.error = CompletionError.RATE_LIMITED
    res = student_client.post("/chat", json={"question": "What is F=ma?"})
    assert res.status_code == 429
    assert res.json()["kind"] == "rate_limited"
    assert student_client.get("/quota").json()["remaining"] == 50


def test_chat_requires_profile(app):
    client = TestClient(app)
    client.post("/auth/register", data={"email": "b@x.com", "password": "secret1"})
    res = client.post("/chat", json={"question": "Hi"})
    assert res.status_code == 409


def test_payment_approval_flow(student_client, admin_client):
    res = student_client.post("/payments", json={"plan": "three_month", "transaction_ref": "TRX1"})
    assert res.status_code == 201, res.text
    payment = res.json()
    assert payment["amount"] == 50
    assert payment["status"] == "pending"

    pending = admin_client.get("/admin/payments").json()
    assert [p["id"] for p in pending] == [payment["id"]]

    decided = admin_client.post(
        f"/admin/payments/{payment['id']}/decision", json={"decision": "approved"}
    ).json()
    assert decided["applied"] is True

    again = admin_client.post(
        f"/admin/payments/{payment['id']}/decision", json={"decision": "approved"}
    ).json()
    assert again["applied"] is False

    me = student_client.get("/auth/me").json()
    assert me["is_premium"] is True
    assert me["premium_plan"] == "three_month"
    assert student_client.get("/quota").json()["remaining"] == "unlimited"

    stats = admin_client.get("/admin/stats").json()
    assert stats["total_revenue"] == 50
    assert stats["premium_count"] == 1
    assert stats["total_students"] == 1


def test_suspension_logs_out_student(student_client, admin_client):
    me = student_client.get("/auth/me").json()
    res = admin_client.post(f"/admin/accounts/{me['id']}/suspension")
    assert res.json()["account"]["suspended"] is True

    res = student_client.get("/auth/me")
    assert res.status_code == 403
    assert "suspended" in res.json()["detail"]
    # Session was terminated, not just rejected
    assert student_client.get("/auth/me").status_code == 401

    res = student_client.post("/auth/login", data={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 403


def test_admin_routes_require_admin(student_client):
    assert student_client.get("/admin/stats").status_code == 403


def test_admin_students_list(student_client, admin_client):
    students = admin_client.get("/admin/students").json()
    assert [s["email"] for s in students] == ["a@x.com"]


def test_health(app):
    assert TestClient(app).get("/health").json() == {"status": "ok", "storage_degraded": False}


def test_admin_cannot_suspend_itself(app, admin_client):
    me = admin_client.get("/auth/me").json()
    res = admin_client.post(f"/admin/accounts/{me['id']}/suspension")
    assert res.status_code == 200
    assert res.json() == {"applied": False, "account": None}

    res = TestClient(app).post("/auth/login", data={"email": ADMIN_EMAIL, "password": ADMIN_SECRET})
    assert res.status_code == 200
