import os
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("JWT_SECRET", "test-secret")
import pytest
from fastapi.testclient import TestClient
import re
import sys
from pathlib import Path

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from mrologix.main import app
from mrologix.config import DatabaseConfig
from mrologix.database import Base, build_engine, build_sessionmaker, get_db
from mrologix.storage import LocalStorage

engine = build_engine(DatabaseConfig(url="sqlite:///./test.db"))
TestingSessionLocal = build_sessionmaker(engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

PIN_PATTERN = re.compile(r"PIN is: (\d+)")


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def storage(tmp_path):
    store = LocalStorage(str(tmp_path / "uploads"))
    app.state.storage = store
    app.state.mailer.outbox.clear()
    yield store


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def last_pin(email: str) -> str:
    for to_email, _subject, text, _html in reversed(app.state.mailer.outbox):
        if to_email == email:
            return PIN_PATTERN.search(text).group(1)
    raise AssertionError(f"No PIN email sent to {email}")


def register_user(client, *, password: str = "secret123", first_name: str = "Test"):
    """
    mrologix: purpose: create and verify a fresh account through the public endpoints
    mrologix: outputs: dict with userId, email, username and password
    mrologix: status: active
    """

    suffix = uuid.uuid4().hex[:8]
    email = f"user-{suffix}@example.com"
    username = f"user{suffix}"
    resp = client.post(
        "/api/register",
        json={
            "firstName": first_name,
            "lastName": "User",
            "username": username,
            "email": email,
            "password": password,
        },
    )
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["userId"]
    verify = client.post("/api/verify", json={"userId": user_id, "pin": last_pin(email)})
    assert verify.status_code == 200, verify.text
    return {"userId": user_id, "email": email, "username": username, "password": password}


def ensure_auth_headers(client, *, first_name: str = "Test"):
    """
    mrologix: purpose: sign a new user in and hand back bearer headers for API tests
    mrologix: depends_on: register_user
    mrologix: outputs: tuple(headers dict, user dict)
    mrologix: status: active
    """

    user = register_user(client, first_name=first_name)
    resp = client.post(
        "/api/signin",
        json={"identifier": user["email"], "password": user["password"]},
    )
    assert resp.status_code == 200, resp.text
    token = resp.cookies.get("token")
    assert token, "signin did not set the session cookie"
    # several users share one client, so tests authenticate by header only
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}, user
