import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="jobs-marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["OTP_DEBUG"] = "true"
for _name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER", "PHONE_NUMBER"):
    os.environ.pop(_name, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

from app.database import Base, engine, init_db
from app.main import app


def _truncate_all():
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(delete(table))


@pytest.fixture(autouse=True)
def _clean_db():
    init_db()
    _truncate_all()
    yield
    _truncate_all()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    """Register a mobile number and log it in; returns (user_id, auth headers)."""

    def _make_user(mobile_number: str, password: str = "secret123"):
        response = client.post(
            "/api/auth/register",
            json={"mobile_number": mobile_number, "password": password},
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["user_id"]
        response = client.post(
            "/api/auth/login",
            json={"mobile_number": mobile_number, "password": password},
        )
        assert response.status_code == 200, response.text
        headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
        return user_id, headers

    return _make_user
