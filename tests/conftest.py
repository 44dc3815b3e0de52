"""
Shared fixtures: an application per test backed by in-memory SQLite
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.utils.error_handler import EmailDeliveryError
from main import create_app


class FakeEmailService:
    """Collects outgoing mail instead of talking to SMTP"""

    def __init__(self):
        self.outbox = []
        self.fail = False

    def _deliver(self, kind, to_email, token):
        if self.fail:
            raise EmailDeliveryError()
        self.outbox.append({"kind": kind, "to": to_email, "token": token})

    def send_password_reset_email(self, to_email, name, token):
        self._deliver("reset", to_email, token)

    def send_verification_email(self, to_email, token):
        self._deliver("verify", to_email, token)

    def last_token(self, kind):
        return [m for m in self.outbox if m["kind"] == kind][-1]["token"]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL="sqlite://",
        JWT_SECRET="test-secret",
        BCRYPT_ROUNDS=4,
        RATE_LIMIT_ENABLED=False,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        SMTP_HOST="",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    application = create_app(settings)
    application.state.email_service = FakeEmailService()
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def outbox(app):
    return app.state.email_service


@pytest.fixture
def db_session(client, app):
    """Direct session on the app's database (available once the app started)"""
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(client):
    """Sign up a user; the client's cookie jar then holds that user's session"""
    counter = {"n": 0}

    def _make_user(email=None, role="donor", password="Password123!", name="Test User"):
        counter["n"] += 1
        payload = {
            "name": name,
            "email": email or f"user{counter['n']}@example.com",
            "password": password,
            "role": role,
            "phone": "+91 98765 43210",
            "address": "12 MG Road, Pune",
        }
        response = client.post("/api/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _make_user


def medicine_payload(**overrides):
    data = {
        "name": "Paracetamol",
        "category": "Pain Relief",
        "description": "Strip of 10 tablets",
        "quantity": 20,
        "expiry_date": (datetime.utcnow() + timedelta(days=180)).isoformat(),
        "condition": "new",
        "location": "Pune",
        "packaging": "sealed",
        "dosage_form": "tablet",
        "strength": "500mg",
        "manufacturer": "Acme Pharma",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_medicine(client):
    """List a medicine as the currently signed-in donor"""

    def _make_medicine(**overrides):
        response = client.post("/api/medicines", json=medicine_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _make_medicine
