"""
Unit tests for authentication functionality
"""

from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from app.services.activity_logger import ActivityLogger
from app.models.user import User
from main import create_app


def signup_data(**overrides):
    data = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "password": "TestPass123!",
        "role": "donor",
        "phone": "+91 98765 43210",
        "address": "12 MG Road, Pune",
    }
    data.update(overrides)
    return data


class TestUserRegistration:
    """Test cases for user registration"""

    def test_signup_success(self, client):
        """Test successful user registration"""
        response = client.post("/api/auth/signup", json=signup_data())
        assert response.status_code == 201

        data = response.json()
        assert data["message"] == "User created successfully"
        assert data["user"]["name"] == "Asha Rao"
        assert data["user"]["email"] == "asha@example.com"
        assert data["user"]["role"] == "donor"
        assert "password" not in data["user"]
        assert "hashed_password" not in data["user"]
        assert "token" in response.cookies

    def test_signup_stores_hash_not_password(self, client, db_session):
        client.post("/api/auth/signup", json=signup_data())

        user = db_session.query(User).filter(User.email == "asha@example.com").first()
        assert user.hashed_password != "TestPass123!"
        assert user.hashed_password.startswith("$2")
        assert user.is_verified is False

    def test_signup_normalizes_email(self, client):
        response = client.post("/api/auth/signup", json=signup_data(email="Asha@Example.COM"))
        assert response.status_code == 201
        assert response.json()["user"]["email"] == "asha@example.com"

    def test_signup_duplicate_email(self, client):
        """Test registration with an email that is already taken"""
        assert client.post("/api/auth/signup", json=signup_data()).status_code == 201

        response = client.post("/api/auth/signup", json=signup_data(name="Someone Else"))
        assert response.status_code == 400
        assert response.json() == {"error": "User already exists"}

    def test_signup_missing_fields(self, client):
        data = signup_data()
        del data["phone"]

        response = client.post("/api/auth/signup", json=data)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_signup_rejects_admin_role(self, client):
        response = client.post("/api/auth/signup", json=signup_data(role="admin"))
        assert response.status_code == 400

    def test_signup_short_password(self, client):
        response = client.post("/api/auth/signup", json=signup_data(password="short"))
        assert response.status_code == 400

    def test_signup_invalid_phone(self, client):
        response = client.post("/api/auth/signup", json=signup_data(phone="12"))
        assert response.status_code == 400


class TestUserLogin:
    """Test cases for user login"""

    def test_login_success(self, client):
        client.post("/api/auth/signup", json=signup_data())
        client.cookies.clear()

        response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "TestPass123!"})
        assert response.status_code == 200
        assert response.json()["message"] == "Logged in successfully"
        assert response.json()["user"]["email"] == "asha@example.com"
        assert "token" in response.cookies

    def test_login_sets_last_login(self, client, db_session):
        client.post("/api/auth/signup", json=signup_data())
        client.post("/api/auth/login", json={"email": "asha@example.com", "password": "TestPass123!"})

        user = db_session.query(User).filter(User.email == "asha@example.com").first()
        assert user.last_login is not None

    def test_login_failures_are_indistinguishable(self, client):
        client.post("/api/auth/signup", json=signup_data())
        client.cookies.clear()

        wrong_password = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "nope-nope"})
        unknown_email = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "TestPass123!"})

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials"}

    def test_login_missing_password(self, client):
        response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": ""})
        assert response.status_code == 400

    def test_failed_login_is_audited(self, client, db_session):
        client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "whatever1"})

        entry = ActivityLogger(db_session).get_recent_activities(limit=1)[0]
        assert entry.status_code == 401
        assert entry.endpoint == "/api/auth/login"
        assert entry.error_message == "Failed login attempt"


class TestSession:
    """Test cases for session-authenticated endpoints"""

    def test_me_returns_current_user(self, client):
        client.post("/api/auth/signup", json=signup_data())

        response = client.get("/api/auth/me")
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "asha@example.com"
        assert data["is_verified"] is False
        assert "hashed_password" not in data

    def test_me_without_cookie(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert "error" in response.json()

    def test_me_with_invalid_token(self, client):
        client.cookies.set("token", "not-a-jwt")
        response = client.get("/api/auth/me")
        assert response.status_code == 401

    def test_logout_clears_session(self, client):
        client.post("/api/auth/signup", json=signup_data())

        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}

        assert client.get("/api/auth/me").status_code == 401

    def test_check_email(self, client):
        client.post("/api/auth/signup", json=signup_data())

        assert client.post("/api/auth/check-email", json={"email": "ASHA@example.com"}).json() == {"exists": True}
        assert client.post("/api/auth/check-email", json={"email": "other@example.com"}).json() == {"exists": False}


class TestPasswordChange:
    """Test cases for changing a password while signed in"""

    def test_change_password_success(self, client):
        client.post("/api/auth/signup", json=signup_data())

        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "TestPass123!", "new_password": "NewPass456!"},
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Password updated successfully"}

        client.cookies.clear()
        login = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "NewPass456!"})
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client):
        client.post("/api/auth/signup", json=signup_data())

        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "WrongPass1!", "new_password": "NewPass456!"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Current password is incorrect"}

    def test_change_password_requires_session(self, client):
        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "TestPass123!", "new_password": "NewPass456!"},
        )
        assert response.status_code == 401


class TestPasswordReset:
    """Test cases for the forgot/reset password flow"""

    def test_reset_flow(self, client, outbox, db_session):
        client.post("/api/auth/signup", json=signup_data())
        client.cookies.clear()

        response = client.post("/api/auth/forgot-password", json={"email": "asha@example.com"})
        assert response.status_code == 200
        assert response.json() == {"message": "Password reset email sent successfully"}

        token = outbox.last_token("reset")
        user = db_session.query(User).filter(User.email == "asha@example.com").first()
        assert user.reset_password_token is not None
        assert user.reset_password_token != token
        assert user.reset_password_expire > datetime.utcnow()

        first = client.put("/api/auth/reset-password", json={"token": token, "password": "Brand-New-1"})
        assert first.status_code == 200
        assert first.json() == {"message": "Password reset successful"}

        second = client.put("/api/auth/reset-password", json={"token": token, "password": "Another-One-2"})
        assert second.status_code == 400

        login = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "Brand-New-1"})
        assert login.status_code == 200

    def test_reset_accepts_post(self, client, outbox):
        client.post("/api/auth/signup", json=signup_data())
        client.post("/api/auth/forgot-password", json={"email": "asha@example.com"})

        response = client.post(
            "/api/auth/reset-password",
            json={"token": outbox.last_token("reset"), "password": "Brand-New-1"},
        )
        assert response.status_code == 200

    def test_forgot_password_unknown_email(self, client):
        response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 404

    def test_expired_reset_token(self, client, outbox, db_session):
        client.post("/api/auth/signup", json=signup_data())
        client.post("/api/auth/forgot-password", json={"email": "asha@example.com"})
        token = outbox.last_token("reset")

        user = db_session.query(User).filter(User.email == "asha@example.com").first()
        user.reset_password_expire = datetime.utcnow() - timedelta(minutes=1)
        db_session.commit()

        response = client.put("/api/auth/reset-password", json={"token": token, "password": "Brand-New-1"})
        assert response.status_code == 400

    def test_email_failure_discards_token(self, client, outbox, db_session):
        client.post("/api/auth/signup", json=signup_data())
        outbox.fail = True

        response = client.post("/api/auth/forgot-password", json={"email": "asha@example.com"})
        assert response.status_code == 500
        assert response.json() == {"error": "Error sending password reset email"}

        user = db_session.query(User).filter(User.email == "asha@example.com").first()
        assert user.reset_password_token is None
        assert user.reset_password_expire is None


class TestEmailVerification:
    """Test cases for email verification"""

    def test_verify_flow(self, client, outbox):
        client.post("/api/auth/signup", json=signup_data())

        response = client.post("/api/auth/verify-email", json={"email": "asha@example.com"})
        assert response.status_code == 200

        confirm = client.put("/api/auth/verify-email", json={"token": outbox.last_token("verify")})
        assert confirm.status_code == 200
        assert confirm.json() == {"message": "Email verified successfully"}

        assert client.get("/api/auth/me").json()["is_verified"] is True

        again = client.post("/api/auth/verify-email", json={"email": "asha@example.com"})
        assert again.status_code == 400
        assert again.json() == {"error": "Email already verified"}

    def test_verify_bad_token(self, client):
        response = client.put("/api/auth/verify-email", json={"token": "deadbeef"})
        assert response.status_code == 400


def cookie_attributes(set_cookie):
    """Split a Set-Cookie header into (name, value, {attribute: value})"""
    first, *rest = [part.strip() for part in set_cookie.split(";")]
    name, _, value = first.partition("=")
    attributes = {}
    for part in rest:
        key, _, attr_value = part.partition("=")
        attributes[key.lower()] = attr_value
    return name, value, attributes


class TestSessionCookie:
    """Test cases for the session cookie attributes"""

    def assert_session_cookie(self, response):
        name, value, attributes = cookie_attributes(response.headers["set-cookie"])
        assert name == "token"
        assert value
        assert "httponly" in attributes
        assert attributes["samesite"].lower() == "strict"
        assert attributes["max-age"] == str(30 * 24 * 60 * 60)
        assert attributes["path"] == "/"
        return attributes

    def test_signup_cookie(self, client):
        response = client.post("/api/auth/signup", json=signup_data())

        attributes = self.assert_session_cookie(response)
        assert "secure" not in attributes

    def test_login_cookie(self, client):
        client.post("/api/auth/signup", json=signup_data())
        client.cookies.clear()

        response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "TestPass123!"})

        attributes = self.assert_session_cookie(response)
        assert "secure" not in attributes

    def test_cookie_is_secure_in_production(self, settings):
        production = create_app(settings.model_copy(update={"ENVIRONMENT": "production"}))

        with TestClient(production) as production_client:
            response = production_client.post("/api/auth/signup", json=signup_data())

        assert response.status_code == 201
        attributes = self.assert_session_cookie(response)
        assert "secure" in attributes
