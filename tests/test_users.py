"""
Tests for profile management and avatar upload
"""

import os


class TestProfile:
    """Test cases for the profile endpoints"""

    def test_get_profile(self, client, make_user):
        user = make_user(role="recipient", name="Meera Shah")

        response = client.get("/api/users/profile")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == user["id"]
        assert data["name"] == "Meera Shah"
        assert data["address"] == "12 MG Road, Pune"
        assert "hashed_password" not in data

    def test_update_profile(self, client, make_user):
        make_user(role="recipient")

        response = client.put("/api/users/profile", json={"name": "Meera S.", "address": "4 Park Street, Kolkata"})
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Profile updated successfully"
        assert data["user"]["name"] == "Meera S."
        assert data["user"]["address"] == "4 Park Street, Kolkata"
        assert data["user"]["phone"] == "+91 98765 43210"

    def test_profile_requires_session(self, client):
        assert client.get("/api/users/profile").status_code == 401
        assert client.put("/api/users/profile", json={"name": "x"}).status_code == 401


class TestAvatar:
    """Test cases for avatar upload"""

    def test_upload_avatar(self, client, make_user, settings):
        make_user(role="donor")

        response = client.post(
            "/api/users/avatar",
            files={"avatar": ("me.png", b"\x89PNG\r\n\x1a\nfake-image-bytes", "image/png")},
        )
        assert response.status_code == 200

        avatar_url = response.json()["avatar_url"]
        assert avatar_url.startswith("/uploads/avatars/")
        assert avatar_url.endswith(".png")

        stored = os.path.join(settings.UPLOAD_DIR, "avatars", os.path.basename(avatar_url))
        assert os.path.exists(stored)

        assert client.get("/api/users/profile").json()["image"] == avatar_url
        assert client.get(avatar_url).status_code == 200

    def test_upload_without_file(self, client, make_user):
        make_user(role="donor")

        response = client.post("/api/users/avatar")
        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_upload_rejects_non_image(self, client, make_user):
        make_user(role="donor")

        response = client.post(
            "/api/users/avatar",
            files={"avatar": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400

    def test_upload_requires_session(self, client):
        response = client.post(
            "/api/users/avatar",
            files={"avatar": ("me.png", b"png", "image/png")},
        )
        assert response.status_code == 401


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
