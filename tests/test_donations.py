"""
Tests for donations and medicine requests
"""

from datetime import datetime, timedelta


def donation_payload(**overrides):
    data = {
        "medicine": "Amoxicillin 250mg",
        "quantity": 2,
        "expiry_date": (datetime.utcnow() + timedelta(days=90)).isoformat(),
        "condition": "new",
        "location": "Bengaluru",
        "description": "Two unopened strips",
    }
    data.update(overrides)
    return data


def request_payload(**overrides):
    data = {
        "medicine": "Insulin glargine",
        "quantity": 1,
        "urgency": "high",
        "prescription": "/uploads/prescriptions/rx-1.png",
        "location": "Chennai",
    }
    data.update(overrides)
    return data


class TestDonations:
    """Test cases for donation records"""

    def test_create_donation(self, client, make_user):
        donor = make_user(role="donor", email="giver@example.com")

        response = client.post("/api/donations", json=donation_payload())
        assert response.status_code == 201

        data = response.json()
        assert data["message"] == "Donation created successfully"
        assert data["donation"]["status"] == "active"
        assert data["donation"]["donor_id"] == donor["id"]
        assert data["donation"]["donor_email"] == "giver@example.com"

    def test_create_donation_linked_to_medicine(self, client, make_user, make_medicine):
        make_user(role="donor")
        listed = make_medicine()

        response = client.post("/api/donations", json=donation_payload(medicine_id=listed["id"]))
        assert response.status_code == 201
        assert response.json()["donation"]["linked_medicine"]["id"] == listed["id"]

    def test_create_donation_unknown_medicine(self, client, make_user):
        make_user(role="donor")

        response = client.post("/api/donations", json=donation_payload(medicine_id=9999))
        assert response.status_code == 404

    def test_create_donation_missing_field(self, client, make_user):
        make_user(role="donor")
        data = donation_payload()
        del data["location"]

        response = client.post("/api/donations", json=data)
        assert response.status_code == 400

    def test_create_donation_zero_quantity(self, client, make_user):
        make_user(role="donor")

        response = client.post("/api/donations", json=donation_payload(quantity=0))
        assert response.status_code == 400

    def test_create_donation_requires_session(self, client):
        response = client.post("/api/donations", json=donation_payload())
        assert response.status_code == 401

    def test_list_active_donations(self, client, make_user):
        make_user(role="donor")
        client.post("/api/donations", json=donation_payload(medicine="First"))
        client.post("/api/donations", json=donation_payload(medicine="Second"))
        client.cookies.clear()

        response = client.get("/api/donations")
        assert response.status_code == 200
        assert [d["medicine"] for d in response.json()] == ["Second", "First"]

    def test_user_donations(self, client, make_user):
        make_user(role="donor")
        client.post("/api/donations", json=donation_payload(medicine="Someone else's"))
        me = make_user(role="donor")
        client.post("/api/donations", json=donation_payload(medicine="Mine"))

        response = client.get("/api/donations/user")
        assert response.status_code == 200
        donations = response.json()
        assert [d["medicine"] for d in donations] == ["Mine"]
        assert donations[0]["donor_id"] == me["id"]


class TestRequests:
    """Test cases for medicine requests"""

    def test_create_request(self, client, make_user):
        recipient = make_user(role="recipient", email="needs@example.com")

        response = client.post("/api/requests", json=request_payload())
        assert response.status_code == 201

        data = response.json()["request"]
        assert data["status"] == "pending"
        assert data["urgency"] == "high"
        assert data["recipient_id"] == recipient["id"]
        assert data["recipient_email"] == "needs@example.com"

    def test_donor_cannot_request(self, client, make_user):
        make_user(role="donor")

        response = client.post("/api/requests", json=request_payload())
        assert response.status_code == 403

    def test_invalid_urgency(self, client, make_user):
        make_user(role="recipient")

        response = client.post("/api/requests", json=request_payload(urgency="yesterday"))
        assert response.status_code == 400

    def test_user_requests(self, client, make_user):
        make_user(role="recipient")
        client.post("/api/requests", json=request_payload(medicine="Salbutamol"))

        response = client.get("/api/requests/user")
        assert response.status_code == 200
        assert [r["medicine"] for r in response.json()] == ["Salbutamol"]

    def test_user_requests_requires_session(self, client):
        assert client.get("/api/requests/user").status_code == 401
