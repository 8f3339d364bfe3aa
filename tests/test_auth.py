"""
Tests for registration, the login stub and user listing.
"""

from unittest.mock import patch

import pytest

from auth import hash_password, verify_password
from database import USERS


class TestPasswordHashing:

    def test_hash_differs_from_plaintext(self):
        hashed = hash_password("hunter2")
        assert hashed != "hunter2"
        assert hashed.startswith("$2")

    def test_verify_roundtrip(self):
        hashed = hash_password("hunter2")
        assert verify_password("hunter2", hashed)
        assert not verify_password("hunter3", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_verify_rejects_garbage_hash(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestRegister:

    def test_register_success(self, client, db, register_payload):
        resp = client.post("/register", json=register_payload)

        assert resp.status_code == 201
        body = resp.json()
        assert body["Message"] == "User registered successfully"
        user = body["user"]
        assert set(user) == {"id", "email", "first_name", "last_name"}
        assert user["email"] == "ada@example.com"
        assert user["first_name"] == "Ada"

        stored = db[USERS].find_one({"id": user["id"]})
        assert stored is not None
        assert stored["password_hash"] != register_payload["password"]
        assert verify_password(register_payload["password"], stored["password_hash"])
        assert stored["created_at"] is not None

    def test_password_hash_never_echoed(self, client, register_payload):
        resp = client.post("/register", json=register_payload)
        assert "password" not in resp.text

    @pytest.mark.parametrize("field", ["email", "password", "first_name", "last_name"])
    def test_empty_field_rejected(self, client, db, register_payload, field):
        register_payload[field] = ""
        resp = client.post("/register", json=register_payload)

        assert resp.status_code == 400
        assert resp.json() == {"error": "Incomplete registration details"}
        assert db[USERS].count_documents({}) == 0

    @pytest.mark.parametrize("field", ["email", "password", "first_name", "last_name"])
    def test_missing_field_rejected(self, client, db, register_payload, field):
        del register_payload[field]
        resp = client.post("/register", json=register_payload)

        assert resp.status_code == 400
        assert db[USERS].count_documents({}) == 0

    def test_whitespace_only_field_rejected(self, client, register_payload):
        register_payload["first_name"] = "   "
        resp = client.post("/register", json=register_payload)
        assert resp.status_code == 400

    def test_undecodable_body(self, client, db):
        resp = client.post(
            "/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request"}
        assert db[USERS].count_documents({}) == 0

    @pytest.mark.parametrize("email", ["not-an-email", "Ada <ada@Example.COM>"])
    def test_email_stored_as_given(self, client, db, register_payload, email):
        register_payload["email"] = email
        resp = client.post("/register", json=register_payload)

        assert resp.status_code == 201
        assert resp.json()["user"]["email"] == email
        assert db[USERS].find_one({"id": resp.json()["user"]["id"]})["email"] == email

    def test_duplicate_email_accepted(self, client, db, register_payload):
        first = client.post("/register", json=register_payload)
        second = client.post("/register", json=register_payload)

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["user"]["id"] != second.json()["user"]["id"]
        assert db[USERS].count_documents({"email": "ada@example.com"}) == 2

    def test_hashing_failure_is_500(self, client, db, register_payload):
        with patch("auth.bcrypt.hashpw", side_effect=ValueError("bad salt")):
            resp = client.post("/register", json=register_payload)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to process password"}
        assert db[USERS].count_documents({}) == 0

    def test_store_failure_is_500(self, broken_client, register_payload):
        resp = broken_client.post("/register", json=register_payload)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to create user"}


class TestLogin:

    def test_login_is_a_stub(self, client):
        resp = client.post("/login", json={"email": "x@example.com", "password": "wrong"})
        assert resp.status_code == 200
        assert resp.text == "Login endpoint - to be implemented"

    def test_login_without_body(self, client):
        resp = client.post("/login")
        assert resp.status_code == 200

    def test_login_ignores_malformed_body(self, client):
        resp = client.post(
            "/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 200
        assert resp.text == "Login endpoint - to be implemented"


class TestUsers:

    def test_empty_list(self, client):
        resp = client.get("/users")
        assert resp.status_code == 200
        assert resp.json() == {"users": []}

    def test_lists_registered_users_without_hashes(self, client, register_payload):
        client.post("/register", json=register_payload)
        resp = client.get("/users")

        assert resp.status_code == 200
        users = resp.json()["users"]
        assert len(users) == 1
        assert users[0]["email"] == "ada@example.com"
        assert "password_hash" not in users[0]
        assert "_id" not in users[0]

    def test_store_failure_is_500(self, broken_client):
        resp = broken_client.get("/users")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch users"}
