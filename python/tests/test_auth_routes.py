"""Integration tests for the auth endpoints.

Tests cover:
- Signup (201, no password hash in the response, duplicate email 409)
- Signup/login validation failures (400)
- Login sets an httpOnly auth cookie; wrong credentials are 401
- Logout clears the cookie
- /me and /verify for authenticated callers
- Malformed JSON bodies
"""

import pytest

from relay.errors import ApiErrorCode
from tests.helpers import DEFAULT_PASSWORD, auth_headers, create_test_user, mint_test_token


class TestSignup:
    def test_signup_creates_user(self, client):
        response = client.post(
            "/api/auth/signup",
            json={"email": "a@x.com", "password": "secret1", "name": "Alice"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User created successfully"
        user = body["user"]
        assert user["email"] == "a@x.com"
        assert user["name"] == "Alice"
        assert {"id", "createdAt", "updatedAt"} <= user.keys()
        assert "password" not in user and "password_hash" not in user

    def test_signup_does_not_log_in(self, client):
        response = client.post("/api/auth/signup", json={"email": "a@x.com", "password": "secret1"})

        assert "set-cookie" not in response.headers

    def test_signup_normalizes_email(self, client, user_store):
        client.post("/api/auth/signup", json={"email": "Mixed@X.com", "password": "secret1"})

        assert user_store.find_by_email("mixed@x.com") is not None

    def test_duplicate_email(self, client):
        client.post("/api/auth/signup", json={"email": "a@x.com", "password": "secret1"})

        response = client.post(
            "/api/auth/signup", json={"email": "A@x.com", "password": "another1"}
        )

        assert response.status_code == 409
        assert response.json()["code"] == ApiErrorCode.E_EMAIL_TAKEN.value
        assert response.json()["error"] == "User with this email already exists"

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "not-an-email", "password": "secret1"},
            {"email": "a@x.com", "password": "123"},
            {"email": "a@x.com", "password": "secret1", "name": "A"},
            {"password": "secret1"},
            {"email": "a@x.com"},
        ],
    )
    def test_invalid_body(self, client, body):
        response = client.post("/api/auth/signup", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
        assert response.json()["code"] == "E_INVALID_REQUEST"
        assert response.json()["details"]


class TestLogin:
    def test_login_sets_cookie(self, client, user_store, settings):
        create_test_user(user_store, email="a@x.com")

        response = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Login successful"}
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("authToken=")
        assert "HttpOnly" in set_cookie
        assert "Path=/" in set_cookie
        assert f"Max-Age={settings.jwt_expires_in_s}" in set_cookie

    def test_login_email_case_insensitive(self, client, user_store):
        create_test_user(user_store, email="a@x.com")

        response = client.post(
            "/api/auth/login", json={"email": "A@X.COM", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200

    def test_cookie_authenticates_later_requests(self, client, user_store):
        principal = create_test_user(user_store, email="a@x.com")
        client.post("/api/auth/login", json={"email": "a@x.com", "password": DEFAULT_PASSWORD})

        response = client.get("/api/auth/verify")

        assert response.status_code == 200
        assert response.json() == {
            "message": "Token is valid",
            "user": {"id": str(principal.id), "email": "a@x.com"},
        }

    @pytest.mark.parametrize(
        ("email", "password"),
        [("a@x.com", "wrong-password"), ("nobody@x.com", DEFAULT_PASSWORD)],
    )
    def test_bad_credentials(self, client, user_store, email, password):
        create_test_user(user_store, email="a@x.com")

        response = client.post("/api/auth/login", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json()["code"] == "E_INVALID_LOGIN"
        assert response.json()["error"] == "Invalid email or password"
        assert "set-cookie" not in response.headers

    def test_missing_password(self, client):
        response = client.post("/api/auth/login", json={"email": "a@x.com"})
        assert response.status_code == 400


class TestLogout:
    def test_logout_clears_cookie(self, client, user_store):
        create_test_user(user_store, email="a@x.com")
        client.post("/api/auth/login", json={"email": "a@x.com", "password": DEFAULT_PASSWORD})

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("authToken=")
        assert "Max-Age=0" in set_cookie

    def test_logout_requires_auth(self, client):
        assert client.post("/api/auth/logout").status_code == 401


class TestProfile:
    def test_me(self, client, user_store):
        principal = create_test_user(user_store, email="a@x.com", name="Alice")

        response = client.get(
            "/api/auth/me", headers=auth_headers(mint_test_token(principal.id, email="a@x.com"))
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == str(principal.id)
        assert user["name"] == "Alice"
        assert "password_hash" not in user

    def test_me_requires_auth(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "Access token required"


class TestMalformedJson:
    def test_malformed_json_body(self, client):
        response = client.post(
            "/api/auth/signup",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "E_INVALID_REQUEST"
        assert response.json()["details"] == "Malformed JSON body"
