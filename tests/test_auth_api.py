"""End-to-end tests for the auth and users blueprints through the Flask test client."""
import pytest

COOKIE = "refresh_token"


def register(client, email="a@x.com", password="secret1"):
    return client.post("/api/v1/auth/register", json={"email": email, "password": password})


def login(client, email="a@x.com", password="secret1"):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def auth_header(response):
    return {"Authorization": f"Bearer {response.get_json()['data']['accessToken']}"}


def refresh_cookie(response):
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith(f"{COOKIE}="):
            return header
    return None


class TestRegisterEndpoint:
    def test_register_returns_access_token_and_sets_cookie(self, client):
        response = register(client)

        assert response.status_code == 201
        body = response.get_json()
        assert set(body["data"]) == {"accessToken"}
        assert "refreshToken" not in response.get_data(as_text=True)

        cookie = refresh_cookie(response)
        assert cookie is not None
        assert "HttpOnly" in cookie
        assert "SameSite=Strict" in cookie
        assert "Path=/" in cookie
        assert "Max-Age=604800" in cookie

    def test_duplicate_email_is_409(self, client):
        register(client)

        response = register(client, password="another1")

        assert response.status_code == 409
        assert response.get_json()["error"] == "CONFLICT"

    def test_email_is_normalized(self, client):
        register(client, email="  A@X.com ")

        assert register(client, email="a@x.com").status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"email": "not-an-email", "password": "secret1"},
            {"email": "a@x.com", "password": "short"},
        ],
    )
    def test_invalid_input_is_422(self, client, payload):
        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == 422
        assert response.get_json()["error"] == "VALIDATION_ERROR"


class TestLoginEndpoint:
    def test_wrong_password_and_unknown_email_are_identical(self, client):
        register(client)

        wrong_password = login(client, password="wrong")
        unknown_email = login(client, email="nobody@x.com")

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.get_json() == unknown_email.get_json()
        assert refresh_cookie(wrong_password) is None


class TestSessionFlow:
    def test_register_login_and_access_protected_route(self, client):
        assert register(client).status_code == 201
        assert login(client, password="wrong").status_code == 401

        response = login(client)
        assert response.status_code == 200
        assert refresh_cookie(response) is not None

        me = client.get("/api/v1/users/me", headers=auth_header(response))

        assert me.status_code == 200
        data = me.get_json()["data"]
        assert data["email"] == "a@x.com"
        assert data["userId"]

    def test_protected_route_without_access_token(self, client):
        register(client)

        response = client.get("/api/v1/users/me")

        assert response.status_code == 401
        assert response.get_json()["message"] == "invalid or expired session"

    def test_protected_route_without_refresh_cookie(self, client):
        response = register(client)
        client.delete_cookie(COOKIE)

        me = client.get("/api/v1/users/me", headers=auth_header(response))

        assert me.status_code == 401
        assert me.get_json()["message"] == "invalid or expired session"

    def test_protected_route_goes_through_guard_admit(self, client, app, monkeypatch):
        guard = app.extensions["session_auth"].guard
        original = guard.admit
        calls = []

        def admit(authorization, refresh_token):
            calls.append((authorization, refresh_token))
            return original(authorization, refresh_token)

        monkeypatch.setattr(guard, "admit", admit)
        response = register(client)
        headers = auth_header(response)

        assert client.get("/api/v1/users/me", headers=headers).status_code == 200
        assert calls == [(headers["Authorization"], client.get_cookie(COOKIE).value)]

        rejected = client.get("/api/v1/users/me")

        assert len(calls) == 2
        assert rejected.status_code == 401
        assert rejected.get_json()["message"] == "invalid or expired session"

    def test_refresh_rotates_cookie(self, client, app):
        register(client)
        old_cookie = client.get_cookie(COOKIE).value
        # make sure the new pair gets a different iat
        app.extensions["session_auth"].credentials.codec.clock = _later(seconds=5)

        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 200
        assert "accessToken" in response.get_json()["data"]
        new_cookie = client.get_cookie(COOKIE).value
        assert new_cookie != old_cookie

        client.set_cookie(COOKIE, old_cookie)
        assert client.post("/api/v1/auth/refresh").status_code == 401

    def test_refresh_without_cookie_is_401(self, client):
        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 401

    def test_logout_clears_cookie_and_revokes_refresh(self, client, app):
        response = register(client)
        headers = auth_header(response)
        refresh_token = client.get_cookie(COOKIE).value

        logout = client.post("/api/v1/auth/logout", headers=headers)

        assert logout.status_code == 200
        assert logout.get_json() == {"data": {"success": True}}
        assert client.get_cookie(COOKIE) is None

        client.set_cookie(COOKIE, refresh_token)
        assert client.post("/api/v1/auth/refresh").status_code == 401
        assert client.get("/api/v1/users/me", headers=headers).status_code == 401

        # the access token itself is not revoked
        credentials = app.extensions["session_auth"].credentials
        token = headers["Authorization"].split(" ", 1)[1]
        assert credentials.verify_access_token(token).email == "a@x.com"

    def test_logout_requires_session(self, client):
        assert client.post("/api/v1/auth/logout").status_code == 401


class TestMisc:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "ok"

    def test_unknown_route_is_404_envelope(self, client):
        response = client.get("/api/v1/nope")

        assert response.status_code == 404
        assert response.get_json()["error"] == "NOT_FOUND"


def _later(**kwargs):
    from datetime import datetime, timedelta, timezone

    def clock():
        return datetime.now(timezone.utc) + timedelta(**kwargs)

    return clock
