"""
HTTP tests for /api/auth/login and /api/auth/refresh.
"""

import json
import time

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient

from tests.conftest import EMAIL, PASSWORD, SECRET, USER_ID, USERNAME


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestLoginRoute:
    def test_returns_valid_auth_token(self, client, store):
        res = client.post(
            "/api/auth/login",
            json={"username": USERNAME, "email": EMAIL, "password": PASSWORD},
        )

        assert res.status_code == 200
        body = res.json()
        assert isinstance(body["authToken"], str)

        payload = pyjwt.decode(body["authToken"], SECRET, algorithms=["HS256"])
        assert payload["user"] == {"id": USER_ID, "username": USERNAME, "email": EMAIL}
        assert "password" not in payload["user"]
        assert "password" not in payload
        assert store.records[USERNAME].password_digest not in json.dumps(payload)

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"username": "", "password": PASSWORD},
            {"username": USERNAME, "password": ""},
            {"email": EMAIL, "password": PASSWORD},
        ],
    )
    def test_rejects_missing_credentials(self, client, body):
        res = client.post("/api/auth/login", json=body)
        assert res.status_code == 400
        assert res.json() == {"message": "Bad Request"}

    def test_rejects_non_json_body(self, client):
        res = client.post(
            "/api/auth/login",
            content="username=x",
            headers={"Content-Type": "application/json"},
        )
        assert res.status_code == 400
        assert res.json() == {"message": "Bad Request"}

    def test_rejects_incorrect_username(self, client):
        res = client.post(
            "/api/auth/login", json={"username": "wrongUsername", "password": "password"}
        )
        assert res.status_code == 401
        assert res.json() == {"message": "Unauthorized"}

    def test_rejects_incorrect_username_with_known_email(self, client):
        res = client.post(
            "/api/auth/login",
            json={"username": "wrongUsername", "email": EMAIL, "password": PASSWORD},
        )
        assert res.status_code == 401
        assert res.json() == {"message": "Unauthorized"}

    def test_rejects_incorrect_password(self, client):
        res = client.post(
            "/api/auth/login", json={"username": USERNAME, "password": "wrongPassword"}
        )
        assert res.status_code == 401
        assert res.json() == {"message": "Unauthorized"}


class TestRefreshRoute:
    def _token(self, secret=SECRET, exp=None):
        payload = {
            "user": {"id": USER_ID, "username": USERNAME, "email": EMAIL},
            "sub": USERNAME,
            "exp": exp if exp is not None else int(time.time()) + 60,
        }
        return pyjwt.encode(payload, secret, algorithm="HS256")

    def test_rejects_requests_with_no_credentials(self, client):
        res = client.post("/api/auth/refresh")
        assert res.status_code == 401
        assert res.json() == {"message": "Unauthorized"}

    def test_rejects_non_bearer_scheme(self, client):
        res = client.post("/api/auth/refresh", headers={"Authorization": "Basic abc"})
        assert res.status_code == 401

    def test_rejects_invalid_token(self, client):
        res = client.post(
            "/api/auth/refresh", headers=_bearer(self._token(secret="Incorrect Secret"))
        )
        assert res.status_code == 401

    def test_rejects_expired_token(self, client):
        res = client.post(
            "/api/auth/refresh", headers=_bearer(self._token(exp=int(time.time()) - 10))
        )
        assert res.status_code == 401

    def test_returns_token_with_newer_expiry(self, client):
        token = self._token()
        old = pyjwt.decode(token, SECRET, algorithms=["HS256"])

        res = client.post("/api/auth/refresh", headers=_bearer(token))

        assert res.status_code == 200
        payload = pyjwt.decode(res.json()["authToken"], SECRET, algorithms=["HS256"])
        assert payload["user"] == old["user"]
        assert payload["exp"] > old["exp"]

    def test_login_then_refresh(self, client):
        login = client.post(
            "/api/auth/login", json={"username": USERNAME, "password": PASSWORD}
        )
        res = client.post("/api/auth/refresh", headers=_bearer(login.json()["authToken"]))
        assert res.status_code == 200


class TestMeRoute:
    def test_returns_identity_claim(self, client):
        login = client.post(
            "/api/auth/login", json={"username": USERNAME, "password": PASSWORD}
        )
        res = client.get("/api/auth/me", headers=_bearer(login.json()["authToken"]))
        assert res.status_code == 200
        assert res.json() == {"id": USER_ID, "username": USERNAME, "email": EMAIL}

    def test_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_rejects_token_without_identity(self, client):
        token = pyjwt.encode(
            {"sub": USERNAME, "exp": int(time.time()) + 60}, SECRET, algorithm="HS256"
        )
        res = client.get("/api/auth/me", headers=_bearer(token))
        assert res.status_code == 401
        assert res.json() == {"message": "Unauthorized"}


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert "X-Process-Time" in res.headers


class TestSqlBackedApp:
    def test_startup_connects_store_and_serves_tokens(self, tmp_path):
        from auth.store import SqlCredentialStore
        from config.settings import Settings
        from database import session as db
        from main import create_app

        url = f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}"
        settings = Settings(_env_file=None, jwt_secret=SECRET, database_url=url)
        app = create_app(settings=settings)

        with TestClient(app) as c:
            assert isinstance(app.state.token_service.store, SqlCredentialStore)
            c.portal.call(
                app.state.token_service.store.create_user, USERNAME, EMAIL, PASSWORD
            )

            login = c.post(
                "/api/auth/login",
                json={"username": USERNAME, "email": EMAIL, "password": PASSWORD},
            )
            assert login.status_code == 200
            token = login.json()["authToken"]

            res = c.post("/api/auth/refresh", headers=_bearer(token))
            assert res.status_code == 200
            old = pyjwt.decode(token, SECRET, algorithms=["HS256"])
            new = pyjwt.decode(res.json()["authToken"], SECRET, algorithms=["HS256"])
            assert new["user"] == old["user"]
            assert new["user"]["username"] == USERNAME
            assert new["exp"] > old["exp"]

        assert db._engine is None
