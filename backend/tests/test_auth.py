import time

import jwt
import pytest

from dugsi.errors import DugsiError
from dugsi.services.session_service import JWTSessionResolver, Principal

TEST_SECRET = "unit-test-secret-with-at-least-32-chars"

ADMIN = {
    "first_name": "Hodan",
    "last_name": "Warsame",
    "email": "Admin@Dugsi.so",
    "password": "Str0ng!pass",
}


class TestAccounts:
    def _register(self, client, **overrides):
        return client.post("/api/v1/auth/register", json={**ADMIN, **overrides})

    def _login(self, client, password=ADMIN["password"], **extra):
        return client.post("/api/v1/auth/login", json={
            "email": "admin@dugsi.so", "password": password, **extra,
        })

    def test_register_first_superadmin(self, client):
        r = self._register(client)
        assert r.status_code == 201
        assert r.json() == {"ok": True}

    def test_registration_locked_after_first_account(self, client):
        self._register(client)
        r = self._register(client, email="second@dugsi.so")
        assert r.status_code == 409
        assert "locked" in r.json()["error"]

    def test_weak_password_rejected(self, client):
        r = self._register(client, password="alllowercase1!")
        assert r.status_code == 400
        assert r.json()["ok"] is False
        assert "uppercase" in r.json()["error"]

    def test_invalid_email_rejected(self, client):
        assert self._register(client, email="not-an-email").status_code == 400

    def test_names_are_trimmed_before_length_check(self, client):
        assert self._register(client, first_name=" A ").status_code == 400
        r = self._register(client, first_name="  Hodan  ")
        assert r.status_code == 201

    def test_login_sets_session_cookie(self, client):
        self._register(client)
        r = self._login(client)
        assert r.status_code == 200
        body = r.json()
        assert body["ok"] is True
        assert body["expires_in_seconds"] == 7 * 24 * 3600
        assert "session" in r.cookies
        assert "httponly" in r.headers["set-cookie"].lower()

        me = client.get("/api/v1/auth/me", headers={"Cookie": f"session={body['token']}"})
        assert me.status_code == 200
        user = me.json()["user"]
        assert user["email"] == "admin@dugsi.so"
        assert user["role"] == "superadmin"
        assert "password_hash" not in user

    def test_remember_me_extends_session(self, client):
        self._register(client)
        r = self._login(client, remember=True)
        assert r.json()["expires_in_seconds"] == 30 * 24 * 3600

    def test_bad_password(self, client):
        self._register(client)
        r = self._login(client, password="Wrong!pass1")
        assert r.status_code == 401
        assert r.json() == {"ok": False, "error": "Invalid credentials"}

    def test_unknown_email(self, client):
        r = self._login(client)
        assert r.status_code == 401

    def test_registered_admin_can_upload(self, client):
        self._register(client)
        token = self._login(client).json()["token"]
        r = client.post(
            "/api/v1/documents",
            files={"file": ("p.pdf", b"%PDF-1.4", "application/pdf")},
            data={"subject": "Somali"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert r.status_code == 201

    def test_logout_clears_cookie(self, client):
        r = client.post("/api/v1/auth/logout")
        assert r.status_code == 200
        assert 'session=""' in r.headers["set-cookie"] or "Max-Age=0" in r.headers["set-cookie"]

    def test_me_requires_session(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401


class TestJWTSessionResolver:
    def test_round_trip(self):
        resolver = JWTSessionResolver(TEST_SECRET)
        token = resolver.issue_token(Principal(id="u1", role="admin"), 60)
        principal = resolver.decode(token)
        assert principal == Principal(id="u1", role="admin")
        assert principal.can_upload

    def test_student_cannot_upload(self):
        assert not Principal(id="u2", role="student").can_upload

    def test_expired_token(self):
        resolver = JWTSessionResolver(TEST_SECRET)
        token = jwt.encode(
            {"uid": "u1", "role": "admin", "exp": int(time.time()) - 10},
            TEST_SECRET,
            algorithm="HS256",
        )
        assert resolver.decode(token) is None

    def test_wrong_secret(self):
        token = JWTSessionResolver("another-secret-that-is-long-enough-too").issue_token(
            Principal(id="u1", role="admin"), 60
        )
        assert JWTSessionResolver(TEST_SECRET).decode(token) is None

    def test_missing_claims(self):
        token = jwt.encode({"role": "admin"}, TEST_SECRET, algorithm="HS256")
        assert JWTSessionResolver(TEST_SECRET).decode(token) is None

    @pytest.mark.parametrize("secret", [None, "", "too-short"])
    def test_short_secret_is_a_configuration_error(self, secret):
        with pytest.raises(DugsiError):
            JWTSessionResolver(secret).issue_token(Principal(id="u1", role="admin"), 60)
