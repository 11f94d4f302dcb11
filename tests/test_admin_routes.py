"""
tests/test_admin_routes.py -- Integration tests for /api/admin/users.

Coverage:
  - Access control: 401 without a session, 403 admin_required for a regular
    user, 403 account_disabled for a deactivated admin
  - List: every user, no password fields
  - Create: pending by default for regular users, active for admins,
    duplicate email
  - Update: role and isActive, last admin cannot be demoted
  - Activate/deactivate: idempotent, 404 for a missing id
  - Delete: regular users and non-last admins; the last admin is protected
"""

from __future__ import annotations

from auth.models import ROLE_ADMIN, ROLE_USER, User
from auth.tokens import create_session_token, hash_password

EN = {"Cookie": "i18nextLng=en"}


def _insert(ctx, email: str, role: str = ROLE_USER, is_active: bool = True) -> int:
    return ctx.store.create_user(
        User(email=email, hashed_password=hash_password("secret123", rounds=4), role=role, is_active=is_active)
    )


class TestAccessControl:
    def test_no_session(self, api_client) -> None:
        resp = api_client.client.get("/api/admin/users")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_regular_user(self, api_client) -> None:
        resp = api_client.client.get("/api/admin/users", headers={**api_client.user_headers, **EN})
        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["code"] == "admin_required"
        assert error["message"] == "Admin privileges required"

    def test_regular_user_cannot_mutate(self, api_client) -> None:
        client = api_client.client
        headers = api_client.user_headers
        target = api_client.user_id
        body = {"email": "x@x.com", "password": "abcdef"}
        assert client.post("/api/admin/users", json=body, headers=headers).status_code == 403
        assert client.post(f"/api/admin/users/{target}/deactivate", headers=headers).status_code == 403
        assert client.delete(f"/api/admin/users/{target}", headers=headers).status_code == 403
        assert api_client.store.get_by_email("x@x.com") is None

    def test_deactivated_admin(self, api_client) -> None:
        uid = _insert(api_client, "off-admin@x.com", role=ROLE_ADMIN, is_active=False)
        resp = api_client.client.get("/api/admin/users", headers=api_client.auth(create_session_token(uid)))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "account_disabled"


class TestListUsers:
    def test_lists_every_user_without_passwords(self, api_client) -> None:
        resp = api_client.client.get("/api/admin/users", headers=api_client.admin_headers)
        assert resp.status_code == 200
        users = resp.json()
        emails = {u["email"] for u in users}
        assert {"admin@example.com", "user@example.com"} <= emails
        for user in users:
            assert set(user) == {"id", "email", "name", "role", "isActive", "createdAt", "updatedAt", "lastLogin"}


class TestCreateUser:
    def test_regular_user_is_pending(self, api_client) -> None:
        resp = api_client.client.post(
            "/api/admin/users",
            json={"email": "pending@x.com", "password": "abcdef", "name": "Pending"},
            headers=api_client.admin_headers,
        )
        assert resp.status_code == 201, resp.text
        user = resp.json()["user"]
        assert user["role"] == "user"
        assert user["isActive"] is False
        assert "password" not in resp.text.lower()

    def test_admin_is_active(self, api_client) -> None:
        resp = api_client.client.post(
            "/api/admin/users",
            json={"email": "second-admin@x.com", "password": "abcdef", "role": "admin"},
            headers=api_client.admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["user"]["isActive"] is True

    def test_unknown_role(self, api_client) -> None:
        resp = api_client.client.post(
            "/api/admin/users",
            json={"email": "root@x.com", "password": "abcdef", "role": "root"},
            headers=api_client.admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_multibyte_password_over_72_bytes(self, api_client) -> None:
        resp = api_client.client.post(
            "/api/admin/users",
            json={"email": "wide@x.com", "password": "密" * 30},
            headers={**api_client.admin_headers, **EN},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Password must be at most 72 bytes"
        assert api_client.store.get_by_email("wide@x.com") is None

    def test_duplicate_email(self, api_client) -> None:
        resp = api_client.client.post(
            "/api/admin/users",
            json={"email": "user@example.com", "password": "abcdef"},
            headers=api_client.admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "email_exists"


class TestUpdateUser:
    def test_role_and_activation(self, api_client) -> None:
        uid = _insert(api_client, "promote-me@x.com", is_active=False)
        resp = api_client.client.put(
            f"/api/admin/users/{uid}",
            json={"role": "admin", "isActive": True},
            headers=api_client.admin_headers,
        )
        assert resp.status_code == 200, resp.text
        user = resp.json()["user"]
        assert user["role"] == "admin"
        assert user["isActive"] is True

    def test_missing_user(self, api_client) -> None:
        resp = api_client.client.put("/api/admin/users/99999", json={"name": "Ghost"}, headers=api_client.admin_headers)
        assert resp.status_code == 404


class TestActivation:
    def test_activate_and_deactivate_are_idempotent(self, api_client) -> None:
        client = api_client.client
        uid = _insert(api_client, "toggle@x.com", is_active=False)
        for _ in range(2):
            resp = client.post(f"/api/admin/users/{uid}/activate", headers=api_client.admin_headers)
            assert resp.status_code == 200
            assert resp.json()["user"]["isActive"] is True
        for _ in range(2):
            resp = client.post(f"/api/admin/users/{uid}/deactivate", headers=api_client.admin_headers)
            assert resp.status_code == 200
            assert resp.json()["user"]["isActive"] is False

    def test_activated_user_can_log_in(self, api_client) -> None:
        client = api_client.client
        uid = _insert(api_client, "late@x.com", is_active=False)
        creds = {"email": "late@x.com", "password": "secret123"}
        assert client.post("/api/auth/login", json=creds).status_code == 403
        client.post(f"/api/admin/users/{uid}/activate", headers=api_client.admin_headers)
        assert client.post("/api/auth/login", json=creds).status_code == 200

    def test_missing_user(self, api_client) -> None:
        resp = api_client.client.post("/api/admin/users/99999/activate", headers=api_client.admin_headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"


class TestDeleteUser:
    def test_delete_regular_user(self, api_client) -> None:
        uid = _insert(api_client, "doomed@x.com")
        resp = api_client.client.delete(f"/api/admin/users/{uid}", headers=api_client.admin_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"]
        assert body["user"]["id"] == uid
        assert api_client.store.get_by_id(uid) is None

    def test_delete_missing_user(self, api_client) -> None:
        resp = api_client.client.delete("/api/admin/users/99999", headers=api_client.admin_headers)
        assert resp.status_code == 404

    def test_delete_non_last_admin(self, api_client) -> None:
        uid = _insert(api_client, "spare-admin@x.com", role=ROLE_ADMIN)
        resp = api_client.client.delete(f"/api/admin/users/{uid}", headers=api_client.admin_headers)
        assert resp.status_code == 200

    def test_last_admin_is_protected(self, api_client) -> None:
        store = api_client.store
        for user in store.list_users():
            if user.is_admin and user.id != api_client.admin_id:
                store.delete_user(user.id)
        assert store.count_admins() == 1

        client = api_client.client
        resp = client.delete(f"/api/admin/users/{api_client.admin_id}", headers={**api_client.admin_headers, **EN})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "last_admin"
        assert error["message"] == "Cannot delete the last admin user"
        assert store.get_by_id(api_client.admin_id) is not None

        demote = client.put(
            f"/api/admin/users/{api_client.admin_id}",
            json={"role": "user"},
            headers=api_client.admin_headers,
        )
        assert demote.status_code == 400
        assert demote.json()["error"]["code"] == "last_admin"
