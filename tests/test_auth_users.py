"""Tests for authentication, profile provisioning, user administration and push tokens."""

from unittest.mock import patch

import pytest
from fastapi import HTTPException
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from renovahub.auth import get_decoded_token, verify_firebase_token
from renovahub.main import app
from renovahub.models import PushToken, User

SERVICE_AUTH = "renovahub.domain.users.service.firebase_auth"


class TestVerifyToken:
    def test_valid_token(self):
        with patch("renovahub.auth.FIREBASE_PROJECT_ID", "renovahub"), patch(
            "renovahub.auth.get_firebase_app"
        ), patch("renovahub.auth.firebase_auth.verify_id_token", return_value={"uid": "u1"}):
            assert verify_firebase_token("a.b.c") == {"uid": "u1"}

    def test_expired_token(self):
        error = firebase_auth.ExpiredIdTokenError("expired", cause=None)
        with patch("renovahub.auth.FIREBASE_PROJECT_ID", "renovahub"), patch(
            "renovahub.auth.get_firebase_app"
        ), patch("renovahub.auth.firebase_auth.verify_id_token", side_effect=error):
            with pytest.raises(HTTPException) as exc_info:
                verify_firebase_token("a.b.c")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token expired"

    def test_invalid_token(self):
        error = firebase_auth.InvalidIdTokenError("bad signature")
        with patch("renovahub.auth.FIREBASE_PROJECT_ID", "renovahub"), patch(
            "renovahub.auth.get_firebase_app"
        ), patch("renovahub.auth.firebase_auth.verify_id_token", side_effect=error):
            with pytest.raises(HTTPException) as exc_info:
                verify_firebase_token("a.b.c")

        assert exc_info.value.status_code == 401

    def test_firebase_not_configured(self):
        with patch("renovahub.auth.FIREBASE_PROJECT_ID", None):
            with pytest.raises(HTTPException) as exc_info:
                verify_firebase_token("a.b.c")
        assert exc_info.value.status_code == 500

    def test_malformed_bearer_token(self, client, admin_user):
        app.dependency_overrides.pop(get_decoded_token)
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_sub_claim_is_used_as_uid(self, client, admin_user):
        app.dependency_overrides.pop(get_decoded_token)
        with patch("renovahub.auth.verify_firebase_token", return_value={"sub": "admin-uid"}):
            response = client.get("/auth/me", headers={"Authorization": "Bearer a.b.c"})

        assert response.status_code == 200
        assert response.json()["uid"] == "admin-uid"


class TestProvision:
    def test_first_call_creates_profile_with_default_role(self, client, auth_claims, db):
        auth_claims.update(uid="new-uid", email="New.Person@RenovaHub.app", name="New Person")

        response = client.post("/auth/provision")

        body = response.json()
        assert response.status_code == 200
        assert body["email"] == "new.person@renovahub.app"
        assert body["roleName"] == "User"
        assert db.query(User).filter(User.firebase_uid == "new-uid").count() == 1

    def test_is_idempotent_and_keeps_the_role(self, client, admin_user, db):
        first = client.post("/auth/provision", json={"name": "Other"}).json()
        second = client.post("/auth/provision").json()

        assert first["roleName"] == second["roleName"] == "Administrator"
        assert first["name"] == "Admin"
        assert db.query(User).count() == 1

    def test_admin_email_on_another_account_does_not_take_over_the_profile(self, client, auth_claims, admin_user, db):
        """A new UID carrying an existing email never inherits that profile or its role."""
        auth_claims.update(uid="other-uid", email="admin@renovahub.app", email_verified=False)

        response = client.post("/auth/provision")

        assert response.status_code == 409
        assert client.get("/auth/me").status_code == 403
        db.expire_all()
        assert db.query(User).filter(User.firebase_uid == "admin-uid").one().role_id == "01"
        assert db.query(User).filter(User.firebase_uid == "other-uid").count() == 0

    def test_token_without_email(self, client, auth_claims):
        auth_claims.update(uid="phone-uid", email=None)
        assert client.post("/auth/provision").status_code == 400


class TestMe:
    def test_admin(self, client, admin_user):
        body = client.get("/auth/me").json()
        assert body["roleName"] == "Administrator"
        assert body["isAdmin"] is True

    def test_regular_user(self, client, auth_claims, regular_user):
        auth_claims["uid"] = "user-uid"
        body = client.get("/auth/me").json()
        assert body["roleName"] == "User"
        assert body["isAdmin"] is False

    def test_roles_listing(self, client, admin_user):
        roles = client.get("/roles").json()
        assert roles == [{"id": "01", "name": "Administrator"}, {"id": "02", "name": "User"}]


class TestPushTokens:
    def test_register_twice(self, client, admin_user):
        first = client.post("/users/me/push-tokens", json={"token": "fcm-1"}).json()
        second = client.post("/users/me/push-tokens", json={"token": "fcm-1"}).json()

        assert first["message"] == "Token registered"
        assert second["message"] == "Token already registered"

    def test_token_moves_to_the_new_owner(self, client, admin_user, regular_user, add_push_token, db):
        add_push_token(regular_user, "shared-device")

        client.post("/users/me/push-tokens", json={"token": "shared-device"})

        token = db.query(PushToken).filter(PushToken.token == "shared-device").one()
        assert token.user_id == admin_user.id

    def test_remove(self, client, admin_user, add_push_token, db):
        add_push_token(admin_user, "fcm-1")

        response = client.request("DELETE", "/users/me/push-tokens", json={"token": "fcm-1"})

        assert response.status_code == 200
        assert db.query(PushToken).count() == 0

    def test_remove_someone_elses_token(self, client, admin_user, regular_user, add_push_token):
        add_push_token(regular_user, "ana-phone")
        response = client.request("DELETE", "/users/me/push-tokens", json={"token": "ana-phone"})
        assert response.status_code == 404

    def test_blank_token(self, client, admin_user):
        assert client.post("/users/me/push-tokens", json={"token": "  "}).status_code == 422


class TestUserAdmin:
    def test_list_requires_admin(self, client, auth_claims, regular_user):
        auth_claims["uid"] = "user-uid"
        assert client.get("/users").status_code == 403

    def test_list(self, client, admin_user, regular_user, add_push_token):
        add_push_token(regular_user, "ana-phone")

        body = client.get("/users").json()

        by_email = {u["email"]: u for u in body}
        assert by_email["ana@renovahub.app"]["pushTokenCount"] == 1
        assert by_email["admin@renovahub.app"]["roleId"] == "01"

    def test_create_user(self, client, admin_user):
        record = firebase_auth.UserRecord({"localId": "firebase-new"})
        with patch(f"{SERVICE_AUTH}.create_user", return_value=record) as create:
            response = client.post(
                "/users",
                json={"email": "Luis@RenovaHub.app", "password": "secret1", "name": "Luis", "roleId": "02"},
            )

        assert response.status_code == 200
        assert response.json()["uid"] == "firebase-new"
        assert response.json()["email"] == "luis@renovahub.app"
        assert create.call_args.kwargs["email"] == "luis@renovahub.app"

    def test_create_existing_email(self, client, admin_user):
        error = firebase_auth.EmailAlreadyExistsError("exists", cause=None, http_response=None)
        with patch(f"{SERVICE_AUTH}.create_user", side_effect=error):
            response = client.post(
                "/users", json={"email": "ana@renovahub.app", "password": "secret1", "name": "Ana"}
            )
        assert response.status_code == 409

    def test_create_with_unknown_role(self, client, admin_user):
        with patch(f"{SERVICE_AUTH}.create_user") as create:
            response = client.post(
                "/users", json={"email": "x@renovahub.app", "password": "secret1", "roleId": "99"}
            )
        assert response.status_code == 400
        create.assert_not_called()

    def test_short_password(self, client, admin_user):
        response = client.post("/users", json={"email": "x@renovahub.app", "password": "123"})
        assert response.status_code == 422

    def test_change_role(self, client, admin_user, regular_user):
        response = client.patch("/users/user-uid/role", json={"roleId": "01"})
        assert response.json()["roleName"] == "Administrator"

    def test_delete_user(self, client, admin_user, regular_user, db):
        with patch(f"{SERVICE_AUTH}.delete_user") as delete:
            response = client.delete("/users/user-uid")

        assert response.status_code == 200
        delete.assert_called_once()
        assert db.query(User).count() == 1

    def test_delete_user_missing_in_firebase(self, client, admin_user, regular_user, db):
        error = firebase_auth.UserNotFoundError("gone")
        with patch(f"{SERVICE_AUTH}.delete_user", side_effect=error):
            response = client.delete("/users/user-uid")

        assert response.status_code == 200
        assert db.query(User).count() == 1

    def test_delete_firebase_failure(self, client, admin_user, regular_user):
        error = firebase_exceptions.UnavailableError("down")
        with patch(f"{SERVICE_AUTH}.delete_user", side_effect=error):
            response = client.delete("/users/user-uid")
        assert response.status_code == 500

    def test_cannot_delete_self(self, client, admin_user):
        response = client.delete("/users/admin-uid")
        assert response.status_code == 400
