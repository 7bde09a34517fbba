"""Tests for login, the current-user endpoint, password changes and resets."""

from datetime import timedelta

from employee_manager.models import User
from employee_manager.utils.dates import utcnow
from employee_manager.utils.security import create_access_token, hash_reset_token, verify_password
from tests.conftest import PASSWORD, auth_headers


def test_login_returns_token_usable_for_me(client, employee):
    response = client.post("/auth/login", json={"email": employee.email.upper(), "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == employee.id

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["data"]["email"] == employee.email


def test_login_with_wrong_password(client, employee):
    response = client.post("/auth/login", json={"email": employee.email, "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_login_unknown_user(client):
    response = client.post("/auth/login", json={"email": "nobody@thewebvalue.com", "password": PASSWORD})
    assert response.status_code == 401


def test_garbage_token_rejected(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_update_password(client, db, employee):
    response = client.put(
        "/auth/updatepassword",
        json={"current_password": PASSWORD, "new_password": "brand-new-pass"},
        headers=auth_headers(employee),
    )

    assert response.status_code == 200
    db.expire_all()
    db.refresh(employee)
    assert verify_password("brand-new-pass", employee.hashed_password)


def test_update_password_requires_current_password(client, employee):
    response = client.put(
        "/auth/updatepassword",
        json={"current_password": "wrong", "new_password": "brand-new-pass"},
        headers=auth_headers(employee),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"


def test_health(client):
    assert client.get("/health").json() == {"success": True, "status": "ok"}


def test_token_survives_email_change(client, employee):
    headers = auth_headers(employee)

    renamed = client.put(f"/users/{employee.id}", json={"email": "renamed@thewebvalue.com"}, headers=headers)
    me = client.get("/auth/me", headers=headers)

    assert renamed.status_code == 200
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "renamed@thewebvalue.com"


def test_token_with_non_numeric_subject_rejected(client, employee):
    token = create_access_token({"sub": employee.email})
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


class TestPasswordReset:
    def _request_token(self, client, email_service, user):
        response = client.post("/auth/forgotpassword", json={"email": user.email})
        assert response.status_code == 200
        return email_service.sent[-1]["reset_token"]

    def test_reset_flow(self, client, db, email_service, employee):
        token = self._request_token(client, email_service, employee)

        db.expire_all()
        stored = db.get(User, employee.id)
        assert stored.reset_password_token == hash_reset_token(token)
        assert stored.reset_password_token != token

        response = client.put(f"/auth/resetpassword/{token}", json={"password": "fresh-pass"})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == employee.id
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        login = client.post("/auth/login", json={"email": employee.email, "password": "fresh-pass"})
        assert login.status_code == 200

    def test_token_is_single_use(self, client, email_service, employee):
        token = self._request_token(client, email_service, employee)
        assert client.put(f"/auth/resetpassword/{token}", json={"password": "fresh-pass"}).status_code == 200

        reused = client.put(f"/auth/resetpassword/{token}", json={"password": "other-pass"})

        assert reused.status_code == 400
        assert reused.json()["message"] == "Invalid or expired reset token"

    def test_expired_token_rejected(self, client, db, email_service, employee):
        token = self._request_token(client, email_service, employee)
        db.expire_all()
        stored = db.get(User, employee.id)
        stored.reset_password_expire = utcnow() - timedelta(minutes=1)
        db.commit()

        response = client.put(f"/auth/resetpassword/{token}", json={"password": "fresh-pass"})

        assert response.status_code == 400
        assert client.post("/auth/login", json={"email": employee.email, "password": PASSWORD}).status_code == 200

    def test_unknown_token_rejected(self, client):
        response = client.put("/auth/resetpassword/deadbeef", json={"password": "fresh-pass"})
        assert response.status_code == 400

    def test_unknown_email_gets_same_answer(self, client, email_service, employee):
        known = client.post("/auth/forgotpassword", json={"email": employee.email})
        unknown = client.post("/auth/forgotpassword", json={"email": "ghost@thewebvalue.com"})

        assert unknown.status_code == 200
        assert unknown.json() == known.json()
        assert email_service.kinds() == ["password_reset"]

    def test_failed_email_clears_token(self, client, db, email_service, employee):
        email_service.fail = True

        response = client.post("/auth/forgotpassword", json={"email": employee.email})

        assert response.status_code == 200
        db.expire_all()
        assert db.get(User, employee.id).reset_password_token is None

    def test_short_password_is_a_validation_error(self, client, email_service, employee):
        token = self._request_token(client, email_service, employee)
        response = client.put(f"/auth/resetpassword/{token}", json={"password": "123"})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"
