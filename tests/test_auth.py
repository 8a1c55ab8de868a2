# tests/test_auth.py

"""
Tests for authentication, organization selection and account activation
endpoints.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from core.config import settings


@pytest.fixture
def super_admin(monkeypatch):
    monkeypatch.setattr(settings, "SUPER_ADMIN_EMAILS", ["root@example.com"])


def login(client, email, password="correct-horse"):
    return client.post("/auth/login", json={"email": email, "password": password})


# -----------------------------------------------------
# Login
# -----------------------------------------------------
def test_login_single_org_is_selected(client: TestClient, db, make_org, make_user):
    org = make_org("Alpha")
    person = make_user("pat@example.com", org=org, role="Treasurer")

    response = login(client, "Pat@Example.com")

    assert response.status_code == 200
    data = response.json()
    assert data["access_token"] == person.token
    assert data["selected_organization_id"] == org["id"]
    assert data["redirect_to"] == "/overview"
    assert db.rows("profiles", id=person.user.id)[0]["role"] == "Treasurer"


def test_login_multiple_orgs_returns_picker(client: TestClient, db, make_org, make_user):
    alpha = make_org("Alpha")
    beta = make_org("Beta")
    make_user("pat@example.com", org=alpha)
    db.seed("members", org_id=beta["id"], email="pat@example.com", role="admin", status="Active")

    data = login(client, "pat@example.com").json()

    assert data["selected_organization_id"] is None
    assert {o["organization_id"] for o in data["organizations"]} == {alpha["id"], beta["id"]}


def test_login_invalid_credentials(client: TestClient, make_org, make_user):
    make_user("pat@example.com", org=make_org())

    response = login(client, "pat@example.com", "wrongpassword")

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid email or password", "redirect_to": "/login"}


def test_login_without_membership_is_refused(client: TestClient, db, make_user):
    person = make_user("stranger@example.com")

    response = login(client, "stranger@example.com")

    assert response.status_code == 403
    # The session that was just opened is closed again
    assert client.get("/auth/me", headers=person.headers).status_code == 401


def test_login_only_org_suspended(client: TestClient, make_org, make_user):
    make_user("pat@example.com", org=make_org(suspended=True))

    response = login(client, "pat@example.com")

    assert response.status_code == 403
    assert "suspended" in response.json()["detail"]


def test_super_admin_without_membership_goes_to_portal(client: TestClient, super_admin, make_user):
    make_user("root@example.com")

    data = login(client, "root@example.com").json()

    assert data["is_super_admin"] is True
    assert data["redirect_to"] == "/admin"


# -----------------------------------------------------
# Organization picker
# -----------------------------------------------------
def test_select_organization(client: TestClient, db, make_org, make_user):
    alpha = make_org("Alpha")
    beta = make_org("Beta")
    person = make_user("pat@example.com", org=alpha)
    db.seed("members", org_id=beta["id"], email="pat@example.com", role="Member", status="Active")

    response = client.post(
        "/auth/select-organization", json={"organization_id": beta["id"]}, headers=person.headers
    )

    assert response.status_code == 200
    assert db.rows("profiles", id=person.user.id)[0]["organization_id"] == beta["id"]


def test_select_organization_requires_membership(client: TestClient, make_org, make_user):
    person = make_user("pat@example.com", org=make_org("Alpha"))
    other = make_org("Other")

    response = client.post(
        "/auth/select-organization", json={"organization_id": other["id"]}, headers=person.headers
    )

    assert response.status_code == 403


# -----------------------------------------------------
# Logout / me
# -----------------------------------------------------
def test_logout_is_idempotent(client: TestClient, db, make_org, make_user):
    person = make_user("pat@example.com", org=make_org())

    first = client.post("/auth/logout", headers=person.headers)
    second = client.post("/auth/logout", headers=person.headers)

    assert first.json()["signed_out"] is True
    assert second.status_code == 200
    assert second.json()["signed_out"] is False
    assert client.get("/auth/me", headers=person.headers).status_code == 401


def test_logout_survives_provider_error(client: TestClient, db, make_org, make_user):
    person = make_user("pat@example.com", org=make_org())
    db.auth.admin.sign_out.side_effect = Exception("network down")

    response = client.post("/auth/logout", headers=person.headers)

    assert response.status_code == 200
    assert client.get("/overview", headers=person.headers).status_code == 401


def test_logout_without_token(client: TestClient):
    response = client.post("/auth/logout")
    assert response.json() == {"success": True, "signed_out": False, "redirect_to": "/login"}


def test_me_reports_activation_state(client: TestClient, make_org, make_user):
    org = make_org()
    person = make_user("pat@example.com", org=org, setup_complete=False)

    data = client.get("/auth/me", headers=person.headers).json()

    assert data["email"] == "pat@example.com"
    assert data["activation"]["state"] == "NeedsSetup"
    assert data["activation"]["organization_id"] == org["id"]


def test_me_without_tenant(client: TestClient, make_user):
    person = make_user("loner@example.com")
    data = client.get("/auth/me", headers=person.headers).json()
    assert data["activation"] is None


def test_me_requires_token(client: TestClient):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["redirect_to"] == "/login"


# -----------------------------------------------------
# Request access (no account enumeration)
# -----------------------------------------------------
def test_request_access_unknown_email_looks_the_same(client: TestClient, db, make_org, make_user):
    make_user("pat@example.com", org=make_org())

    unknown = client.post("/auth/request-access", json={"email": "nobody@example.com"})
    known = client.post("/auth/request-access", json={"email": "pat@example.com"})

    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()
    assert db.auth.admin.invite_user_by_email.call_count == 1


def test_request_access_invite_carries_org(client: TestClient, db, make_org, make_user):
    org = make_org("Alpha Phi", chapter="North")
    make_user("pat@example.com", org=org, status="Pending")

    client.post("/auth/request-access", json={"email": "PAT@example.com"})

    email, options = db.auth.admin.invite_user_by_email.call_args.args
    assert email == "pat@example.com"
    assert options["data"]["organization_id"] == org["id"]
    assert options["data"]["org_name"] == "Alpha Phi - North"
    assert options["redirect_to"].endswith("/login")


def test_request_access_existing_account_gets_reset_link(client: TestClient, db, make_org, make_user):
    make_user("pat@example.com", org=make_org())
    db.auth.admin.invite_user_by_email.side_effect = Exception(
        "A user with this email address has already been registered"
    )

    response = client.post("/auth/request-access", json={"email": "pat@example.com"})

    assert response.status_code == 200
    assert db.auth.reset_password_for_email.call_args.args[0] == "pat@example.com"


def test_request_access_email_failure_is_not_revealed(client: TestClient, db, make_org, make_user):
    make_user("pat@example.com", org=make_org())
    db.auth.admin.invite_user_by_email.side_effect = Exception("SMTP timeout")

    response = client.post("/auth/request-access", json={"email": "pat@example.com"})

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_request_access_suspended_org(client: TestClient, db, make_org, make_user):
    make_user("pat@example.com", org=make_org(suspended=True))

    response = client.post("/auth/request-access", json={"email": "pat@example.com"})

    assert response.status_code == 403
    assert response.json()["detail"] == "Organization is suspended"
    assert not db.auth.admin.invite_user_by_email.called


def test_request_access_rate_limiting(client: TestClient):
    for _ in range(5):
        response = client.post("/auth/request-access", json={"email": "test@example.com"})
        assert response.status_code == 200

    response = client.post("/auth/request-access", json={"email": "test@example.com"})
    assert response.status_code == 429
    assert response.headers["Retry-After"] == str(settings.ACCESS_REQUEST_WINDOW_SECONDS)

    # Other addresses are counted separately
    assert client.post("/auth/request-access", json={"email": "other@example.com"}).status_code == 200


# -----------------------------------------------------
# Recovery link + activation endpoints
# -----------------------------------------------------
def test_recovery_link_then_reset(client: TestClient, db, recovery, make_org, make_user):
    person = make_user("pat@example.com", org=make_org())
    db.auth.verify_otp.return_value = SimpleNamespace(
        session=SimpleNamespace(access_token=person.token, refresh_token="r"),
        user=person.user,
    )

    verified = client.post(
        "/auth/recovery/verify", json={"email": "pat@example.com", "token_hash": "abc"}
    )
    assert verified.status_code == 200
    assert verified.json()["access_token"] == person.token
    assert db.auth.verify_otp.call_args.args[0]["type"] == "recovery"

    # Dashboard is locked until the reset is finished
    blocked = client.get("/overview", headers=person.headers)
    assert blocked.status_code == 428
    assert blocked.json()["state"] == "NeedsRecovery"

    done = client.post("/auth/activation/recovery", json={"password": "new-password"}, headers=person.headers)
    assert done.status_code == 200
    assert done.json()["replace_history"] is True
    assert recovery.is_set(person.user.id) is False

    assert client.get("/overview", headers=person.headers).status_code == 200


def test_recovery_verify_rejects_bad_link(client: TestClient, db):
    db.auth.verify_otp.side_effect = Exception("Token has expired or is invalid")

    response = client.post(
        "/auth/recovery/verify", json={"email": "pat@example.com", "token_hash": "stale"}
    )

    assert response.status_code == 401


def test_invite_activation_over_http(client: TestClient, db, make_org, make_user):
    org = make_org("Alpha")
    invited = make_user("new@example.com", org=org, status="Pending", with_profile=False)
    invited.user.user_metadata = {"organization_id": org["id"]}

    status = client.get("/auth/activation", headers=invited.headers).json()
    assert status["state"] == "NeedsInvite"

    short = client.post(
        "/auth/activation/invite", json={"password": "short", "full_name": "New Person"}, headers=invited.headers
    )
    assert short.status_code == 400

    done = client.post(
        "/auth/activation/invite",
        json={"password": "long-enough", "full_name": "New Person"},
        headers=invited.headers,
    )
    assert done.status_code == 200
    assert done.json()["redirect_to"] == "/overview"
    assert db.rows("members", id=invited.member["id"])[0]["status"] == "Active"
    assert client.get("/overview", headers=invited.headers).status_code == 200


def test_setup_activation_over_http(client: TestClient, db, make_org, make_user):
    person = make_user("pat@example.com", org=make_org(), setup_complete=False)

    mismatch = client.post(
        "/auth/activation/setup",
        json={"password": "password-one", "confirm_password": "password-two"},
        headers=person.headers,
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"] == "Passwords do not match"

    done = client.post(
        "/auth/activation/setup",
        json={"password": "password-one", "confirm_password": "password-one"},
        headers=person.headers,
    )
    assert done.status_code == 200
    assert client.get("/overview", headers=person.headers).status_code == 200


def test_wrong_activation_step_reports_state(client: TestClient, make_org, make_user):
    person = make_user("pat@example.com", org=make_org())

    response = client.post(
        "/auth/activation/setup",
        json={"password": "password-one", "confirm_password": "password-one"},
        headers=person.headers,
    )

    assert response.status_code == 400
    assert response.json()["state"] == "Ready"
