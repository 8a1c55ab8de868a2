# tests/test_settings.py

"""
Tests for organization settings, the permission manager and the
personal profile / security endpoints.
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def org(make_org):
    return make_org("Alpha Phi Omega")


@pytest.fixture
def president(org, make_user):
    return make_user("prez@example.com", org=org, role="President")


@pytest.fixture
def member(org, make_user):
    return make_user("pat@example.com", org=org, full_name="Pat Doe")


def test_settings_page(client: TestClient, member):
    data = client.get("/settings", headers=member.headers).json()

    assert data["is_privileged"] is False
    assert data["profile"]["email"] == "pat@example.com"
    assert data["profile"]["full_name"] == "Pat Doe"
    assert data["organization"]["name"] == "Alpha Phi Omega"


def test_org_settings_need_privileged_role(client: TestClient, db, org, member, president):
    denied = client.put("/settings/organization", json={"name": "Renamed"}, headers=member.headers)
    allowed = client.put(
        "/settings/organization",
        json={"name": "Renamed", "monthly_fee": 25},
        headers=president.headers,
    )

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["name"] == "Renamed"
    assert db.rows("organizations", id=org["id"])[0]["monthly_fee"] == 25


# -----------------------------------------------------
# Permission manager
# -----------------------------------------------------
def test_permission_matrix_listing(client: TestClient, president, member):
    data = client.get("/settings/permissions", headers=president.headers).json()["data"]

    by_email = {row["email"]: row for row in data}
    assert by_email["prez@example.com"]["is_privileged"] is True
    assert by_email["pat@example.com"]["permissions"]["Events"] == {
        "create": False, "read": True, "update": False, "delete": False,
    }


def test_permission_matrix_hidden_from_members(client: TestClient, member):
    assert client.get("/settings/permissions", headers=member.headers).status_code == 403


def test_toggle_read_then_page_is_denied(client: TestClient, db, president, member):
    response = client.post(
        f"/settings/permissions/{member.member['id']}/toggle",
        json={"page": "Finances", "action": "read"},
        headers=president.headers,
    )

    assert response.status_code == 200
    assert response.json()["permissions"]["Finances"]["read"] is False
    assert db.rows("members", id=member.member["id"])[0]["permissions"]["Finances"]["read"] is False
    assert client.get("/finances", headers=member.headers).status_code == 403


def test_toggle_mutation_grants_all_three(client: TestClient, president, member):
    response = client.post(
        f"/settings/permissions/{member.member['id']}/toggle",
        json={"page": "Events", "action": "delete"},
        headers=president.headers,
    )

    assert response.json()["permissions"]["Events"] == {
        "create": True, "read": True, "update": True, "delete": True,
    }
    created = client.post(
        "/events", json={"title": "Mixer", "start_time": "2030-01-01T18:00:00Z"}, headers=member.headers
    )
    assert created.status_code == 200


def test_toggle_all(client: TestClient, president, member):
    url = f"/settings/permissions/{member.member['id']}/toggle-all"

    on = client.post(url, json={"page": "Documents"}, headers=president.headers).json()
    off = client.post(url, json={"page": "Documents"}, headers=president.headers).json()

    assert set(on["permissions"]["Documents"].values()) == {True}
    assert set(off["permissions"]["Documents"].values()) == {False}


def test_privileged_matrix_is_not_editable(client: TestClient, org, president, make_user):
    admin = make_user("admin@example.com", org=org, role="admin")

    response = client.post(
        f"/settings/permissions/{admin.member['id']}/toggle",
        json={"page": "Finances", "action": "read"},
        headers=president.headers,
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Admins and presidents always have full access"


def test_toggle_unknown_page(client: TestClient, president, member):
    response = client.post(
        f"/settings/permissions/{member.member['id']}/toggle",
        json={"page": "Payroll", "action": "read"},
        headers=president.headers,
    )
    assert response.status_code == 400


def test_toggle_member_of_other_org(client: TestClient, president, make_org, make_user):
    outsider = make_user("out@example.com", org=make_org("Beta"))

    response = client.post(
        f"/settings/permissions/{outsider.member['id']}/toggle",
        json={"page": "Events", "action": "read"},
        headers=president.headers,
    )

    assert response.status_code == 404


# -----------------------------------------------------
# Profile + password
# -----------------------------------------------------
def test_update_profile_writes_profile_then_roster(client: TestClient, db, member):
    response = client.patch(
        "/settings/profile",
        json={"full_name": "Pat Q. Doe", "gpa": 3.75, "major": "History"},
        headers=member.headers,
    )

    assert response.status_code == 200
    assert db.rows("profiles", id=member.user.id)[0]["full_name"] == "Pat Q. Doe"
    row = db.rows("members", id=member.member["id"])[0]
    assert row["full_name"] == "Pat Q. Doe"
    assert row["gpa"] == "3.75"
    assert [q.table for q in db.queries if q.op == "update"] == ["profiles", "members"]


def test_change_password(client: TestClient, db, member):
    mismatch = client.post(
        "/settings/security/password",
        json={"password": "new-password", "confirm_password": "other-password"},
        headers=member.headers,
    )
    assert mismatch.status_code == 400

    response = client.post(
        "/settings/security/password",
        json={"password": "new-password", "confirm_password": "new-password"},
        headers=member.headers,
    )

    assert response.status_code == 200
    user_id, attributes = db.auth.admin.update_user_by_id.call_args.args
    assert user_id == member.user.id
    assert attributes == {"password": "new-password"}
