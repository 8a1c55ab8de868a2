# tests/test_activation.py

"""
Tests for the account activation state machine and its flows.
"""

import pytest

from core.activation import (
    ActivationService,
    compute_state,
    derive_org_initials,
    org_display_name,
    org_metadata,
    validate_password,
)
from core.errors import ActivationError, PartialActivationError, TenantResolutionError
from models.auth import Identity
from models.enums import ActivationState


# -----------------------------------------------------
# compute_state
# -----------------------------------------------------
@pytest.mark.parametrize(
    "status, setup_complete, flag, expected",
    [
        ("Active", True, True, ActivationState.needs_recovery),
        ("active", False, True, ActivationState.needs_recovery),
        ("Pending", False, True, ActivationState.needs_invite),
        ("Pending", True, False, ActivationState.needs_invite),
        ("Active", False, False, ActivationState.needs_setup),
        ("Active", True, False, ActivationState.ready),
        ("Active", None, False, ActivationState.ready),
        ("Inactive", True, True, ActivationState.ready),
    ],
)
def test_compute_state_precedence(status, setup_complete, flag, expected):
    member = {"status": status}
    profile = {"is_setup_complete": setup_complete}
    assert compute_state(member, profile, flag) == expected


def test_missing_profile_is_not_a_setup_gate():
    assert compute_state({"status": "Active"}, None, False) == ActivationState.ready


# -----------------------------------------------------
# Pure helpers
# -----------------------------------------------------
@pytest.mark.parametrize(
    "name, initials",
    [
        ("Alpha Phi Omega", "AP"),
        ("Omega", "OM"),
        ("Alpha Phi Omega - North Chapter", "AP"),
        ("  beta   gamma ", "BG"),
        ("", "OG"),
        (None, "OG"),
    ],
)
def test_derive_org_initials(name, initials):
    assert derive_org_initials(name) == initials


def test_org_display_name():
    assert org_display_name("Alpha", "North") == "Alpha - North"
    assert org_display_name("Alpha", None) == "Alpha"
    assert org_display_name(None, None) == "Your Organization"


def test_org_metadata_keys():
    meta = org_metadata({"id": "org-1", "name": "Sigma Tau", "chapter": "Beta"})
    assert meta == {
        "organization_id": "org-1",
        "organization_name": "Sigma Tau - Beta",
        "org_name": "Sigma Tau - Beta",
        "org_initials": "ST",
    }


def test_validate_password():
    validate_password("longenough")
    with pytest.raises(ActivationError, match="at least 8"):
        validate_password("short")
    with pytest.raises(ActivationError, match="do not match"):
        validate_password("longenough", "different1")
    with pytest.raises(ActivationError):
        validate_password("")


# -----------------------------------------------------
# Flows
# -----------------------------------------------------
@pytest.fixture
def service(db, recovery):
    return ActivationService(db, recovery)


def identity_for(user, metadata=None):
    return Identity(id=user.id, email=user.email, user_metadata=metadata or user.user_metadata)


def test_invitee_without_profile_resolves_through_invite_metadata(db, service, make_org, make_user):
    org = make_org("Alpha Phi Omega")
    invited = make_user("new@example.com", org=org, status="Pending", with_profile=False)
    identity = identity_for(invited.user, {"organization_id": org["id"]})

    assert service.status(identity).state == ActivationState.needs_invite.value


def test_invitee_without_metadata_has_no_tenant(service, make_org, make_user):
    org = make_org()
    invited = make_user("new@example.com", org=org, status="Pending", with_profile=False)

    with pytest.raises(TenantResolutionError):
        service.status(identity_for(invited.user))


def test_complete_invite_activates_member_and_profile(db, service, make_org, make_user):
    org = make_org("Alpha Phi Omega", chapter="North")
    invited = make_user("new@example.com", org=org, status="Pending", with_profile=False)
    identity = identity_for(invited.user, {"organization_id": org["id"]})

    result = service.complete_invite(identity, "supersecret", "  Jordan Lee ")

    assert result.state == ActivationState.ready.value
    assert result.redirect_to == "/overview"

    member = db.rows("members", id=invited.member["id"])[0]
    assert member["status"] == "Active"
    assert member["full_name"] == "Jordan Lee"

    profile = db.rows("profiles", id=invited.user.id)[0]
    assert profile["organization_id"] == org["id"]
    assert profile["is_setup_complete"] is True

    user_id, attributes = db.auth.admin.update_user_by_id.call_args.args
    assert user_id == invited.user.id
    assert attributes["password"] == "supersecret"
    assert attributes["user_metadata"]["org_initials"] == "AP"


def test_complete_invite_requires_full_name(service, make_org, make_user):
    org = make_org()
    invited = make_user("new@example.com", org=org, status="Pending")
    with pytest.raises(ActivationError, match="Full name"):
        service.complete_invite(identity_for(invited.user), "supersecret", "   ")


def test_complete_invite_partial_failure_is_reported_not_rolled_back(db, service, make_org, make_user):
    org = make_org()
    invited = make_user("new@example.com", org=org, status="Pending", with_profile=False)
    identity = identity_for(invited.user, {"organization_id": org["id"]})
    db.failures[("profiles", "upsert")] = Exception("connection reset")

    with pytest.raises(PartialActivationError):
        service.complete_invite(identity, "supersecret", "Jordan")

    assert db.auth.admin.update_user_by_id.called
    assert db.rows("members", id=invited.member["id"])[0]["status"] == "Active"


def test_complete_invite_rejected_when_not_invited(service, make_org, make_user):
    org = make_org()
    active = make_user("old@example.com", org=org)
    with pytest.raises(ActivationError) as exc:
        service.complete_invite(identity_for(active.user), "supersecret", "Old Timer")
    assert exc.value.state == ActivationState.ready.value


def test_recovery_takes_precedence_and_clears_flag(db, service, recovery, make_org, make_user):
    org = make_org()
    person = make_user("pat@example.com", org=org, setup_complete=False)
    recovery.mark(person.user.id)
    identity = identity_for(person.user)

    assert service.status(identity).state == ActivationState.needs_recovery.value

    result = service.complete_recovery(identity, "brand-new-pass")

    assert result.replace_history is True
    assert recovery.is_set(person.user.id) is False
    assert service.status(identity).state == ActivationState.needs_setup.value


def test_recovery_tolerates_same_password(db, service, recovery, make_org, make_user):
    org = make_org()
    person = make_user("pat@example.com", org=org)
    recovery.mark(person.user.id)
    db.auth.admin.update_user_by_id.side_effect = Exception(
        "New password should be different from the old password."
    )

    service.complete_recovery(identity_for(person.user), "same-old-pass")

    assert recovery.is_set(person.user.id) is False


def test_recovery_failure_keeps_flag(db, service, recovery, make_org, make_user):
    org = make_org()
    person = make_user("pat@example.com", org=org)
    recovery.mark(person.user.id)
    db.auth.admin.update_user_by_id.side_effect = Exception("Password is too weak")

    with pytest.raises(ActivationError, match="too weak"):
        service.complete_recovery(identity_for(person.user), "weakweak")

    assert recovery.is_set(person.user.id) is True


def test_complete_setup_marks_profile(db, service, make_org, make_user):
    org = make_org()
    person = make_user("pat@example.com", org=org, setup_complete=False)

    with pytest.raises(ActivationError, match="do not match"):
        service.complete_setup(identity_for(person.user), "password-one", "password-two")

    result = service.complete_setup(identity_for(person.user), "password-one", "password-one")

    assert result.state == ActivationState.ready.value
    assert db.rows("profiles", id=person.user.id)[0]["is_setup_complete"] is True
