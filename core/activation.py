# core/activation.py

"""
Account activation state machine.

One state per session load, computed from the roster row, the profile row
and the recovery flag with a fixed precedence:

    NEEDS_RECOVERY  >  NEEDS_INVITE  >  NEEDS_SETUP  >  READY

Only one blocking step is ever reported, even when the data would satisfy
several conditions at once.
"""

from dataclasses import dataclass
from typing import Optional

from core.config import settings
from core.errors import (
    ActivationError,
    PartialActivationError,
    extract_supabase_error,
    gateway_error,
)
from core.logging_config import logger
from core.recovery import RecoveryFlagService
from core.tenancy import TenantContext, TenantResolver, find_members_by_email
from models.auth import ActivationResult, ActivationStatus, Identity
from models.enums import ActivationState, MemberStatus


# ============================================================
# Pure helpers
# ============================================================

def member_status(member: Optional[dict]) -> str:
    return ((member or {}).get("status") or "").strip().lower()


def compute_state(member: Optional[dict], profile: Optional[dict], recovery_flag: bool) -> ActivationState:
    status = member_status(member)

    if recovery_flag and status == MemberStatus.active.value.lower():
        return ActivationState.needs_recovery

    if status == MemberStatus.pending.value.lower():
        return ActivationState.needs_invite

    if profile is not None and profile.get("is_setup_complete") is False:
        return ActivationState.needs_setup

    return ActivationState.ready


def validate_password(password: Optional[str], confirm: Optional[str] = None, min_length: Optional[int] = None):
    min_length = min_length or settings.PASSWORD_MIN_LENGTH
    if not password:
        raise ActivationError("All fields are required")
    if len(password) < min_length:
        raise ActivationError(f"Password must be at least {min_length} characters")
    if confirm is not None and password != confirm:
        raise ActivationError("Passwords do not match")


def derive_org_initials(name: Optional[str]) -> str:
    """
    "Alpha Phi Omega"                 -> "AP"
    "Omega"                           -> "OM"
    "Alpha Phi Omega - North Chapter" -> "AP"
    """
    base = (name or "").split("-")[0].strip()
    parts = base.split()
    if len(parts) >= 2:
        return (parts[0][0] + parts[1][0]).upper()
    if parts:
        return parts[0][:2].upper()
    return "OG"


def org_display_name(name: Optional[str], chapter: Optional[str] = None) -> str:
    name = (name or "").strip()
    chapter = (chapter or "").strip()
    if name and chapter:
        return f"{name} - {chapter}"
    return name or "Your Organization"


def org_metadata(organization: dict) -> dict:
    """user_metadata keys the transactional email templates read."""
    full_name = org_display_name(organization.get("name"), organization.get("chapter"))
    return {
        "organization_id": str(organization.get("id")) if organization.get("id") else None,
        "organization_name": full_name,
        "org_name": full_name,
        "org_initials": derive_org_initials(organization.get("name") or "Your Organization"),
    }


# ============================================================
# Service
# ============================================================

@dataclass
class ActivationContext:
    identity: Identity
    tenant: TenantContext
    member: Optional[dict]
    state: ActivationState

    @property
    def profile(self) -> Optional[dict]:
        return self.tenant.profile


class ActivationService:
    def __init__(self, client, recovery: RecoveryFlagService):
        self.client = client
        self.recovery = recovery
        self.resolver = TenantResolver(client)

    def load(self, identity: Identity) -> ActivationContext:
        tenant = self.resolver.resolve_for_activation(identity)
        try:
            rows = find_members_by_email(self.client, identity.email, org_id=tenant.organization_id)
        except Exception as e:
            raise gateway_error(e, "Failed to load roster entry") from e

        member = rows[0] if rows else None
        state = compute_state(member, tenant.profile, self.recovery.is_set(identity.id))
        return ActivationContext(identity=identity, tenant=tenant, member=member, state=state)

    def status(self, identity: Identity) -> ActivationStatus:
        ctx = self.load(identity)
        return ActivationStatus(
            state=ctx.state.value,
            organization_id=ctx.tenant.organization_id,
            member_status=(ctx.member or {}).get("status"),
            is_setup_complete=(ctx.profile or {}).get("is_setup_complete"),
        )

    # -----------------------------------------------------
    # Provider password update
    # -----------------------------------------------------
    def _update_auth_user(self, identity: Identity, password: str, metadata: Optional[dict] = None, *, tolerate_same: bool = False):
        attributes = {"password": password}
        if metadata:
            attributes["user_metadata"] = {**(identity.user_metadata or {}), **metadata}

        try:
            self.client.auth.admin.update_user_by_id(identity.id, attributes)
        except Exception as e:
            message = extract_supabase_error(e)
            if tolerate_same and "different from the old" in message.lower():
                logger.info(f"Password unchanged for {identity.email} (same as before)")
                return
            logger.warning(f"Password update failed for {identity.email}: {message}")
            raise ActivationError(message or "Failed to update password")

    def _require(self, ctx: ActivationContext, expected: ActivationState):
        if ctx.state != expected:
            raise ActivationError(
                "This account is not awaiting that step",
                state=ctx.state.value,
            )

    # -----------------------------------------------------
    # invited → active
    # -----------------------------------------------------
    def complete_invite(self, identity: Identity, password: str, full_name: str) -> ActivationResult:
        validate_password(password)
        full_name = (full_name or "").strip()
        if not full_name:
            raise ActivationError("Full name is required")

        ctx = self.load(identity)
        self._require(ctx, ActivationState.needs_invite)

        self._update_auth_user(identity, password, org_metadata(ctx.tenant.organization))

        # No transaction spans these writes; a failure leaves the password changed.
        try:
            (
                self.client.table("members")
                .update({"status": MemberStatus.active.value, "full_name": full_name})
                .eq("id", ctx.member["id"])
                .eq("org_id", ctx.tenant.organization_id)
                .execute()
            )
            (
                self.client.table("profiles")
                .upsert({
                    "id": identity.id,
                    "organization_id": ctx.tenant.organization_id,
                    "full_name": full_name,
                    "role": ctx.member.get("role"),
                    "is_setup_complete": True,
                })
                .execute()
            )
        except Exception as e:
            logger.error(f"Activation partially applied for {identity.email}: {extract_supabase_error(e)}")
            raise PartialActivationError() from e

        logger.info(f"Account activated: {identity.email} → org {ctx.tenant.organization_id}")
        return ActivationResult(
            state=ActivationState.ready.value,
            message="Password set successfully! Welcome to the organization.",
            redirect_to="/overview",
        )

    # -----------------------------------------------------
    # active + recovery flag → active (password updated)
    # -----------------------------------------------------
    def complete_recovery(self, identity: Identity, password: str) -> ActivationResult:
        validate_password(password)

        ctx = self.load(identity)
        self._require(ctx, ActivationState.needs_recovery)

        self._update_auth_user(identity, password, org_metadata(ctx.tenant.organization), tolerate_same=True)
        self.recovery.clear(identity.id)

        try:
            (
                self.client.table("profiles")
                .upsert({
                    "id": identity.id,
                    "organization_id": ctx.tenant.organization_id,
                    "role": ctx.member.get("role"),
                })
                .execute()
            )
        except Exception as e:
            logger.error(f"Profile refresh after recovery failed for {identity.email}: {extract_supabase_error(e)}")
            raise PartialActivationError() from e

        return ActivationResult(
            state=ActivationState.ready.value,
            message="Password updated successfully!",
            replace_history=True,
            redirect_to="/overview",
        )

    # -----------------------------------------------------
    # setup-complete gate
    # -----------------------------------------------------
    def complete_setup(self, identity: Identity, password: str, confirm_password: str) -> ActivationResult:
        validate_password(password, confirm_password)

        ctx = self.load(identity)
        self._require(ctx, ActivationState.needs_setup)

        self._update_auth_user(identity, password)

        try:
            (
                self.client.table("profiles")
                .update({"is_setup_complete": True})
                .eq("id", identity.id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Setup flag not saved for {identity.email}: {extract_supabase_error(e)}")
            raise PartialActivationError() from e

        return ActivationResult(
            state=ActivationState.ready.value,
            message="Account secured! Dashboard unlocked.",
            redirect_to="/overview",
        )

    # -----------------------------------------------------
    # Settings → Security (already READY)
    # -----------------------------------------------------
    def change_password(self, identity: Identity, password: str, confirm_password: str) -> None:
        validate_password(password, confirm_password)
        self._update_auth_user(identity, password)
        logger.info(f"Password changed for {identity.email}")
