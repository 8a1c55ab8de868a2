from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from supabase import Client

from core.activation import ActivationService
from core.errors import (
    EmailDispatchError,
    OrganizationSuspended,
    TenantResolutionError,
    Unauthenticated,
    extract_supabase_error,
)
from core.invitations import invite_member
from core.logging_config import logger
from core.permission_helpers import is_super_admin
from core.rate_limiter import access_request_limiter, get_rate_limit_identifier, require_rate_limit
from core.recovery import RecoveryFlagService, get_recovery_service
from core.session import SessionStore, to_identity
from core.tenancy import TenantResolver, find_members_by_email
from core.utils import normalize_email
from dependencies.auth import (
    get_bearer_token,
    get_current_identity,
    get_db,
    get_session_store,
)
from models.auth import (
    AccessRequest,
    ActivationResult,
    ActivationStatus,
    Identity,
    InviteActivationRequest,
    LoginRequest,
    LoginResponse,
    Membership,
    RecoveryResetRequest,
    RecoveryVerifyRequest,
    SelectOrganizationRequest,
    SetupRequest,
)


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)

ACCESS_REQUEST_MESSAGE = "If an account exists with this email, a sign-in link has been sent."


# ============================================================
# Helpers
# ============================================================
def _select_membership(client: Client, identity: Identity, membership: Membership):
    """
    Points the caller's profile at the chosen organization and refreshes the
    cached role from the roster row.
    """
    if membership.is_suspended:
        raise OrganizationSuspended()

    try:
        (
            client.table("profiles")
            .upsert({
                "id": identity.id,
                "organization_id": membership.organization_id,
                "role": membership.role,
            })
            .execute()
        )
    except Exception as e:
        logger.error(f"Profile update on org selection failed for {identity.email}: {extract_supabase_error(e)}")
        raise TenantResolutionError("Could not switch to this organization") from e

    logger.info(f"{identity.email} selected org {membership.organization_id}")


# ============================================================
# LOGIN (SUPABASE AUTH)
# ============================================================
@router.post("/login", response_model=LoginResponse, summary="Authenticate user")
def login(
    payload: LoginRequest,
    client: Client = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    session = store.sign_in(payload.email, payload.password)
    identity = session.identity

    memberships: List[Membership] = TenantResolver(client).memberships(identity.email)
    super_admin = is_super_admin(identity)

    if not memberships and not super_admin:
        store.sign_out(session.access_token)
        raise TenantResolutionError("This account is not a member of any organization")

    selected: Optional[str] = None
    redirect_to: Optional[str] = "/admin" if super_admin and not memberships else None

    if len(memberships) == 1:
        only = memberships[0]
        if only.is_suspended:
            store.sign_out(session.access_token)
            raise OrganizationSuspended()
        _select_membership(client, identity, only)
        selected = only.organization_id
        redirect_to = "/overview"

    return LoginResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        is_super_admin=super_admin,
        organizations=memberships,
        selected_organization_id=selected,
        redirect_to=redirect_to,
    )


# ============================================================
# ORG PICKER
# ============================================================
@router.post("/select-organization", summary="Choose the organization for this session")
def select_organization(
    payload: SelectOrganizationRequest,
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db),
):
    memberships = TenantResolver(client).memberships(identity.email)
    match = next(
        (m for m in memberships if m.organization_id == str(payload.organization_id)),
        None,
    )
    if match is None:
        logger.warning(f"{identity.email} tried to select org {payload.organization_id} without a membership")
        raise TenantResolutionError("You are not a member of this organization")

    _select_membership(client, identity, match)
    return {"success": True, "organization_id": match.organization_id, "redirect_to": "/overview"}


# ============================================================
# LOGOUT (idempotent)
# ============================================================
@router.post("/logout", summary="Sign out")
def logout(
    token: Optional[str] = Depends(get_bearer_token),
    store: SessionStore = Depends(get_session_store),
):
    signed_out = store.sign_out(token)
    return {"success": True, "signed_out": signed_out, "redirect_to": "/login"}


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", summary="Current identity, tenant and activation state")
def read_me(
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
):
    me = {
        "id": identity.id,
        "email": identity.email,
        "is_super_admin": is_super_admin(identity),
        "activation": None,
    }

    try:
        me["activation"] = ActivationService(client, recovery).status(identity)
    except TenantResolutionError as e:
        # Super admins and invitees without metadata have no tenant yet.
        logger.info(f"/auth/me without tenant for {identity.email}: {e.detail}")

    return me


# ============================================================
# LOCKED OUT / REQUEST ACCESS (public, no enumeration)
# ============================================================
@router.post(
    "/request-access",
    summary="Email a sign-in link to a roster address",
    responses={
        200: {"description": "Email sent (or address unknown, for security)"},
        403: {"description": "Organization suspended"},
        429: {"description": "Rate limit exceeded"},
    },
)
def request_access(payload: AccessRequest, request: Request, client: Client = Depends(get_db)):
    email = normalize_email(payload.email)

    require_rate_limit(access_request_limiter, get_rate_limit_identifier(request, email=email))
    logger.info(f"Access request: email={email}, source={get_rate_limit_identifier(request)}")

    try:
        rows = find_members_by_email(client, email)
    except Exception as e:
        logger.error(f"Access request lookup failed for {email}: {extract_supabase_error(e)}")
        return {"success": True, "message": ACCESS_REQUEST_MESSAGE}

    if not rows:
        return {"success": True, "message": ACCESS_REQUEST_MESSAGE}

    organization = TenantResolver(client).get_organization(rows[0]["org_id"])
    if not organization:
        logger.warning(f"Access request for {email}: roster row points at missing org")
        return {"success": True, "message": ACCESS_REQUEST_MESSAGE}

    if organization.get("is_suspended"):
        raise OrganizationSuspended("Organization is suspended")

    try:
        invite_member(client, email, organization)
    except EmailDispatchError as e:
        logger.error(f"Access request email failed for {email}: {e.detail}")

    return {"success": True, "message": ACCESS_REQUEST_MESSAGE}


# ============================================================
# RECOVERY LINK
# ============================================================
@router.post("/recovery/verify", summary="Verify a password-recovery link")
def verify_recovery(
    payload: RecoveryVerifyRequest,
    client: Client = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
):
    try:
        response = client.auth.verify_otp({
            "email": normalize_email(payload.email),
            "token_hash": payload.token_hash,
            "type": "recovery",
        })
    except Exception as e:
        logger.warning(f"Recovery link rejected for {payload.email}: {type(e).__name__}")
        raise Unauthenticated("This reset link is invalid or has expired") from e

    session = getattr(response, "session", None)
    identity = to_identity(getattr(response, "user", None))
    if not session or not getattr(session, "access_token", None) or identity is None:
        raise Unauthenticated("This reset link is invalid or has expired")

    recovery.mark(identity.id)
    store.remember(session.access_token, identity)

    return {
        "access_token": session.access_token,
        "refresh_token": getattr(session, "refresh_token", None),
        "token_type": "bearer",
        "redirect_to": "/overview",
    }


# ============================================================
# ACCOUNT ACTIVATION
# ============================================================
@router.get("/activation", response_model=ActivationStatus, summary="Pending activation step")
def activation_status(
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
):
    return ActivationService(client, recovery).status(identity)


@router.post("/activation/invite", response_model=ActivationResult, summary="Accept invite: set name + password")
def activate_invite(
    payload: InviteActivationRequest,
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
):
    return ActivationService(client, recovery).complete_invite(identity, payload.password, payload.full_name)


@router.post("/activation/recovery", response_model=ActivationResult, summary="Finish password recovery")
def activate_recovery(
    payload: RecoveryResetRequest,
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
):
    return ActivationService(client, recovery).complete_recovery(identity, payload.password)


@router.post("/activation/setup", response_model=ActivationResult, summary="Secure a provisioned account")
def activate_setup(
    payload: SetupRequest,
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
):
    return ActivationService(client, recovery).complete_setup(identity, payload.password, payload.confirm_password)
