# routers/settings.py

from fastapi import APIRouter, Depends, HTTPException

from core.activation import ActivationService
from core.errors import ActionForbidden, gateway_error
from core.gateways import MemberGateway, OrganizationGateway
from core.logging_config import logger
from core.permission_helpers import requires_privileged
from core.permissions import is_privileged, merged_matrix, toggle_all_for_page, toggle_permission
from core.recovery import RecoveryFlagService, get_recovery_service
from dependencies.auth import RequestContext, require_ready, requires_page
from models.member import MemberPermissions, PermissionToggleAllRequest, PermissionToggleRequest
from models.organization import (
    OrganizationRead,
    OrganizationSettingsUpdate,
    PasswordChangeRequest,
    ProfileUpdate,
)


router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
)


def _permissions_view(member: dict) -> MemberPermissions:
    return MemberPermissions(
        member_id=str(member["id"]),
        full_name=member.get("full_name"),
        email=member["email"],
        role=member.get("role"),
        is_privileged=is_privileged(member.get("role")),
        permissions=merged_matrix(member.get("role"), member.get("permissions")),
    )


# -----------------------------------------------------
# GET /settings
# -----------------------------------------------------
@router.get("", summary="Organization + personal settings")
def get_settings(ctx: RequestContext = Depends(requires_page("Settings"))):
    org = OrganizationGateway(ctx.client, ctx.organization_id).get_own()
    member = ctx.member or {}
    return {
        "organization": OrganizationRead(**org),
        "profile": {
            "full_name": (ctx.tenant.profile or {}).get("full_name") or member.get("full_name"),
            "email": ctx.identity.email,
            "phone": member.get("phone"),
            "major": member.get("major"),
            "gpa": member.get("gpa"),
            "role": ctx.evaluator.role or "Member",
        },
        "is_privileged": ctx.evaluator.is_privileged,
        "capabilities": ctx.evaluator.capabilities("Settings"),
    }


# -----------------------------------------------------
# PUT /settings/organization (admin / president)
# -----------------------------------------------------
@router.put("/organization", summary="Update organization settings", response_model=OrganizationRead)
def update_organization(
    payload: OrganizationSettingsUpdate,
    ctx: RequestContext = Depends(requires_privileged),
):
    fields = payload.model_dump(mode="json", exclude_unset=True)
    row = OrganizationGateway(ctx.client, ctx.organization_id).update_own(fields)
    logger.info(f"Organization {ctx.organization_id} settings updated by {ctx.identity.email}")
    return row


# -----------------------------------------------------
# Permission manager (admin / president)
# -----------------------------------------------------
@router.get("/permissions", summary="Permission matrix for every member")
def list_permissions(ctx: RequestContext = Depends(requires_privileged)):
    roster = MemberGateway(ctx.client, ctx.organization_id).list()
    return {"data": [_permissions_view(m) for m in roster]}


def _load_editable(gateway: MemberGateway, member_id: str) -> dict:
    member = gateway.get(member_id)
    if is_privileged(member.get("role")):
        raise ActionForbidden("Admins and presidents always have full access")
    return member


@router.post(
    "/permissions/{member_id}/toggle",
    summary="Flip one permission cell",
    response_model=MemberPermissions,
)
def toggle_member_permission(
    member_id: str,
    payload: PermissionToggleRequest,
    ctx: RequestContext = Depends(requires_privileged),
):
    gateway = MemberGateway(ctx.client, ctx.organization_id)
    member = _load_editable(gateway, member_id)

    try:
        matrix = toggle_permission(
            merged_matrix(member.get("role"), member.get("permissions")),
            payload.page,
            payload.action,
        )
    except ValueError as e:
        raise HTTPException(400, str(e)) from e

    saved = gateway.save_permissions(member_id, matrix)
    logger.info(f"{ctx.identity.email} toggled {payload.page}:{payload.action} for member {member_id}")
    return _permissions_view(saved)


@router.post(
    "/permissions/{member_id}/toggle-all",
    summary="Grant or revoke every action on one page",
    response_model=MemberPermissions,
)
def toggle_member_page(
    member_id: str,
    payload: PermissionToggleAllRequest,
    ctx: RequestContext = Depends(requires_privileged),
):
    gateway = MemberGateway(ctx.client, ctx.organization_id)
    member = _load_editable(gateway, member_id)

    try:
        matrix = toggle_all_for_page(
            merged_matrix(member.get("role"), member.get("permissions")),
            payload.page,
        )
    except ValueError as e:
        raise HTTPException(400, str(e)) from e

    saved = gateway.save_permissions(member_id, matrix)
    return _permissions_view(saved)


# -----------------------------------------------------
# PATCH /settings/profile
# Profile row first, then the caller's roster entry
# -----------------------------------------------------
@router.patch("/profile", summary="Update own profile")
def update_profile(payload: ProfileUpdate, ctx: RequestContext = Depends(require_ready)):
    fields = payload.model_dump(mode="json", exclude_unset=True)

    if "full_name" in fields:
        try:
            (
                ctx.client.table("profiles")
                .update({"full_name": fields["full_name"]})
                .eq("id", ctx.identity.id)
                .execute()
            )
        except Exception as e:
            raise gateway_error(e, "Failed to update profile") from e

    member = MemberGateway(ctx.client, ctx.organization_id).update(ctx.member["id"], fields)
    return {"success": True, "data": member}


# -----------------------------------------------------
# POST /settings/security/password
# -----------------------------------------------------
@router.post("/security/password", summary="Change own password")
def change_password(
    payload: PasswordChangeRequest,
    ctx: RequestContext = Depends(require_ready),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
):
    ActivationService(ctx.client, recovery).change_password(
        ctx.identity, payload.password, payload.confirm_password
    )
    return {"success": True, "message": "Password updated successfully"}
