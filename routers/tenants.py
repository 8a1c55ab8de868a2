# routers/tenants.py

import re

from fastapi import APIRouter, Depends
from supabase import Client

from core.errors import AppError, MutationFailed, RecordNotFound, extract_supabase_error, gateway_error
from core.invitations import invite_member
from core.logging_config import logger
from core.permission_helpers import requires_super_admin
from core.utils import sanitize
from dependencies.auth import get_db
from models.auth import Identity
from models.organization import OrganizationCreate, OrganizationRead, OrganizationUpdate


router = APIRouter(
    prefix="/admin/organizations",
    tags=["Tenant Admin"],
)


def generate_slug(name: str) -> str:
    """ "Alpha Phi Omega - North" -> "alpha-phi-omega-north" """
    return re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")


def _get_org(client: Client, org_id: str) -> dict:
    try:
        result = client.table("organizations").select("*").eq("id", org_id).limit(1).execute()
    except Exception as e:
        raise gateway_error(e, "Failed to load organization") from e
    if not result.data:
        raise RecordNotFound("Organization not found")
    return result.data[0]


def _discard_tenant(client: Client, org_id: str):
    """Undo a half-created tenant: roster rows first, then the org."""
    for table, column in (("members", "org_id"), ("organizations", "id")):
        try:
            client.table(table).delete().eq(column, org_id).execute()
        except Exception as e:
            logger.error(f"Cleanup of {table} for org {org_id} failed: {extract_supabase_error(e)}")


# -----------------------------------------------------
# LIST TENANTS
# -----------------------------------------------------
@router.get("", summary="List all organizations")
def list_organizations(
    client: Client = Depends(get_db),
    admin: Identity = Depends(requires_super_admin),
):
    try:
        result = client.table("organizations").select("*").order("created_at", desc=False).execute()
    except Exception as e:
        raise gateway_error(e, "Failed to load organizations") from e
    return {"data": [OrganizationRead(**o) for o in (result.data or [])]}


# -----------------------------------------------------
# REGISTER TENANT (+ admin roster row + invite)
# -----------------------------------------------------
@router.post("", summary="Register organization and invite its admin")
def create_organization(
    payload: OrganizationCreate,
    client: Client = Depends(get_db),
    admin: Identity = Depends(requires_super_admin),
):
    fields = sanitize(payload.model_dump(mode="json"))
    fields["slug"] = generate_slug(payload.name)
    fields["owner_id"] = admin.id
    fields["is_suspended"] = False

    try:
        result = client.table("organizations").insert(fields).execute()
    except Exception as e:
        raise gateway_error(e, "Failed to create organization") from e

    org = (result.data or [None])[0]
    if not org:
        raise MutationFailed("Failed to create organization")

    invite = None
    try:
        if payload.admin_email:
            client.table("members").insert({
                "org_id": org["id"],
                "full_name": payload.admin_name or "Organization Admin",
                "email": payload.admin_email,
                "status": "Pending",
                "role": "admin",
            }).execute()
            invite = invite_member(client, payload.admin_email, org)
    except Exception as e:
        _discard_tenant(client, org["id"])
        if isinstance(e, AppError):
            raise
        raise gateway_error(e, "Failed to register organization admin") from e

    logger.info(f"Tenant {org['id']} ({payload.name}) registered by {admin.email}")
    return {"data": OrganizationRead(**org), "invite": invite}


# -----------------------------------------------------
# UPDATE TENANT
# -----------------------------------------------------
@router.put("/{org_id}", summary="Update organization", response_model=OrganizationRead)
def update_organization(
    org_id: str,
    payload: OrganizationUpdate,
    client: Client = Depends(get_db),
    admin: Identity = Depends(requires_super_admin),
):
    fields = sanitize(payload.model_dump(mode="json", exclude_unset=True), drop=("id",))
    if not fields:
        return _get_org(client, org_id)

    try:
        result = client.table("organizations").update(fields).eq("id", org_id).execute()
    except Exception as e:
        raise gateway_error(e, "Failed to update organization") from e
    if not result.data:
        raise RecordNotFound("Organization not found")
    return result.data[0]


# -----------------------------------------------------
# SUSPEND / REACTIVATE
# -----------------------------------------------------
@router.post("/{org_id}/suspend", summary="Toggle organization suspension", response_model=OrganizationRead)
def toggle_suspension(
    org_id: str,
    client: Client = Depends(get_db),
    admin: Identity = Depends(requires_super_admin),
):
    org = _get_org(client, org_id)
    new_status = not bool(org.get("is_suspended"))

    try:
        result = client.table("organizations").update({"is_suspended": new_status}).eq("id", org_id).execute()
    except Exception as e:
        raise gateway_error(e, "Failed to update suspension status") from e

    logger.warning(f"Tenant {org_id} {'suspended' if new_status else 'reactivated'} by {admin.email}")
    return (result.data or [{**org, "is_suspended": new_status}])[0]


# -----------------------------------------------------
# DELETE TENANT (members/profiles cascade in the database)
# -----------------------------------------------------
@router.delete("/{org_id}", summary="Remove organization")
def delete_organization(
    org_id: str,
    client: Client = Depends(get_db),
    admin: Identity = Depends(requires_super_admin),
):
    try:
        result = client.table("organizations").delete().eq("id", org_id).execute()
    except Exception as e:
        raise gateway_error(e, "Failed to remove organization") from e
    if not result.data:
        raise RecordNotFound("Organization not found")

    logger.warning(f"Tenant {org_id} removed by {admin.email}")
    return {"success": True, "id": org_id}
