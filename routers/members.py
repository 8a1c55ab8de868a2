# routers/members.py

from fastapi import APIRouter, Depends, HTTPException

from core.email_dispatch import send_member_email
from core.errors import ActionForbidden, EmailDispatchError
from core.gateways import MemberGateway
from core.invitations import invite_member
from core.logging_config import logger
from core.permissions import is_privileged
from dependencies.auth import RequestContext, requires_page
from models.enums import MemberStatus
from models.member import MemberCreate, MemberEmailRequest, MemberRead, MemberUpdate


router = APIRouter(
    prefix="/members",
    tags=["Members"],
)

PAGE = "Members"
PRIVILEGED_FIELDS = frozenset({"role", "email", "status"})


# -----------------------------------------------------
# LIST ROSTER
# -----------------------------------------------------
@router.get("", summary="List members")
def list_members(ctx: RequestContext = Depends(requires_page(PAGE))):
    rows = MemberGateway(ctx.client, ctx.organization_id).list()
    return {
        "data": [MemberRead(**r) for r in rows],
        "capabilities": ctx.evaluator.capabilities(PAGE),
    }


# -----------------------------------------------------
# ADD MEMBER (+ invite email)
# -----------------------------------------------------
@router.post("", summary="Add member")
def create_member(payload: MemberCreate, ctx: RequestContext = Depends(requires_page(PAGE, "create"))):
    fields = payload.model_dump(mode="json", exclude={"send_invite"})
    fields["role"] = "Member"
    fields["status"] = MemberStatus.pending.value

    row = MemberGateway(ctx.client, ctx.organization_id).create(fields)
    logger.info(f"Member {row.get('email')} added to org {ctx.organization_id} by {ctx.identity.email}")

    invite = None
    if payload.send_invite:
        try:
            invite = invite_member(ctx.client, row["email"], ctx.tenant.organization)
        except EmailDispatchError as e:
            # The roster row stays; /auth/request-access sends the link again.
            logger.warning(f"Member saved but invite failed for {row['email']}: {e.detail}")
            invite = "failed"

    return {"data": MemberRead(**row), "invite": invite}


# -----------------------------------------------------
# UPDATE MEMBER
# -----------------------------------------------------
@router.put("/{member_id}", summary="Update member", response_model=MemberRead)
def update_member(
    member_id: str,
    payload: MemberUpdate,
    ctx: RequestContext = Depends(requires_page(PAGE, "update")),
):
    fields = payload.model_dump(mode="json", exclude_unset=True)

    gateway = MemberGateway(ctx.client, ctx.organization_id)

    # Role, email and status edits, and any edit of an admin or president
    # row, are reserved for privileged callers.
    if not ctx.evaluator.is_privileged:
        if PRIVILEGED_FIELDS.intersection(fields):
            raise ActionForbidden("Only an admin or president can change role, email or status")
        if is_privileged(gateway.get(member_id).get("role")):
            raise ActionForbidden("Only an admin or president can edit this member")

    return gateway.update(member_id, fields)


# -----------------------------------------------------
# REMOVE MEMBER (revokes their access to this org)
# -----------------------------------------------------
@router.delete("/{member_id}", summary="Remove member")
def delete_member(member_id: str, ctx: RequestContext = Depends(requires_page(PAGE, "delete"))):
    removed = MemberGateway(ctx.client, ctx.organization_id).remove(member_id)
    logger.info(f"Member {removed.get('email')} removed from org {ctx.organization_id} by {ctx.identity.email}")
    return {"success": True, "id": member_id}


# -----------------------------------------------------
# BULK EMAIL
# -----------------------------------------------------
@router.post("/email", summary="Email selected members")
def email_members(
    payload: MemberEmailRequest,
    ctx: RequestContext = Depends(requires_page(PAGE, "update")),
):
    wanted = set(payload.member_ids)
    roster = MemberGateway(ctx.client, ctx.organization_id).list()
    recipients = [m["email"] for m in roster if str(m.get("id")) in wanted and m.get("email")]

    try:
        result = send_member_email(
            ctx.client,
            recipients=recipients,
            subject=payload.subject,
            message=payload.message,
            sender_email=ctx.identity.email,
            sender_name=(ctx.member or {}).get("full_name"),
        )
    except ValueError as e:
        raise HTTPException(400, str(e)) from e

    return {"success": True, "sent": result["sent"]}
