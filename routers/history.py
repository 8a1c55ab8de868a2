# routers/history.py

from fastapi import APIRouter, Depends, Query

from core.gateways import CommunicationGateway, MemberGateway
from dependencies.auth import RequestContext, requires_page
from models.communication import CommunicationRead


router = APIRouter(
    prefix="/history",
    tags=["History"],
)

PAGE = "History"


# -----------------------------------------------------
# GET /history
# Recent roster joins + sent communications
# -----------------------------------------------------
@router.get("", summary="Activity history")
def get_history(limit: int = Query(10, ge=1, le=100), ctx: RequestContext = Depends(requires_page(PAGE))):
    joins = MemberGateway(ctx.client, ctx.organization_id).recent_joins(limit)
    comms = CommunicationGateway(ctx.client, ctx.organization_id).list(limit=limit)
    return {
        "recent_joins": joins,
        "communications": [CommunicationRead(**c) for c in comms],
    }


# -----------------------------------------------------
# GET /history/communications
# Full email log (one row per recipient)
# -----------------------------------------------------
@router.get("/communications", summary="Email history")
def list_communications(ctx: RequestContext = Depends(requires_page(PAGE))):
    rows = CommunicationGateway(ctx.client, ctx.organization_id).list()
    return {"data": [CommunicationRead(**c) for c in rows]}
