# routers/events.py

from fastapi import APIRouter, Depends

from core.gateways import EventGateway
from core.logging_config import logger
from dependencies.auth import RequestContext, requires_page
from models.event import EventCreate, EventRead, EventUpdate


router = APIRouter(
    prefix="/events",
    tags=["Events"],
)

PAGE = "Events"


# -----------------------------------------------------
# LIST EVENTS (upcoming first)
# -----------------------------------------------------
@router.get("", summary="List events")
def list_events(ctx: RequestContext = Depends(requires_page(PAGE))):
    rows = EventGateway(ctx.client, ctx.organization_id).list()
    return {
        "data": [EventRead(**r) for r in rows],
        "capabilities": ctx.evaluator.capabilities(PAGE),
    }


# -----------------------------------------------------
# GET ONE
# -----------------------------------------------------
@router.get("/{event_id}", summary="Get event", response_model=EventRead)
def get_event(event_id: str, ctx: RequestContext = Depends(requires_page(PAGE))):
    return EventGateway(ctx.client, ctx.organization_id).get(event_id)


# -----------------------------------------------------
# CREATE
# -----------------------------------------------------
@router.post("", summary="Create event", response_model=EventRead)
def create_event(payload: EventCreate, ctx: RequestContext = Depends(requires_page(PAGE, "create"))):
    row = EventGateway(ctx.client, ctx.organization_id).create(payload.model_dump(mode="json"))
    logger.info(f"Event '{payload.title}' added by {ctx.identity.email}")
    return row


# -----------------------------------------------------
# UPDATE
# -----------------------------------------------------
@router.put("/{event_id}", summary="Update event", response_model=EventRead)
def update_event(
    event_id: str,
    payload: EventUpdate,
    ctx: RequestContext = Depends(requires_page(PAGE, "update")),
):
    fields = payload.model_dump(mode="json", exclude_unset=True)
    return EventGateway(ctx.client, ctx.organization_id).update(event_id, fields)


# -----------------------------------------------------
# DELETE
# -----------------------------------------------------
@router.delete("/{event_id}", summary="Delete event")
def delete_event(event_id: str, ctx: RequestContext = Depends(requires_page(PAGE, "delete"))):
    EventGateway(ctx.client, ctx.organization_id).remove(event_id)
    return {"success": True, "id": event_id}
