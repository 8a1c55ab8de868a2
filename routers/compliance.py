# routers/compliance.py

from fastapi import APIRouter, Depends

from core.gateways import ComplianceGateway
from dependencies.auth import RequestContext, requires_page
from models.compliance import ComplianceCreate, ComplianceRead, ComplianceUpdate


router = APIRouter(
    prefix="/compliance",
    tags=["Compliance"],
)

PAGE = "Compliance"


# -----------------------------------------------------
# LIST TASKS
# Pending tasks past due are flipped to Overdue first.
# -----------------------------------------------------
@router.get("", summary="List compliance tasks with progress")
def list_tasks(ctx: RequestContext = Depends(requires_page(PAGE))):
    gateway = ComplianceGateway(ctx.client, ctx.organization_id)
    rows = gateway.mark_overdue(gateway.list())
    return {
        "data": [ComplianceRead(**r) for r in rows],
        "progress": ComplianceGateway.progress(rows),
        "capabilities": ctx.evaluator.capabilities(PAGE),
    }


@router.post("", summary="Create compliance task", response_model=ComplianceRead)
def create_task(payload: ComplianceCreate, ctx: RequestContext = Depends(requires_page(PAGE, "create"))):
    return ComplianceGateway(ctx.client, ctx.organization_id).create(payload.model_dump(mode="json"))


@router.put("/{task_id}", summary="Update compliance task", response_model=ComplianceRead)
def update_task(
    task_id: str,
    payload: ComplianceUpdate,
    ctx: RequestContext = Depends(requires_page(PAGE, "update")),
):
    fields = payload.model_dump(mode="json", exclude_unset=True)
    return ComplianceGateway(ctx.client, ctx.organization_id).update(task_id, fields)


@router.delete("/{task_id}", summary="Delete compliance task")
def delete_task(task_id: str, ctx: RequestContext = Depends(requires_page(PAGE, "delete"))):
    ComplianceGateway(ctx.client, ctx.organization_id).remove(task_id)
    return {"success": True, "id": task_id}
