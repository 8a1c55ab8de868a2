# routers/finances.py

from fastapi import APIRouter, Depends

from core.gateways import FinanceGateway
from core.logging_config import logger
from dependencies.auth import RequestContext, requires_page
from models.finance import FinanceTotals, TransactionCreate, TransactionRead, TransactionUpdate


router = APIRouter(
    prefix="/finances",
    tags=["Finances"],
)

PAGE = "Finances"


# -----------------------------------------------------
# LIST TRANSACTIONS + TOTALS
# -----------------------------------------------------
@router.get("", summary="List transactions with income / expense totals")
def list_transactions(ctx: RequestContext = Depends(requires_page(PAGE))):
    rows = FinanceGateway(ctx.client, ctx.organization_id).list()
    return {
        "data": [TransactionRead(**r) for r in rows],
        "totals": FinanceTotals(**FinanceGateway.totals(rows)),
        "capabilities": ctx.evaluator.capabilities(PAGE),
    }


@router.post("", summary="Record transaction", response_model=TransactionRead)
def create_transaction(
    payload: TransactionCreate,
    ctx: RequestContext = Depends(requires_page(PAGE, "create")),
):
    row = FinanceGateway(ctx.client, ctx.organization_id).create(payload.model_dump(mode="json"))
    logger.info(f"Transaction recorded by {ctx.identity.email}: {payload.type} {payload.amount}")
    return row


@router.put("/{transaction_id}", summary="Update transaction", response_model=TransactionRead)
def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    ctx: RequestContext = Depends(requires_page(PAGE, "update")),
):
    fields = payload.model_dump(mode="json", exclude_unset=True)
    return FinanceGateway(ctx.client, ctx.organization_id).update(transaction_id, fields)


@router.delete("/{transaction_id}", summary="Delete transaction")
def delete_transaction(
    transaction_id: str,
    ctx: RequestContext = Depends(requires_page(PAGE, "delete")),
):
    FinanceGateway(ctx.client, ctx.organization_id).remove(transaction_id)
    return {"success": True, "id": transaction_id}
