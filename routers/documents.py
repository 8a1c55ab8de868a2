# routers/documents.py

from fastapi import APIRouter, Depends

from core.gateways import DocumentGateway
from dependencies.auth import RequestContext, requires_page
from models.document import DocumentCreate, DocumentRead, DocumentUpdate


router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
)

PAGE = "Documents"


@router.get("", summary="List documents")
def list_documents(ctx: RequestContext = Depends(requires_page(PAGE))):
    rows = DocumentGateway(ctx.client, ctx.organization_id).list()
    return {
        "data": [DocumentRead(**r) for r in rows],
        "capabilities": ctx.evaluator.capabilities(PAGE),
    }


@router.post("", summary="Add document link", response_model=DocumentRead)
def create_document(payload: DocumentCreate, ctx: RequestContext = Depends(requires_page(PAGE, "create"))):
    return DocumentGateway(ctx.client, ctx.organization_id).create(payload.model_dump(mode="json"))


@router.put("/{document_id}", summary="Rename / update document", response_model=DocumentRead)
def update_document(
    document_id: str,
    payload: DocumentUpdate,
    ctx: RequestContext = Depends(requires_page(PAGE, "update")),
):
    fields = payload.model_dump(mode="json", exclude_unset=True)
    return DocumentGateway(ctx.client, ctx.organization_id).update(document_id, fields)


@router.delete("/{document_id}", summary="Delete document")
def delete_document(document_id: str, ctx: RequestContext = Depends(requires_page(PAGE, "delete"))):
    DocumentGateway(ctx.client, ctx.organization_id).remove(document_id)
    return {"success": True, "id": document_id}
