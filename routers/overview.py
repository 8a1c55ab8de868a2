# routers/overview.py

from fastapi import APIRouter, Depends

from core.activation import derive_org_initials, org_display_name
from core.gateways import ComplianceGateway, EventGateway, FinanceGateway, MemberGateway
from core.utils import now_iso
from dependencies.auth import RequestContext, require_ready
from models.enums import MemberStatus


router = APIRouter(
    prefix="/overview",
    tags=["Overview"],
)


def _roster_stats(rows):
    statuses = [(r.get("status") or "").lower() for r in rows]
    return {
        "total": len(rows),
        "active": statuses.count(MemberStatus.active.value.lower()),
        "pending": statuses.count(MemberStatus.pending.value.lower()),
    }


# -----------------------------------------------------
# GET /overview
# Landing page. Every member of the tenant can open it;
# each panel is only filled when the caller may read that page.
# -----------------------------------------------------
@router.get("", summary="Dashboard overview")
def get_overview(ctx: RequestContext = Depends(require_ready)):
    client, org_id, can = ctx.client, ctx.organization_id, ctx.evaluator.can_do
    org = ctx.tenant.organization

    overview = {
        "organization": {
            "id": org_id,
            "name": org_display_name(org.get("name"), org.get("chapter")),
            "initials": derive_org_initials(org.get("name")),
            "brand_color": org.get("brand_color"),
        },
        "role": ctx.evaluator.role,
        "members": None,
        "events": None,
        "finances": None,
        "compliance": None,
    }

    if can("Members", "read"):
        overview["members"] = _roster_stats(MemberGateway(client, org_id).list())

    if can("Events", "read"):
        overview["events"] = EventGateway(client, org_id).upcoming(now_iso(), limit=4)

    if can("Finances", "read"):
        rows = FinanceGateway(client, org_id).list()
        overview["finances"] = {"totals": FinanceGateway.totals(rows), "recent": rows[:5]}

    if can("Compliance", "read"):
        gateway = ComplianceGateway(client, org_id)
        tasks = gateway.mark_overdue(gateway.list())
        overview["compliance"] = ComplianceGateway.progress(tasks)

    return overview
