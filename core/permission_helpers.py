from typing import Optional

from fastapi import Depends

from core.config import settings
from core.errors import ActionForbidden
from core.logging_config import logger
from core.permissions import CRUD_ACTIONS, DEFAULT_PAGE, PAGES
from core.utils import normalize_email
from dependencies.auth import RequestContext, get_current_identity, require_ready
from models.auth import Identity


# -----------------------------------------------------
# FastAPI dependency wrappers
# -----------------------------------------------------
def requires_page(page: str, action: str = "read"):
    """
    Usage:
        @router.get("", dependencies=[Depends(requires_page("Finances"))])

    Runs before the route body, so a denied read never starts the data fetch.
    """
    if page not in PAGES or action not in CRUD_ACTIONS:
        raise ValueError(f"Unknown permission {page}:{action}")

    def dependency(ctx: RequestContext = Depends(require_ready)) -> RequestContext:
        ctx.evaluator.ensure(page, action)
        return ctx

    return dependency


def requires_privileged(ctx: RequestContext = Depends(require_ready)) -> RequestContext:
    """Admin / president only (organization settings, permission manager)."""
    if not ctx.evaluator.is_privileged:
        logger.warning(f"Privileged action refused for {ctx.identity.email}")
        raise ActionForbidden("Admin or president role required")
    return ctx


# -----------------------------------------------------
# Platform operators (tenant admin portal)
# -----------------------------------------------------
def is_super_admin(identity: Optional[Identity]) -> bool:
    if not identity:
        return False
    allowed = {normalize_email(e) for e in settings.SUPER_ADMIN_EMAILS}
    return normalize_email(identity.email) in allowed


def requires_super_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not is_super_admin(identity):
        logger.warning(f"Tenant admin portal refused for {identity.email}")
        raise ActionForbidden("Unauthorized Access", redirect_to=DEFAULT_PAGE)
    return identity
