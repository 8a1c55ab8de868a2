from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from core.activation import compute_state
from core.config import settings
from core.errors import ActivationRequired, TenantResolutionError, Unauthenticated
from core.permissions import PermissionEvaluator
from core.recovery import RecoveryFlagService, get_recovery_service
from core.session import SessionStore
from core.supabase_client import get_supabase_client
from core.tenancy import TenantContext, TenantResolver
from models.auth import Identity
from models.enums import ActivationState


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Supabase client
# ============================================================
def get_db() -> Client:
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return client


# ============================================================
# Session store (built by create_app after the recovery service)
# ============================================================
_session_store: Optional[SessionStore] = None


def init_session_store(recovery: RecoveryFlagService) -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(
            client_factory=get_supabase_client,
            recovery=recovery,
            ttl_seconds=settings.SESSION_CACHE_TTL_SECONDS,
        )
    return _session_store


def get_session_store() -> SessionStore:
    if _session_store is None:
        raise RuntimeError("SessionStore used before init_session_store()")
    return _session_store


# ============================================================
# Identity
# ============================================================
def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_optional_identity(
    token: Optional[str] = Depends(get_bearer_token),
    store: SessionStore = Depends(get_session_store),
) -> Optional[Identity]:
    return store.current_identity(token)


def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


# ============================================================
# Tenant + caller roster row
# ============================================================
def get_tenant(
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db),
) -> TenantContext:
    return TenantResolver(client).resolve(identity)


@dataclass
class RequestContext:
    identity: Identity
    tenant: TenantContext
    evaluator: PermissionEvaluator
    client: Client

    @property
    def organization_id(self) -> str:
        return self.tenant.organization_id

    @property
    def member(self) -> Optional[dict]:
        return self.evaluator.member


def get_request_context(
    identity: Identity = Depends(get_current_identity),
    tenant: TenantContext = Depends(get_tenant),
    client: Client = Depends(get_db),
) -> RequestContext:
    evaluator = PermissionEvaluator.load(client, tenant.organization_id, identity.email)
    if evaluator.member is None:
        # Removed from the roster: the profile still points here but access is gone.
        raise TenantResolutionError("You are no longer a member of this organization")

    return RequestContext(identity=identity, tenant=tenant, evaluator=evaluator, client=client)


# ============================================================
# Activation gate: every tenant page sits behind this
# ============================================================
def require_ready(
    ctx: RequestContext = Depends(get_request_context),
    recovery: RecoveryFlagService = Depends(get_recovery_service),
) -> RequestContext:
    state = compute_state(ctx.member, ctx.tenant.profile, recovery.is_set(ctx.identity.id))
    if state != ActivationState.ready:
        raise ActivationRequired(state=state.value)
    return ctx


# ============================================================
# PERMISSION CHECK (DELEGATES TO permission_helpers)
# ============================================================
def requires_page(page: str, action: str = "read"):
    """
    Thin wrapper so routes can still import from dependencies.auth.
    Real RBAC logic lives in core.permission_helpers.
    """
    from core.permission_helpers import requires_page as new_checker
    return new_checker(page, action)
