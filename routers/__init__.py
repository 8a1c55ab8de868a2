# routers/__init__.py

from fastapi import APIRouter

from .auth import router as auth_router
from .overview import router as overview_router
from .members import router as members_router
from .events import router as events_router
from .finances import router as finances_router
from .compliance import router as compliance_router
from .documents import router as documents_router
from .history import router as history_router
from .settings import router as settings_router
from .tenants import router as tenants_router
from .health import router as health_router


api_router = APIRouter()

# Auth + activation
api_router.include_router(auth_router)

# Tenant pages
api_router.include_router(overview_router)
api_router.include_router(members_router)
api_router.include_router(events_router)
api_router.include_router(finances_router)
api_router.include_router(compliance_router)
api_router.include_router(documents_router)
api_router.include_router(history_router)
api_router.include_router(settings_router)

# Platform operators
api_router.include_router(tenants_router)

# Health
api_router.include_router(health_router)

__all__ = ["api_router"]
