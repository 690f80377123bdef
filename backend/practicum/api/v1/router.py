"""
API v1 router that aggregates all endpoint routers.
All routes require authentication except health.
"""

from fastapi import APIRouter, Depends
from practicum.api.v1.middleware import require_authentication

from practicum.api.v1.endpoints import (
    health,
    placements,
    pending_supervisors,
    timesheets,
    notifications,
)

api_router = APIRouter()

# Public routes (no authentication required)
api_router.include_router(health.router, tags=["health"])

# Protected routes (authentication required for all endpoints)
# Authentication is enforced via dependency injection at the router level
api_router.include_router(
    placements.router,
    prefix="/placements",
    tags=["placements"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    pending_supervisors.router,
    prefix="/pending-supervisors",
    tags=["pending-supervisors"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    timesheets.router,
    prefix="/timesheets",
    tags=["timesheets"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_authentication)],
)
