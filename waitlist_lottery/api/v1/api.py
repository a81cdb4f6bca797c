"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from waitlist_lottery.api.v1.endpoints import (
    users,
    events,
    waitlist,
    notifications,
    admin,
    health
)

api_router = APIRouter()

# Include all routers
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(waitlist.router, prefix="/waitlist", tags=["waitlist"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
