"""API routes for Dashboard Feedback."""

from fastapi import APIRouter

from .admin import router as admin_router
from .admin_requests import router as admin_requests_router
from .auth import router as auth_router
from .comments import router as comments_router
from .issues import router as issues_router
from .notifications import router as notifications_router
from .realtime import router as realtime_router

# Main API router
api_router = APIRouter()

# Auth routes (login, me)
api_router.include_router(auth_router)

# Thread lifecycle
api_router.include_router(issues_router)
api_router.include_router(comments_router)
api_router.include_router(admin_router)

# Escalations and notification feed
api_router.include_router(admin_requests_router)
api_router.include_router(notifications_router)

# Live delivery
api_router.include_router(realtime_router)

__all__ = ["api_router"]
