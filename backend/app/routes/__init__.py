"""API routes."""

from .admin import router as admin_router
from .agency import router as agency_router
from .cart import router as cart_router
from .jobs import router as jobs_router
from .notifications import router as notifications_router

__all__ = [
    "admin_router",
    "agency_router",
    "cart_router",
    "jobs_router",
    "notifications_router",
]
