"""
Routes package - exports all API routers
"""
from app.routes.auth import router as auth_router
from app.routes.users import router as users_router
from app.routes.proposals import router as proposals_router
from app.routes.admin import router as admin_router

__all__ = ["auth_router", "users_router", "proposals_router", "admin_router"]
