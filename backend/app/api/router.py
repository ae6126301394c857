"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import check_in, invitations, registrations

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(registrations.router)
api_router.include_router(invitations.router)
api_router.include_router(check_in.router)
