"""API route registration."""

from fastapi import APIRouter

from tierguard.api.routes import admin, health, observability

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(observability.router, prefix="/admin/observability", tags=["observability"])
