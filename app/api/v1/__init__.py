"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import health, operations

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(operations.router, prefix="/operations", tags=["accounts"])
