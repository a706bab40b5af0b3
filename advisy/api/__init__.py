"""API router aggregation."""

from fastapi import APIRouter

from advisy.api.commissions import router as commissions_router
from advisy.api.contracts import router as contracts_router
from advisy.api.health import router as health_router
from advisy.api.scans import router as scans_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(commissions_router)
api_router.include_router(contracts_router)
api_router.include_router(scans_router)

__all__ = ["api_router"]
