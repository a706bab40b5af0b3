"""
Advisy - Brokerage CRM back office

Main FastAPI application with:
- Commission split preview and submission
- Contract reconciliation from IA-scan products
- IA-scan validation workflow
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from advisy.api import api_router
from advisy.config import settings
from advisy.db import get_db_context
from advisy.models import SystemSetting

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "ia_scan_min_match_score": settings.ia_scan_min_match_score,
    "scan_followup_days": settings.scan_followup_days,
}


async def seed_default_settings(db) -> int:
    """Insert missing runtime settings; returns how many were created."""
    created = 0
    for key, value in DEFAULT_SETTINGS.items():
        existing = await db.get(SystemSetting, key)
        if not existing:
            db.add(SystemSetting(key=key, value={"v": value}))
            logger.info(f"Created default setting: {key}")
            created += 1
    return created


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Initializes default system settings
    """
    logger.info("Starting Advisy...")

    async with get_db_context() as db:
        await seed_default_settings(db)
        await db.commit()

    logger.info("Advisy started successfully!")

    yield

    logger.info("Shutting down Advisy...")


# Create FastAPI application
app = FastAPI(
    title="Advisy",
    description="Brokerage CRM back office",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "advisy.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
