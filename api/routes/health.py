"""Health check routes"""

from fastapi import APIRouter
import logging

from adapters import mongo_adapter
from app.config import settings

router = APIRouter(tags=["Health"])
logger = logging.getLogger("recipemanager.api.health")


@router.get("/health-check")
def health_check():
    """Basic health check endpoint"""
    return {"status": "ok", "service": settings.app_name}


@router.get("/health")
async def health():
    """Health including the document store"""
    database = "connected" if await mongo_adapter.ping() else "disconnected"
    if database != "connected":
        logger.warning("Health check: MongoDB not reachable")
    return {
        "status": "ok" if database == "connected" else "degraded",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment.value,
        "database": database,
    }
