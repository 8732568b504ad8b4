"""Health check endpoint."""

from fastapi import APIRouter

from boardcore.config import settings
from boardcore.db.utils import check_database_health

router = APIRouter()


@router.get("/health")
async def health_check():
    """Report API and database status."""
    db_status = await check_database_health()
    return {
        "status": "healthy" if db_status["healthy"] else "degraded",
        "environment": settings.ENVIRONMENT,
        "database": db_status,
    }
