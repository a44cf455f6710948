"""Health API routes."""

import time

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from registry.config import get_settings
from registry.core.dates import utcnow
from registry.domain.repositories.file_storage import FileStorage
from registry.interfaces.deps import get_db, get_file_storage

settings = get_settings()
logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/health", tags=["Health"])

STARTED_AT = time.monotonic()


def _uptime() -> float:
    return round(time.monotonic() - STARTED_AT, 2)


@router.get("")
def health():
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "uptime": _uptime(),
        "environment": settings.environment,
    }


@router.get("/detailed")
def health_detailed(
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    try:
        db.execute(text("SELECT 1"))
        database = {"status": "connected"}
    except SQLAlchemyError as e:
        logger.error("Database ping failed", error=str(e))
        database = {"status": "disconnected", "error": str(e)}

    return {
        "status": "OK" if database["status"] == "connected" else "DEGRADED",
        "timestamp": utcnow().isoformat(),
        "uptime": _uptime(),
        "environment": settings.environment,
        "platform": settings.platform,
        "cloudDeployment": settings.is_cloud_deployment,
        "database": database,
        "storage": storage.get_storage_info(),
    }
