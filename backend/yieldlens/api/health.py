"""
Health check endpoint.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from yieldlens.core.context import AppContext, get_context
from yieldlens.core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health(
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    """Liveness plus database, scheduler and cache status."""
    database = "ok"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "error"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "scheduler": "running" if context.scheduler.running else "stopped",
        "cache_entries": len(context.cache),
    }
