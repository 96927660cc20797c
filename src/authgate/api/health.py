"""Health check endpoint.

Learn: public, unauthenticated. Reports "healthy" when the account
store answers a trivial query and "degraded" otherwise. The token
codec has no external dependency, so there is nothing else to probe.
"""

import structlog
from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authgate import __version__
from authgate.db.engine import engine

logger = structlog.get_logger()

router = APIRouter()


async def _probe_database() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("health.database_unreachable", error=str(e))
        return f"error: {e}"
    return "ok"


@router.get("/health")
async def health_check():
    database = await _probe_database()
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "server": "ok",
        "version": __version__,
        "database": database,
    }
