"""Health check endpoints."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import redis.asyncio as redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from database import engine

logger = logging.getLogger(__name__)

router = APIRouter()


async def _database_status() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("health_database_down error=%s", exc)
        return f"down: {exc.__class__.__name__}"
    return "up"


async def _redis_status() -> str:
    client = redis.from_url(settings.REDIS_URL)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        return f"down: {exc.__class__.__name__}"
    finally:
        await client.aclose()
    return "up"


@router.get("/health")
async def health_check():
    """Overall status; Redis only backs rate limits, so it degrades rather than fails."""
    status = {"status": "healthy", "api": "up", "database": await _database_status(), "redis": await _redis_status()}
    if status["database"] != "up" or status["redis"] != "up":
        status["status"] = "degraded"
    return status


@router.get("/health/ready")
async def readiness_check():
    database = await _database_status()
    if database != "up":
        return JSONResponse(status_code=503, content={"ready": False, "database": database})
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    return {"alive": True}
