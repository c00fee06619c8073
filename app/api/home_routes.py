"""Service index, health and version routes."""

from fastapi import APIRouter

from app.core.config import settings
from app.core.redis_client import ping_redis
from app.infrastructure.database.connection import ping_db

router = APIRouter(prefix="/api", tags=["home"])


@router.get("")
async def index() -> dict:
    return {
        "name": "CulturalVault API",
        "version": settings.app_version,
        "endpoints": {
            "artifacts": "/api/artifacts",
            "stories": "/api/stories",
            "recommendations": "/api/recommendations",
            "users": "/api/users",
            "interactions": "/api/interactions",
            "auth": "/api/auth",
        },
    }


@router.get("/health")
async def health() -> dict:
    """Report reachability of the database and Redis."""
    db_ok = await ping_db()
    redis_ok = await ping_redis()
    return {
        "status": "UP" if db_ok and redis_ok else "DEGRADED",
        "database": db_ok,
        "redis": redis_ok,
    }


@router.get("/version")
async def version() -> dict:
    return {"name": "CulturalVault", "version": settings.app_version}
