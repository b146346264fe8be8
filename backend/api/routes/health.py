"""Health check endpoints."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from infrastructure.config import get_settings
from infrastructure.database import get_db
from infrastructure.database.models.user import User
from services.generation_jobs import generation_jobs

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


async def _redis_ok(timeout: float) -> bool:
    """Ping the rate-limiter Redis. False when unreachable."""
    import redis.asyncio as aioredis

    r = aioredis.from_url(settings.redis_url)
    try:
        await asyncio.wait_for(r.ping(), timeout=timeout)
        return True
    except Exception as e:
        logger.warning("Health check Redis error: %s", e)
        return False
    finally:
        await r.aclose()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Health check with database connectivity."""
    try:
        result = await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=5.0)
        result.scalar()
        db_status = "connected"
    except TimeoutError:
        logger.error("Health check DB timeout")
        db_status = "error: database timeout"
    except Exception as e:
        logger.error("Health check DB error: %s", str(e))
        db_status = "error: database check failed"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": db_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Kubernetes-style readiness probe."""
    db_ok = False
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=5.0)
        db_ok = True
    except Exception as e:
        logger.error("Readiness DB check failed: %s", e)

    # Redis only backs the rate limiter; its absence degrades but doesn't block
    redis_state = "not_configured"
    if settings.redis_url:
        redis_state = "ok" if await _redis_ok(timeout=2.0) else "degraded"

    return {
        "ready": db_ok,
        "database": "ok" if db_ok else "unavailable",
        "redis": redis_state,
    }


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}


@router.get("/health/services")
async def services_check(admin_user: User = Depends(get_current_admin_user)):
    """Configuration status of the AI provider and search-engine notification."""
    provider_key = (
        settings.openai_api_key if settings.ai_provider == "openai" else settings.anthropic_api_key
    )
    services = {
        "ai_provider": {
            "provider": settings.ai_provider,
            "configured": bool(provider_key),
            "structural_model": settings.structural_model,
            "enhancement_model": settings.enhancement_model,
        },
        "search_ping": {
            "configured": settings.search_ping_enabled,
            "indexnow": bool(settings.indexnow_key),
        },
    }

    return {
        "status": "healthy" if services["ai_provider"]["configured"] else "degraded",
        "services": services,
        "generation_jobs": generation_jobs.stats(),
        "auto_generation": settings.auto_generation_enabled,
        "timestamp": datetime.now(UTC).isoformat(),
    }
