"""
Health Check Endpoints

- /health        - liveness (app is running)
- /health/ready  - readiness (database reachable and schema present)
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import Dict, Any
import os
import time

from app.core.config import settings
from app.core.logging_config import logger
from app.core.rate_limiter import limiter
from app.services.storage import get_upload_dir


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and basic operations"""
    start = time.time()
    try:
        from app.core.database import get_session_local
        from sqlalchemy import text

        session_factory = get_session_local()
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))

            # Check if users table exists and is accessible
            try:
                await session.execute(text("SELECT COUNT(*) FROM users"))
                tables_ok = True
            except Exception:
                tables_ok = False

            latency = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "latency_ms": round(latency, 2),
                "tables_ready": tables_ok,
                "message": "Database connection successful"
            }
    except Exception as e:
        latency = (time.time() - start) * 1000
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round(latency, 2),
            "tables_ready": False,
            "error": str(e),
            "message": "Database connection failed"
        }


def check_uploads() -> Dict[str, Any]:
    """Upload directory exists and is writable"""
    path = get_upload_dir()
    writable = os.access(path, os.W_OK)
    return {
        "status": "healthy" if writable else "degraded",
        "path": str(path),
        "writable": writable,
    }


@router.get("")
@limiter.exempt
async def liveness_check():
    """Liveness probe. Returns 200 while the process is alive."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


@router.get("/ready")
@limiter.exempt
async def readiness_check():
    """
    Readiness probe. 200 only when the database answers and the schema exists;
    503 otherwise.
    """
    db_check = await check_database()
    is_ready = db_check.get("status") == "healthy" and db_check.get("tables_ready", False)

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": db_check,
            "uploads": check_uploads(),
        }
    }

    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response)

    return response
