"""
Health Check Endpoints

- /health/live  - Basic liveness (app is running)
- /health/ready - Readiness check (database and reference data usable)
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text
from datetime import datetime
from typing import Dict, Any
import time

from riskify.core.config import settings
from riskify.core.database import get_session_local
from riskify.core.logging_config import logger
from riskify.services.reference_data import reference_data


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity"""
    start = time.time()
    try:
        session_factory = get_session_local()
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
        }
    except Exception as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": str(e),
        }


def check_reference_data() -> Dict[str, Any]:
    """Check the bundled task library loads"""
    try:
        trades = reference_data.list_trades()
        return {"status": "healthy", "trades": len(trades)}
    except Exception as e:
        logger.error(f"[HealthCheck] Reference data check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}


@router.get("/live")
async def liveness():
    return {"status": "alive", "timestamp": datetime.utcnow().isoformat()}


@router.get("/ready")
async def readiness():
    """503 unless every dependency is healthy"""
    checks = {
        "database": await check_database(),
        "reference_data": check_reference_data(),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())
    body = {
        "status": "ready" if healthy else "not_ready",
        "version": settings.APP_VERSION,
        "checks": checks,
    }
    if not healthy:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=body)
    return body
