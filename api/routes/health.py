"""
Health check and monitoring routes
"""

import time
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
import structlog

from config import get_settings
from kitchen_ai import AiServiceFactory
from ..dependencies import get_ai_factory
from ..middleware import SERVICE_NAME
from ..models import HealthResponse

logger = structlog.get_logger()
router = APIRouter(tags=["Health & Monitoring"])

# Track service start time for uptime calculation
SERVICE_START_TIME = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(factory: AiServiceFactory = Depends(get_ai_factory)):
    """
    Health check endpoint
    Builds the backend if needed and reports whether it can take requests
    """
    settings = get_settings()

    service = await run_in_threadpool(factory.get_instance)
    checks = {
        "ai_service": service.is_available(),
    }

    uptime = time.time() - SERVICE_START_TIME
    all_healthy = all(checks.values())
    status = "healthy" if all_healthy else "unhealthy"

    response = HealthResponse(
        status=status,
        service=SERVICE_NAME,
        version=settings.app_version,
        checks=checks,
        backend=service.label,
        uptime=round(uptime, 2)
    )

    logger.info("Health check completed", status=status, checks=checks, backend=response.backend)

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content=response.model_dump(mode="json")
    )


@router.get("/ready")
def readiness_check(factory: AiServiceFactory = Depends(get_ai_factory)):
    """
    Readiness probe endpoint
    Ready once a backend has been selected and is accepting requests
    """
    service = factory.current
    checks = {
        "backend_selected": service is not None,
        "backend_available": service is not None and service.is_available(),
    }
    ready = all(checks.values())

    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "service": SERVICE_NAME,
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat()
        }
    )


@router.get("/")
async def root():
    """
    Root endpoint with service information
    """
    settings = get_settings()
    uptime = time.time() - SERVICE_START_TIME

    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "running",
        "uptime_seconds": round(uptime, 2),
        "capabilities": [
            "recipe_suggestions",
            "grocery_list_generation",
            "ingredient_substitution",
            "cooking_chat",
        ],
        "health_check": "/health",
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/ping")
async def ping():
    """
    Simple ping endpoint for basic connectivity testing
    """
    return {
        "message": "pong",
        "timestamp": datetime.utcnow().isoformat(),
        "service": SERVICE_NAME
    }
