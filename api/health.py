"""
Liveness and health check endpoints
"""

import os
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from api.dependencies import get_app_settings, get_artifact_store
from core.config import Settings
from core.logging import get_logger
from d1_artifacts.store import ArtifactStore

logger = get_logger(__name__)
router = APIRouter(tags=["health"])


def check_storage_health(store: ArtifactStore) -> dict[str, Any]:
    """
    Check that the artifact and preview directories exist and are writable.

    Args:
        store: Artifact store whose directories are checked

    Returns:
        Dict containing storage health status
    """
    for directory in (store.root, store.previews_dir):
        if not directory.is_dir():
            return {"status": "error", "error": f"Missing directory: {directory}"}
        if not os.access(directory, os.W_OK):
            return {"status": "error", "error": f"Directory not writable: {directory}"}
    return {"status": "ok", "path": str(store.root)}


def check_provider_configuration(settings: Settings) -> dict[str, Any]:
    """Report which external providers have credentials, without their values"""
    return {
        "stripe": {
            "configured": settings.stripe_secret_key is not None,
            "webhook_secret_configured": settings.stripe_webhook_secret is not None,
        },
        "sendgrid": {"configured": settings.email_enabled},
    }


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Backend RunMemories API is running!"


@router.get("/health")
async def health_check(
    settings: Settings = Depends(get_app_settings),
    store: ArtifactStore = Depends(get_artifact_store),
) -> JSONResponse:
    """
    Health check endpoint for external monitoring systems.

    Returns:
        JSONResponse: Health status with 200 (healthy) or 503 (unhealthy)
    """
    start_time = time.time()

    health_data = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {},
    }

    storage = check_storage_health(store)
    health_data["checks"]["storage"] = storage
    health_data["checks"]["providers"] = check_provider_configuration(settings)

    is_healthy = storage["status"] == "ok"
    if not is_healthy:
        logger.error(f"Storage health check failed: {storage['error']}")
        health_data["status"] = "unhealthy"

    health_data["response_time_ms"] = round((time.time() - start_time) * 1000, 2)

    return JSONResponse(status_code=200 if is_healthy else 503, content=health_data)
