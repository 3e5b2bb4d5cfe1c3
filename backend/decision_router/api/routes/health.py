"""Health & Readiness Probes: liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the spec directory is missing (readiness)
    - An unavailable LLM never fails readiness; it is reported as "disabled"
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from decision_router.api.dependencies import ServiceContainer, get_container

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "decision-router-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(container: ServiceContainer = Depends(get_container)):
    """Readiness probe: spec directory present, LLM availability reported."""
    specs_ok = Path(container.settings.spec_directory).is_dir()
    checks = {
        "spec_directory": "healthy" if specs_ok else "missing",
        "language_model": "available" if container.llm.is_available() else "disabled",
    }
    if not specs_ok:
        logger.warning(f"Spec directory not found: {container.settings.spec_directory}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "spec_directory_missing",
                "checks": checks,
            },
        )
    return {"status": "ready", "checks": checks}
