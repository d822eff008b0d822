"""
Health check endpoint.

Used by:
  - Docker HEALTHCHECK instruction
  - Load balancers / orchestrators
  - Front end to check API connectivity

Reports whether Gemini calls are real or mocked so callers can tell a demo
deployment from a live one.
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from deepdetect import __version__

logger = logging.getLogger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    ai_mode: str  # "mock" | "real"
    environment: str


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check() -> HealthResponse:
    """Returns the liveness status of the API and the active AI mode."""
    from deepdetect.ai.gemini_client import gemini_client
    from deepdetect.core.config import settings

    return HealthResponse(
        status="ok",
        version=__version__,
        ai_mode="mock" if gemini_client.mock_mode else "real",
        environment=settings.environment,
    )
