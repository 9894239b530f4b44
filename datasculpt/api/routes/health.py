"""
Health Check Routes

FastAPI endpoint for service liveness.
"""

from fastapi import APIRouter, status

from datasculpt import __version__
from datasculpt.models.api import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Always answers 200 while the process is alive. llmProvider is null when
    no model is configured and generation runs on fallback queries only.
    """
    from datasculpt.api.main import app_state

    provider = app_state.get("provider")
    return HealthResponse(
        status="ok",
        message="Backend server is running",
        version=__version__,
        llm_provider=provider.provider_name if provider is not None else None,
    )
