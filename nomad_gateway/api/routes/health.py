"""Health check endpoints."""

from fastapi import APIRouter

from nomad_gateway.core.utils.config import get_settings
from nomad_gateway.infrastructure.llm.openrouter_client import get_openrouter_client

router = APIRouter(tags=["Health"])
settings = get_settings()


@router.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "version": "1.0.0"}


@router.get("/health/detailed")
async def detailed_health():
    """Gateway configuration status. Does not call OpenRouter."""
    gateway = get_openrouter_client().describe()

    return {
        "status": "healthy" if gateway["configured"] else "degraded",
        "version": "1.0.0",
        "environment": settings.environment,
        "services": {
            "openrouter": gateway
        }
    }
