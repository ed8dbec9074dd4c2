"""
MotoNomad AI Gateway - FastAPI Application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nomad_gateway.api.routes import chat, health, trips
from nomad_gateway.api.schemas import ErrorResponse
from nomad_gateway.core.exceptions import (
    GatewayAuthError,
    GatewayError,
    GatewayInsufficientCreditsError,
    GatewayModelNotFoundError,
    GatewayRateLimitError,
    GatewayResponseValidationError,
    GatewayServerError,
    GatewayValidationError,
)
from nomad_gateway.core.utils.config import get_settings
from nomad_gateway.core.utils.logging import get_logger_with_context
from nomad_gateway.infrastructure.llm.openrouter_client import close_openrouter_client, get_openrouter_client

logger = get_logger_with_context(module="main")
settings = get_settings()

# Most specific first; GatewayError is the catch-all
GATEWAY_ERROR_STATUS = (
    (GatewayValidationError, 422),
    (GatewayAuthError, 401),
    (GatewayRateLimitError, 429),
    (GatewayModelNotFoundError, 404),
    (GatewayInsufficientCreditsError, 402),
    (GatewayServerError, 503),
    (GatewayResponseValidationError, 502),
    (GatewayError, 502),
)


def status_for_gateway_error(exc: GatewayError) -> int:
    for error_type, status_code in GATEWAY_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 502


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Translate gateway error kinds into HTTP responses."""
    status_code = status_for_gateway_error(exc)
    headers = {}
    retry_after_seconds = None

    if isinstance(exc, GatewayRateLimitError) and exc.retry_after is not None:
        retry_after_seconds = exc.retry_after.total_seconds()
        headers["Retry-After"] = str(int(retry_after_seconds))

    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        retry_after_seconds=retry_after_seconds,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting MotoNomad AI Gateway...")

    client = get_openrouter_client()
    gateway = client.describe()
    if gateway["configured"]:
        logger.info(f"OpenRouter gateway ready ({gateway['mode']} mode): {gateway['endpoint']}")
    else:
        logger.warning(f"OpenRouter gateway is not configured ({gateway['mode']} mode)")
        logger.warning("AI features will fail until the configuration is fixed")

    yield

    logger.info("Shutting down MotoNomad AI Gateway...")
    await close_openrouter_client()
    logger.info("Shutdown complete.")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        description="MotoNomad AI Gateway - OpenRouter access for trip planning",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(chat.router)
    app.include_router(trips.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "nomad_gateway.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
