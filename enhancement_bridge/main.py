"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from enhancement_bridge import __version__
from enhancement_bridge.api.deps import container
from enhancement_bridge.api.routes import enhancements, health, push, webhook
from enhancement_bridge.core.config import settings
from enhancement_bridge.core.constants import API_PREFIX, WS_STATUS_PATH
from enhancement_bridge.core.exceptions import BridgeError
from enhancement_bridge.core.logging import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.
    Missing credentials abort startup.
    """
    logger.info(
        "Starting enhancement bridge",
        app_name=settings.app_name,
        env=settings.app_env,
    )

    container.validate()
    container.initialize()
    await container.start_push_channels()

    yield

    logger.info("Shutting down enhancement bridge")
    await container.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Enhancement Bridge API",
    description="Turns JIRA tickets into AI-generated enhancements and user stories",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.security.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(BridgeError)
async def bridge_error_handler(
    request: Request,
    exc: BridgeError,
) -> JSONResponse:
    """Handle custom application errors."""
    logger.error(
        "Application error",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected errors."""
    logger.exception(
        "Unexpected error",
        error=str(exc),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


# Include routers
app.include_router(webhook.router, tags=["Webhook"])
app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
app.include_router(enhancements.router, prefix=API_PREFIX, tags=["Enhancements"])
app.include_router(push.router, prefix=API_PREFIX, tags=["Push channel"])
app.include_router(push.ws_router)


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else "Disabled in production",
    }


# API info endpoint
@app.get("/api")
async def api_info() -> dict[str, Any]:
    """API information endpoint."""
    return {
        "name": "Enhancement Bridge API",
        "version": __version__,
        "prefix": API_PREFIX,
        "endpoints": {
            "webhook": "/webhook",
            "health": f"{API_PREFIX}/health",
            "generate": f"{API_PREFIX}/generate-enhancements",
            "import": f"{API_PREFIX}/import-enhancements",
            "enhancements": f"{API_PREFIX}/enhancements/{{ticketId}}",
            "push_status": f"{API_PREFIX}/mcp-status",
            "push_diagnostics": f"{API_PREFIX}/diagnose-mcp",
            "status_socket": WS_STATUS_PATH,
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "enhancement_bridge.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
