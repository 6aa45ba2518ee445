"""
Order Provisioning Service FastAPI Application
==============================================

Runs the order provisioning worker: the application lifespan connects to
RabbitMQ, declares the topology and consumes ``order.created`` events; the
HTTP surface only exposes a health check.
"""

import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.v1.health import router as health_router
from .core.events import close_events, init_events
from .core.settings import get_settings
from .utils.logging import setup_provisioning_logging

settings = get_settings()
environment = os.getenv("ENVIRONMENT", settings.ENVIRONMENT).lower()
enable_file_logging = environment in ["production", "staging"]

logger = setup_provisioning_logging(
    "provisioning_service",
    log_level=settings.LOG_LEVEL,
    enable_file_logging=enable_file_logging,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect and consume on startup; drain and disconnect on shutdown."""
    startup_start = time.time()
    logger.info(
        "Starting provisioning service",
        extra={
            "environment": environment,
            "service_version": settings.APP_VERSION,
            "exchange": settings.RABBIT_EXCHANGE,
            "queue": settings.RABBIT_QUEUE,
        },
    )

    try:
        await init_events()
    except Exception as e:
        logger.error(
            "Failed to start provisioning service",
            exc_info=True,
            extra={
                "startup_duration_ms": int((time.time() - startup_start) * 1000),
                "error_type": type(e).__name__,
            },
        )
        raise

    logger.info(
        "Provisioning service started successfully",
        extra={"total_startup_duration_ms": int((time.time() - startup_start) * 1000)},
    )

    yield

    shutdown_start = time.time()
    logger.info("Starting provisioning service shutdown")
    await close_events()
    logger.info(
        "Provisioning service shutdown completed",
        extra={"shutdown_duration_ms": int((time.time() - shutdown_start) * 1000)},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )
    app.include_router(health_router, tags=["Health"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "provisioning_service.app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,
    )
