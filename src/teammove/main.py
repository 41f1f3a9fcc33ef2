# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""TeamMove API - FastAPI Application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from teammove import __version__
from teammove.api.health import router as health_router
from teammove.api.v1.router import router as api_router
from teammove.config import settings
from teammove.database import close_db
from teammove.errors import TeamMoveError
from teammove.logging_config import configure_logging, get_logger
from teammove.middleware.http_logging import HTTPLoggingMiddleware
from teammove.middleware.metrics import MetricsMiddleware
from teammove.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from teammove.workers.subscription_worker import subscription_worker

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()
    logger.info(
        "application_starting",
        version=__version__,
        environment=settings.environment,
    )

    if settings.subscription_worker_enabled:
        try:
            await subscription_worker.start()
        except Exception as e:
            logger.warning("subscription_worker_start_failed", error=str(e))

    yield

    logger.info("application_stopping")
    if subscription_worker.running:
        await subscription_worker.stop()
    await close_db()


app = FastAPI(
    title="TeamMove API",
    description="Carpooling for sports events, with subscription plans for clubs and companies",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "Stripe-Signature"],
)
app.add_middleware(HTTPLoggingMiddleware)
app.add_middleware(MetricsMiddleware)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(TeamMoveError)
async def teammove_error_handler(request: Request, exc: TeamMoveError):
    """Render domain errors with their stable error code."""
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.get("/", tags=["root"], summary="API root")
async def root():
    return {
        "service": "TeamMove API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(health_router)
app.include_router(api_router)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An internal error occurred",
                "details": {},
            }
        },
    )
