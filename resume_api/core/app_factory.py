from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and the
rate limiter sweep lifecycle) to keep it testable.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from resume_api.adapters.factory import close_adapters
from resume_api.api.routes import admin_router, health_router, payments_router
from resume_api.core.config import settings
from resume_api.core.exception_handlers import setup_exception_handlers
from resume_api.core.logging import configure_logging
from resume_api.core.middleware import cors_middleware, request_id_middleware
from resume_api.core.openapi import apply_openapi_customizations
from resume_api.core.rate_limit import get_rate_limiter

logger = logging.getLogger(__name__)

FUNCTIONS_PREFIX = "/functions/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the expired-counter sweep for as long as the app serves requests."""

    limiter = get_rate_limiter()
    limiter.start_sweep()
    try:
        yield
    finally:
        limiter.stop_sweep()
        await close_adapters()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Resume Builder Functions API",
        description=(
            "Server-side functions for the resume builder: admin user "
            "management and premium plan payments. Privileged operations are "
            "rate limited per caller and answer 429 with Retry-After when the "
            "quota is exhausted."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    # Middleware (the last registered runs first)
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(admin_router, prefix=FUNCTIONS_PREFIX)
    app.include_router(payments_router, prefix=FUNCTIONS_PREFIX)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    logger.info("app.created", extra={"app_env": settings.app_env})
    return app
