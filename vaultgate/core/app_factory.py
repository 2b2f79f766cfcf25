"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from vaultgate.api.routes import (
    admin_router,
    admission_router,
    health_router,
    limits_router,
    rate_limit_router,
)
from vaultgate.core import dependencies
from vaultgate.core.config import settings
from vaultgate.core.exception_handlers import setup_exception_handlers
from vaultgate.core.logging import configure_logging
from vaultgate.core.middleware import request_id_middleware
from vaultgate.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "app.startup",
        extra={
            "env": settings.app_env,
            "store_backend": settings.db.backend,
            "counter_backend": settings.db.counter_backend,
            "limit_emails_disabled": settings.limits.emails_disabled,
        },
    )
    yield
    # Waits for queued limit-reached emails before the process exits.
    dependencies.shutdown()
    logger.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Vaultgate",
        description=(
            "Resource governance and admission control for the file vault: "
            "per-user quotas on entity counts, storage and daily upload volume, "
            "fixed-window rate limiting with RateLimit-* headers, and best-effort "
            "limit-reached emails. Requires X-API-Key and the forwarded "
            "X-User-Id / X-User-Role identity headers."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(limits_router, prefix="/v1")
    app.include_router(admission_router, prefix="/v1")
    app.include_router(rate_limit_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
