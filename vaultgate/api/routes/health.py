from __future__ import annotations

from fastapi import APIRouter

from vaultgate.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Does not touch the database: a store outage must surface as failed
    admissions, not as a restart loop.

    Returns:
        dict: ``{"status": "ok", "env": <APP_ENV>}``.
    """

    return {"status": "ok", "env": settings.app_env}
