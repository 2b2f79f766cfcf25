from __future__ import annotations

from vaultgate.api.routes.admin import router as admin_router
from vaultgate.api.routes.admission import router as admission_router
from vaultgate.api.routes.health import router as health_router
from vaultgate.api.routes.limits import router as limits_router
from vaultgate.api.routes.rate_limits import router as rate_limit_router

__all__ = [
    "admin_router",
    "admission_router",
    "health_router",
    "limits_router",
    "rate_limit_router",
]
