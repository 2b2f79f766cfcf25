from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.core.auth import require_admin, verify_api_key
from vaultgate.core.dependencies import get_store
from vaultgate.core.errors import NotFoundAppError, ValidationAppError
from vaultgate.domain.limits import Principal
from vaultgate.schemas.admin import (
    ServerDefaultsResponse,
    ServerDefaultsUpdate,
    UserLimitsResponse,
    UserOverridesUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"], dependencies=[Depends(verify_api_key)])


@router.get("/admin/settings", response_model=ServerDefaultsResponse)
def get_settings(
    _admin: Annotated[Principal, Depends(require_admin)],
    store: Annotated[AbstractGovernanceStore, Depends(get_store)],
) -> ServerDefaultsResponse:
    return ServerDefaultsResponse.from_defaults(store.get_server_defaults())


@router.patch("/admin/settings", response_model=ServerDefaultsResponse)
def update_settings(
    body: ServerDefaultsUpdate,
    admin: Annotated[Principal, Depends(require_admin)],
    store: Annotated[AbstractGovernanceStore, Depends(get_store)],
) -> ServerDefaultsResponse:
    """Partially update the server defaults.

    Changes apply from the next admission check on; nothing is cached.
    """

    changes = body.model_dump(exclude_unset=True)
    try:
        defaults = store.update_server_defaults(changes)
    except ValueError as exc:
        raise ValidationAppError(code="invalid_settings", message=str(exc)) from exc

    logger.info(
        "admin.settings_updated",
        extra={"admin_id": admin.user_id, "fields": sorted(changes)},
    )
    return ServerDefaultsResponse.from_defaults(defaults)


@router.patch("/admin/users/{user_id}/limits", response_model=UserLimitsResponse)
def update_user_limits(
    user_id: str,
    body: UserOverridesUpdate,
    admin: Annotated[Principal, Depends(require_admin)],
    store: Annotated[AbstractGovernanceStore, Depends(get_store)],
) -> UserLimitsResponse:
    """Set or clear a user's overrides. ``0`` and ``null`` both clear."""

    changes = body.model_dump(exclude_unset=True)
    try:
        record = store.update_user_overrides(user_id, changes)
    except ValueError as exc:
        raise ValidationAppError(code="invalid_overrides", message=str(exc)) from exc

    if record is None:
        raise NotFoundAppError(code="user_not_found", message="User not found.")

    logger.info(
        "admin.user_limits_updated",
        extra={"admin_id": admin.user_id, "user_id": user_id, "fields": sorted(changes)},
    )
    return UserLimitsResponse.from_record(record)
