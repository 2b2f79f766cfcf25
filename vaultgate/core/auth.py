"""Gateway authentication and principal extraction.

The service sits behind the vault's web tier. The web tier authenticates
itself with a shared gateway key (``X-API-Key``) and forwards the end user's
identity in ``X-User-Id`` / ``X-User-Role``. Keys are validated against a
comma-separated list from environment variables.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Header

from vaultgate.core.config import settings
from vaultgate.core.errors import AuthenticationAppError, PermissionAppError
from vaultgate.domain.limits import Principal, Role

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Args:
        keys_string: Comma-separated string of API keys, or None.

    Returns:
        Set of trimmed, non-empty API keys.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 , key3 "))
        ['key1', 'key2', 'key3']
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_api_key(provided_key: str | None) -> None:
    """Validate that the provided gateway key matches a configured key.

    Args:
        provided_key: Key from the X-API-Key header.

    Raises:
        AuthenticationAppError: If the key is missing or invalid, or if
            authentication is required but no keys are configured.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)

    if not valid_keys:
        logger.error(
            "auth.failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("auth.failed", extra={"reason": "missing_api_key"})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    if provided_key not in valid_keys:
        logger.warning(
            "auth.failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hashlib.sha256(provided_key.encode()).hexdigest()[:16],
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency for gateway key authentication.

    Usage:
        @router.get("/protected", dependencies=[Depends(verify_api_key)])
    """
    if not settings.app.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    validate_api_key(x_api_key)


def get_principal(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
    x_user_role: Annotated[str | None, Header(alias="X-User-Role")] = None,
) -> Principal:
    """Build the caller's principal from the forwarded identity headers.

    Raises:
        AuthenticationAppError: If the user id is missing or the role unknown.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationAppError(
            code="missing_principal",
            message="Missing user identity. Provide X-User-Id header.",
        )
    try:
        role = Role.parse(x_user_role)
    except ValueError as exc:
        raise AuthenticationAppError(
            code="invalid_role",
            message="Unknown user role.",
            details={"field": "X-User-Role"},
        ) from exc
    return Principal(user_id=user_id, role=role)


def require_admin(principal: Annotated[Principal, Depends(get_principal)]) -> Principal:
    """Allow only admins and owners through."""
    if not principal.role.is_admin:
        logger.warning("auth.forbidden", extra={"user_id": principal.user_id, "role": principal.role.value})
        raise PermissionAppError(
            code="admin_required",
            message="This operation requires an admin account.",
        )
    return principal
