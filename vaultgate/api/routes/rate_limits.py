from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Header, Request, Response

from vaultgate.core.auth import verify_api_key
from vaultgate.core.dependencies import get_rate_limiter
from vaultgate.core.errors import NotFoundAppError, ValidationAppError
from vaultgate.core.rate_limit import check_rate_limit, client_ip
from vaultgate.schemas.rate_limit import (
    PresetCheckRequest,
    RateLimitCheckRequest,
    RateLimitCheckResponse,
)
from vaultgate.services.rate_limit_presets import get_preset
from vaultgate.services.rate_limiter import RateLimiter

router = APIRouter(tags=["Rate Limit"], dependencies=[Depends(verify_api_key)])


@router.post("/rate-limit/check", response_model=RateLimitCheckResponse)
def check_rules(
    body: RateLimitCheckRequest,
    response: Response,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> RateLimitCheckResponse:
    """Record one hit on every given limiter and combine the results.

    Intended for flows the web tier owns (password reset, 2FA verification).
    Always evaluated, independently of route throttling being enabled.
    """

    decision = check_rate_limit(limiter, [item.to_rule() for item in body.rules], response)
    return RateLimitCheckResponse.from_decision(decision)


@router.post("/rate-limit/presets/{name}", response_model=RateLimitCheckResponse)
def check_preset(
    name: str,
    request: Request,
    response: Response,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    body: Annotated[PresetCheckRequest | None, Body()] = None,
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> RateLimitCheckResponse:
    """Evaluate a named preset for the client IP and a subject.

    The subject is taken from the body, or falls back to the calling user.
    """

    preset = get_preset(name)
    if preset is None:
        raise NotFoundAppError(
            code="preset_not_found",
            message=f"Unknown rate limit preset '{name}'.",
        )

    subject = (body.subject if body else None) or x_user_id
    try:
        rules = preset.rules(ip=client_ip(request), subject=subject)
    except ValueError as exc:
        raise ValidationAppError(
            code="subject_required",
            message=str(exc),
            details={"field": "subject"},
        ) from exc

    decision = check_rate_limit(limiter, rules, response)
    return RateLimitCheckResponse.from_decision(decision)
