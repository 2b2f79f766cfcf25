from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from vaultgate.adapters.store.base import AbstractGovernanceStore
from vaultgate.core.auth import get_principal, verify_api_key
from vaultgate.core.dependencies import get_admission_policy, get_rate_limiter, get_store
from vaultgate.core.rate_limit import client_ip, default_rules, enforce_rate_limit
from vaultgate.domain.limits import Principal, ResourceKind
from vaultgate.schemas.admission import CreateAdmissionRequest, UploadAdmissionRequest
from vaultgate.services.admission_policy import AdmissionPolicy
from vaultgate.services.rate_limiter import RateLimiter
from vaultgate.services.usage_accountant import bytes_to_mb

router = APIRouter(tags=["Admission"], dependencies=[Depends(verify_api_key)])


@router.post("/admission/create", status_code=status.HTTP_204_NO_CONTENT)
def admit_create(
    body: CreateAdmissionRequest,
    request: Request,
    response: Response,
    principal: Annotated[Principal, Depends(get_principal)],
    policy: Annotated[AdmissionPolicy, Depends(get_admission_policy)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Admit the creation of ``incoming_count`` entities of ``kind``.

    Throttled per client IP and per user/action first. Returns 204 when the
    caller may proceed, 429 with a ``limit_exceeded`` or ``rate_limited``
    error otherwise.
    """

    enforce_rate_limit(
        limiter,
        default_rules(client_ip(request), principal.user_id, f"{body.kind.value}-create"),
        response,
        request,
    )
    policy.assert_can_create(principal.user_id, body.kind, principal.role, body.incoming_count)


@router.post("/admission/upload", status_code=status.HTTP_204_NO_CONTENT)
def admit_upload(
    body: UploadAdmissionRequest,
    request: Request,
    response: Response,
    principal: Annotated[Principal, Depends(get_principal)],
    policy: Annotated[AdmissionPolicy, Depends(get_admission_policy)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    store: Annotated[AbstractGovernanceStore, Depends(get_store)],
) -> None:
    """Admit an upload batch as a whole.

    Checks, in order: rate limits, the file count limit, files per request,
    per-file size, daily volume, total storage, then the file type policy.
    """

    enforce_rate_limit(
        limiter,
        default_rules(client_ip(request), principal.user_id, "upload"),
        response,
        request,
    )

    defaults = store.get_server_defaults()
    policy.assert_can_create(
        principal.user_id,
        ResourceKind.FILES,
        principal.role,
        len(body.files),
        defaults=defaults,
    )
    policy.assert_upload_allowed(
        principal.user_id,
        principal.role,
        [bytes_to_mb(item.size_bytes) for item in body.files],
        defaults=defaults,
    )
    for item in body.files:
        policy.assert_file_type_allowed(item.mime_type, item.filename, defaults=defaults)
