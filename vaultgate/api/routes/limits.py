from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from vaultgate.core.auth import get_principal, verify_api_key
from vaultgate.core.dependencies import get_admission_policy
from vaultgate.domain.limits import Principal, ResourceKind
from vaultgate.schemas.limits import KindUsageResponse, RemainingSummaryResponse
from vaultgate.services.admission_policy import AdmissionPolicy

router = APIRouter(tags=["Limits"], dependencies=[Depends(verify_api_key)])


@router.get("/limits/summary", response_model=RemainingSummaryResponse)
def get_remaining_summary(
    principal: Annotated[Principal, Depends(get_principal)],
    policy: Annotated[AdmissionPolicy, Depends(get_admission_policy)],
) -> RemainingSummaryResponse:
    """Usage and effective limits of the calling user.

    Covers every entity kind, total storage, today's upload volume and the
    per-request upload caps, all resolved against one settings snapshot.
    """

    summary = policy.remaining_summary(principal.user_id, principal.role)
    return RemainingSummaryResponse.from_summary(summary)


@router.get("/limits/{kind}", response_model=KindUsageResponse)
def get_kind_usage(
    kind: ResourceKind,
    principal: Annotated[Principal, Depends(get_principal)],
    policy: Annotated[AdmissionPolicy, Depends(get_admission_policy)],
) -> KindUsageResponse:
    """Used count and effective limit for one entity kind (null = unlimited)."""

    usage = policy.kind_usage(principal.user_id, kind, principal.role)
    return KindUsageResponse.from_usage(usage)
