"""Pydantic schemas for rate-limit checks."""

from __future__ import annotations

from pydantic import BaseModel, Field

from vaultgate.services.rate_limiter import CombinedRateLimit, RateLimitRule


class RateLimitRuleItem(BaseModel):
    key: str = Field(
        ...,
        min_length=1,
        max_length=512,
        description="Counter key, e.g. 'ip:203.0.113.7' or 'pwreset:user@example.com'.",
    )
    limit: int = Field(..., ge=1, description="Hits allowed per window.")
    window_ms: int = Field(..., ge=1, description="Fixed window length in milliseconds.")

    def to_rule(self) -> RateLimitRule:
        return RateLimitRule(key=self.key, limit=self.limit, window_ms=self.window_ms)


class RateLimitCheckRequest(BaseModel):
    """Evaluate several limiters for one logical request (AND)."""

    rules: list[RateLimitRuleItem] = Field(..., min_length=1)


class PresetCheckRequest(BaseModel):
    subject: str | None = Field(
        default=None,
        description=(
            "Subject of the subject-scoped limiter (file slug, email). "
            "Defaults to the calling user's id."
        ),
    )


class RateLimitCheckResponse(BaseModel):
    """Metadata of an admitted request."""

    success: bool
    limit: int = Field(..., description="Smallest limit among the combined limiters.")
    remaining: int = Field(..., description="Smallest remaining count.")
    reset_seconds: int = Field(..., description="Seconds until the longest window resets.")

    @classmethod
    def from_decision(cls, decision: CombinedRateLimit) -> "RateLimitCheckResponse":
        return cls(
            success=decision.success,
            limit=decision.limit,
            remaining=decision.remaining,
            reset_seconds=decision.reset_seconds,
        )
