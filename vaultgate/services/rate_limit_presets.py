"""Named limiter sets for the vault's mutating endpoints.

Each preset pairs an IP-scoped limiter with an optional subject-scoped one
(the user and action, the target file slug, or the email a password reset
is requested for). All presets use a 60 second fixed window.
"""

from __future__ import annotations

from dataclasses import dataclass

from vaultgate.services.rate_limiter import RateLimitRule

DEFAULT_WINDOW_MS = 60_000


@dataclass(frozen=True)
class RateLimitPreset:
    """Limiter pair for one endpoint.

    Attributes:
        name: Preset identifier used in the URL.
        ip_limit: Hits per window per client IP.
        ip_key: Key template for the IP limiter (``{ip}`` placeholder).
        subject_limit: Hits per window per subject, or None for IP-only presets.
        subject_key: Key template for the subject limiter (``{subject}``).
        window_ms: Window length shared by both limiters.
    """

    name: str
    ip_limit: int
    ip_key: str = "ip:{ip}"
    subject_limit: int | None = None
    subject_key: str | None = None
    window_ms: int = DEFAULT_WINDOW_MS

    def rules(self, *, ip: str, subject: str | None = None) -> list[RateLimitRule]:
        """Build the rules for one request.

        Raises:
            ValueError: If the preset needs a subject and none was given.
        """
        rules = [RateLimitRule(self.ip_key.format(ip=ip), self.ip_limit, self.window_ms)]
        if self.subject_limit is not None and self.subject_key is not None:
            if not subject:
                raise ValueError(f"rate limit preset '{self.name}' requires a subject")
            rules.append(
                RateLimitRule(self.subject_key.format(subject=subject), self.subject_limit, self.window_ms)
            )
        return rules


PRESETS: dict[str, RateLimitPreset] = {
    preset.name: preset
    for preset in (
        RateLimitPreset("shortlink-create", ip_limit=15, subject_limit=10, subject_key="u:{subject}:shortlink-create"),
        RateLimitPreset("password-reset", ip_limit=10, subject_limit=5, subject_key="pwreset:{subject}"),
        RateLimitPreset("profile-update", ip_limit=20, ip_key="ip:{ip}:profile-update"),
        RateLimitPreset("file-update", ip_limit=20, subject_limit=10, subject_key="file:{subject}"),
        RateLimitPreset("folder-create", ip_limit=10, subject_limit=5, subject_key="u:{subject}:folder-create"),
        RateLimitPreset("tag-create", ip_limit=20, subject_limit=10, subject_key="u:{subject}:tag-create"),
        RateLimitPreset("twofa-verify", ip_limit=10, subject_limit=5, subject_key="u:{subject}:2fa-verify"),
    )
}


def get_preset(name: str) -> RateLimitPreset | None:
    return PRESETS.get(name)
