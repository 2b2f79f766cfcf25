"""OpenAPI schema additions for the gateway-facing API.

Every operation is documented as requiring the gateway key (``X-API-Key``)
together with the forwarded user id (``X-User-Id``); ``/health`` is public.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

SECURITY_SCHEMES: Dict[str, Dict[str, str]] = {
    "ApiKeyAuth": {
        "type": "apiKey",
        "in": "header",
        "name": "X-API-Key",
        "description": "Gateway key of the vault web tier.",
    },
    "UserId": {
        "type": "apiKey",
        "in": "header",
        "name": "X-User-Id",
        "description": "Id of the end user the request is made for. "
        "X-User-Role (user, admin, owner) may accompany it.",
    },
}

TAGS = [
    ("Limits", "Effective limits and remaining usage for the calling user."),
    ("Admission", "Checks run before an entity is created or an upload is stored."),
    ("Rate Limit", "Fixed-window throttling for gateway-owned flows."),
    ("Admin", "Server default limits and per-user overrides; admin or owner only."),
    ("Health", "Liveness."),
]

PUBLIC_PATHS = ("/health",)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Wrap ``app.openapi`` so the cached schema carries auth and tag metadata."""

    build_schema = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = build_schema()

        schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
        for name, scheme in SECURITY_SCHEMES.items():
            schemes.setdefault(name, scheme)
        schema.setdefault("security", [{name: [] for name in SECURITY_SCHEMES}])

        tags = schema.setdefault("tags", [])
        known = {tag.get("name") for tag in tags}
        tags.extend(
            {"name": name, "description": description}
            for name, description in TAGS
            if name not in known
        )

        for path, operations in schema.get("paths", {}).items():
            if path not in PUBLIC_PATHS:
                continue
            for operation in operations.values():
                if isinstance(operation, dict):
                    operation["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
