"""Pydantic schemas for admission requests."""

from __future__ import annotations

from pydantic import BaseModel, Field

from vaultgate.domain.limits import ResourceKind


class CreateAdmissionRequest(BaseModel):
    """Ask whether the caller may create more entities of a kind."""

    kind: ResourceKind = Field(..., description="Entity kind about to be created.")
    incoming_count: int = Field(
        1,
        ge=0,
        description="Number of entities the caller is about to create.",
    )


class UploadFileItem(BaseModel):
    size_bytes: int = Field(..., ge=0, description="File size in bytes.")
    mime_type: str | None = Field(
        default=None,
        description="Declared MIME type, checked against the allowed prefixes.",
    )
    filename: str | None = Field(
        default=None,
        description="Original filename, checked against the disallowed extensions.",
    )


class UploadAdmissionRequest(BaseModel):
    """Ask whether a batch of files may be stored. All-or-nothing."""

    files: list[UploadFileItem] = Field(
        ...,
        min_length=1,
        description="Files in the upload request.",
    )
