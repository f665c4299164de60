"""Pydantic models for API request/response serialization.

These models mirror the ethpm_registry dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Registry models
# ---------------------------------------------------------------------------


class ReleaseResponse(BaseModel):
    """Mirrors ethpm_registry.registry.models.Release."""

    name: str
    version: str
    manifest_uri: str
    release_id: str = ""
    qualified_id: str = ""


class PackageResponse(BaseModel):
    """Mirrors ethpm_registry.registry.models.PackageRecord."""

    name: str
    owner: str
    versions: list[str] = Field(default_factory=list)
    releases: list[ReleaseResponse] = Field(default_factory=list)
    latest_version: Optional[str] = None


class OwnerResponse(BaseModel):
    name: str
    owner: Optional[str] = None


class ExistsResponse(BaseModel):
    name: str
    version: str
    exists: bool


class PublishRequest(BaseModel):
    version: str
    manifest_uri: str


class TransferRequest(BaseModel):
    new_owner: str


class TransferResponse(BaseModel):
    name: str
    previous_owner: str
    new_owner: str


# ---------------------------------------------------------------------------
# Validation models
# ---------------------------------------------------------------------------


class ValidationIssueResponse(BaseModel):
    """Mirrors ethpm_registry.standard.manifest_validator.ValidationIssue."""

    severity: str
    code: str
    message: str
    path: str = ""


class ValidateResponse(BaseModel):
    passed: bool
    summary: str
    issues: list[ValidationIssueResponse] = Field(default_factory=list)

