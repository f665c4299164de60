"""Registry router -- publish, transfer and look up EthPM package releases."""

from __future__ import annotations

import threading
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ethpm_registry.config import RegistrySettings
from ethpm_registry.registry.errors import RegistryError
from ethpm_registry.registry.models import Release
from ethpm_registry.registry.service import RegistryService
from ethpm_registry.standard.manifest_validator import validate_manifest
from web.backend.app.middleware.auth import get_caller
from web.backend.app.models.api import (
    ExistsResponse,
    OwnerResponse,
    PackageResponse,
    PublishRequest,
    ReleaseResponse,
    TransferRequest,
    TransferResponse,
    ValidateResponse,
    ValidationIssueResponse,
)

router = APIRouter(prefix="/api/registry", tags=["registry"])

_ERROR_STATUS = {
    "EMPTY_FIELD": status.HTTP_400_BAD_REQUEST,
    "INVALID_NAME_SYNTAX": status.HTTP_400_BAD_REQUEST,
    "INVALID_TRANSFER_TARGET": status.HTTP_400_BAD_REQUEST,
    "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,
    "DUPLICATE_VERSION": status.HTTP_409_CONFLICT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
}

# One service per process, so per-package locks are shared by all requests.
_service: Optional[RegistryService] = None
_service_lock = threading.Lock()


def get_service() -> RegistryService:
    """Return the process-wide RegistryService for the configured directory."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = RegistryService.from_settings(RegistrySettings.from_env())
    return _service


def _http_error(exc: RegistryError) -> HTTPException:
    return HTTPException(
        status_code=_ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
        detail=exc.to_dict(),
    )


def _release_to_response(release: Release) -> ReleaseResponse:
    return ReleaseResponse(
        name=release.name,
        version=release.version,
        manifest_uri=release.manifest_uri,
        release_id=release.release_id,
        qualified_id=release.qualified_id,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("/packages", response_model=list[str], summary="List package names")
async def list_packages(service: RegistryService = Depends(get_service)):
    """Every claimed package name, in the order it was first published."""
    return service.list_packages()


@router.get("/packages/{name}", response_model=PackageResponse, summary="Get a package")
async def get_package(name: str, service: RegistryService = Depends(get_service)):
    record = service.get_package(name)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "NOT_FOUND", "message": f"Package '{name}' not found"},
        )
    return PackageResponse(
        name=record.name,
        owner=record.owner,
        versions=list(record.versions),
        releases=[_release_to_response(r) for r in record.releases],
        latest_version=record.latest_version,
    )


@router.get("/packages/{name}/owner", response_model=OwnerResponse, summary="Get the owner")
async def get_owner(name: str, service: RegistryService = Depends(get_service)):
    return OwnerResponse(name=name, owner=service.get_owner(name))


@router.get(
    "/packages/{name}/versions",
    response_model=list[str],
    summary="List versions in publish order",
)
async def get_versions(name: str, service: RegistryService = Depends(get_service)):
    return service.get_versions(name)


@router.get(
    "/packages/{name}/versions/{version}",
    response_model=ReleaseResponse,
    summary="Get a release",
)
async def get_release(name: str, version: str, service: RegistryService = Depends(get_service)):
    try:
        uri = service.get_package_uri(name, version)
    except RegistryError as exc:
        raise _http_error(exc)
    return _release_to_response(Release(name=name, version=version, manifest_uri=uri))


@router.get(
    "/packages/{name}/versions/{version}/exists",
    response_model=ExistsResponse,
    summary="Check whether a release exists",
)
async def release_exists(name: str, version: str, service: RegistryService = Depends(get_service)):
    return ExistsResponse(name=name, version=version, exists=service.package_exists(name, version))


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@router.post(
    "/packages/{name}/versions",
    response_model=ReleaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a release",
)
def publish_release(
    name: str,
    request: PublishRequest,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Publish ``request.manifest_uri`` as ``name@request.version``.

    The first publish of a name makes the caller its owner.
    """
    try:
        release = service.publish(name, request.version, request.manifest_uri, caller)
    except RegistryError as exc:
        raise _http_error(exc)
    return _release_to_response(release)


@router.post(
    "/packages/{name}/owner",
    response_model=TransferResponse,
    summary="Transfer package ownership",
)
def transfer_ownership(
    name: str,
    request: TransferRequest,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    try:
        previous = service.transfer_ownership(name, request.new_owner, caller)
    except RegistryError as exc:
        raise _http_error(exc)
    return TransferResponse(name=name, previous_owner=previous, new_owner=request.new_owner)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@router.post("/validate", response_model=ValidateResponse, summary="Validate a manifest")
async def validate(manifest: Any = Body(...)):
    """Check the names and version tag of an EthPM v3 manifest document."""
    result = validate_manifest(manifest)
    return ValidateResponse(
        passed=result.passed,
        summary=result.summary(),
        issues=[
            ValidationIssueResponse(
                severity=i.severity.value, code=i.code, message=i.message, path=i.path
            )
            for i in result.issues
        ],
    )
