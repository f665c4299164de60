"""Manifest validator for EthPM v3 manifest documents.

Applies the naming rules to every name-bearing field of a manifest:
- The ``manifest`` tag is exactly ``ethpm/3`` and the v2 key is absent
- ``name`` is a valid package name and comes with a ``version``
- ``contractTypes`` keys are valid aliases, their ``contractName`` valid names
- Deployment instance keys are valid aliases referencing known contract types
- ``buildDependencies`` keys are valid package names

Sources, bytecode and ABI content are not inspected.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from ethpm_registry.standard.naming import (
    is_forbidden_key,
    is_valid_contract_alias,
    is_valid_contract_name,
    is_valid_manifest_version,
    is_valid_package_name,
)


class Severity(Enum):
    ERROR = "error"  # Manifest is not a valid v3 document
    WARNING = "warning"  # Valid, but probably not what the author meant
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single issue found in a manifest."""

    severity: Severity
    code: str  # Machine-readable issue code
    message: str
    path: str = ""  # Dotted location, e.g. "contractTypes.Owned.contractName"


@dataclass
class ManifestValidationResult:
    """Result of validating one manifest document."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not any(i.severity == Severity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def summary(self) -> str:
        e = len(self.errors)
        w = len(self.warnings)
        status = "PASS" if self.passed else "FAIL"
        return f"[{status}] {e} error(s), {w} warning(s)"

    def _add(self, severity: Severity, code: str, message: str, path: str = "") -> None:
        self.issues.append(ValidationIssue(severity=severity, code=code, message=message, path=path))


def load_manifest(path: str | Path) -> dict:
    """Read a manifest from a ``.json`` file, or from YAML for any other suffix."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def validate_manifest(data) -> ManifestValidationResult:
    """Run every naming check over a parsed manifest document.

    Args:
        data: The parsed manifest (top-level JSON object).

    Returns:
        ManifestValidationResult with all issues found.
    """
    result = ManifestValidationResult()
    if not isinstance(data, dict):
        result._add(
            Severity.ERROR,
            "NOT_AN_OBJECT",
            f"Manifest must be a JSON object, got {type(data).__name__}.",
        )
        return result

    _check_manifest_version(data, result)
    _check_forbidden_keys(data, result)
    _check_package_name(data, result)
    _check_contract_types(data, result)
    _check_deployments(data, result)
    _check_build_dependencies(data, result)

    return result


def _check_manifest_version(data: dict, result: ManifestValidationResult):
    tag = data.get("manifest")
    if not is_valid_manifest_version(tag):
        result._add(
            Severity.ERROR,
            "MANIFEST_VERSION",
            f"Field 'manifest' must be 'ethpm/3', got {tag!r}.",
            "manifest",
        )


def _check_forbidden_keys(data: dict, result: ManifestValidationResult):
    for key in data:
        if is_forbidden_key(key):
            result._add(
                Severity.ERROR,
                "FORBIDDEN_KEY",
                f"Key '{key}' belongs to v2 manifests and is not allowed in v3.",
                key,
            )


def _check_package_name(data: dict, result: ManifestValidationResult):
    name = data.get("name")
    version = data.get("version")

    if name is None and version is None:
        result._add(
            Severity.INFO,
            "NAME_MISSING",
            "Manifest has no 'name' or 'version'; it cannot be published to a registry.",
        )
        return

    if name is not None and not is_valid_package_name(name):
        result._add(
            Severity.ERROR,
            "PACKAGE_NAME",
            f"Package name {name!r} may only contain lowercase letters, digits and hyphens.",
            "name",
        )

    if name is not None and not version:
        result._add(
            Severity.ERROR,
            "VERSION_MISSING",
            "Manifest declares a 'name' but no 'version'.",
            "version",
        )


def _check_contract_types(data: dict, result: ManifestValidationResult):
    contract_types = data.get("contractTypes") or {}
    if not isinstance(contract_types, dict):
        return

    for alias, contract_type in contract_types.items():
        if not is_valid_contract_alias(alias):
            result._add(
                Severity.ERROR,
                "CONTRACT_ALIAS",
                f"Contract alias {alias!r} must be 1-256 letters, digits, '-' or '_'.",
                f"contractTypes.{alias}",
            )
        if not isinstance(contract_type, dict) or "contractName" not in contract_type:
            continue
        contract_name = contract_type["contractName"]
        if not is_valid_contract_name(contract_name):
            result._add(
                Severity.ERROR,
                "CONTRACT_NAME",
                f"Contract name {contract_name!r} must start with a letter, '_' or '$' "
                f"and contain only letters, digits, '_' or '$' (max 256).",
                f"contractTypes.{alias}.contractName",
            )


def _check_deployments(data: dict, result: ManifestValidationResult):
    deployments = data.get("deployments") or {}
    if not isinstance(deployments, dict):
        return

    contract_types = data.get("contractTypes")
    declared = set(contract_types) if isinstance(contract_types, dict) else set()
    for chain_uri, instances in deployments.items():
        if not isinstance(instances, dict):
            continue
        for alias, instance in instances.items():
            path = f"deployments.{chain_uri}.{alias}"
            if not is_valid_contract_alias(alias):
                result._add(
                    Severity.ERROR,
                    "DEPLOYMENT_ALIAS",
                    f"Deployment alias {alias!r} must be 1-256 letters, digits, '-' or '_'.",
                    path,
                )
            if not isinstance(instance, dict):
                continue
            contract_type = instance.get("contractType", "")
            # "<dependency>:<alias>" points into a build dependency
            if isinstance(contract_type, str) and (
                ":" in contract_type or contract_type in declared
            ):
                continue
            result._add(
                Severity.WARNING,
                "DEPLOYMENT_CONTRACT_TYPE",
                f"Deployment {alias!r} references contract type {contract_type!r} "
                f"which is not declared in 'contractTypes'.",
                f"{path}.contractType",
            )


def _check_build_dependencies(data: dict, result: ManifestValidationResult):
    dependencies = data.get("buildDependencies") or {}
    if not isinstance(dependencies, dict):
        return

    for dep_name in dependencies:
        if not is_valid_package_name(dep_name):
            result._add(
                Severity.ERROR,
                "BUILD_DEPENDENCY",
                f"Build dependency {dep_name!r} is not a valid package name.",
                f"buildDependencies.{dep_name}",
            )
