"""Naming rules for EthPM packages and contracts.

Every predicate here is total: it accepts any value, never raises, and only
answers ``True`` or ``False``. Character classes are ASCII-only, so letters
such as ``é`` or full-width digits are rejected even though ``str.isalnum``
would accept them.
"""

from __future__ import annotations

import re

from ethpm_registry.standard import (
    FORBIDDEN_MANIFEST_KEY,
    MANIFEST_VERSION,
    MAX_CONTRACT_ALIAS_LENGTH,
    MAX_CONTRACT_NAME_LENGTH,
)

PACKAGE_NAME_PATTERN = re.compile(r"[a-z0-9-]+")
CONTRACT_NAME_PATTERN = re.compile(
    r"[A-Za-z_$][A-Za-z0-9_$]{0,%d}" % (MAX_CONTRACT_NAME_LENGTH - 1)
)
# Whole-string class only: an alias may start with a digit or a hyphen.
CONTRACT_ALIAS_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,%d}" % MAX_CONTRACT_ALIAS_LENGTH)


def _matches(pattern: re.Pattern, value) -> bool:
    if not isinstance(value, str):
        return False
    return pattern.fullmatch(value) is not None


def is_valid_package_name(name) -> bool:
    """Lowercase ASCII letters, digits and hyphens; at least one character."""
    return _matches(PACKAGE_NAME_PATTERN, name)


def is_valid_contract_name(name) -> bool:
    """1-256 chars, led by a letter, ``_`` or ``$``; then letters, digits, ``_``, ``$``."""
    return _matches(CONTRACT_NAME_PATTERN, name)


def is_valid_contract_alias(alias) -> bool:
    """1-256 chars drawn from letters, digits, ``-`` and ``_``."""
    return _matches(CONTRACT_ALIAS_PATTERN, alias)


def is_valid_manifest_version(version) -> bool:
    return isinstance(version, str) and version == MANIFEST_VERSION


def is_forbidden_key(key) -> bool:
    return isinstance(key, str) and key == FORBIDDEN_MANIFEST_KEY
