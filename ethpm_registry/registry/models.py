"""Registry data models — releases, package snapshots and notifications."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def release_id(name: str, version: str) -> str:
    """Deterministic identifier for a (name, version) pair."""
    return hashlib.sha256((name + version).encode("utf-8")).hexdigest()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Release:
    """One published version of a package."""

    name: str
    version: str
    manifest_uri: str

    @property
    def qualified_id(self) -> str:
        return f"{self.name}@{self.version}"

    @property
    def release_id(self) -> str:
        return release_id(self.name, self.version)


@dataclass(frozen=True)
class PackageRecord:
    """Read-only snapshot of everything the registry knows about one name."""

    name: str
    owner: str
    versions: tuple[str, ...] = ()
    releases: tuple[Release, ...] = ()

    @property
    def latest_version(self) -> Optional[str]:
        """The most recently published version, not the highest."""
        return self.versions[-1] if self.versions else None


@dataclass(frozen=True)
class PackagePublished:
    """Emitted after a release is committed."""

    name: str
    version: str
    manifest_uri: str
    caller: str
    emitted_at: str = field(default_factory=_now)

    event = "package.published"


@dataclass(frozen=True)
class PackageOwnershipTransferred:
    """Emitted after the owner of a package changes."""

    name: str
    previous_owner: str
    new_owner: str
    emitted_at: str = field(default_factory=_now)

    event = "package.ownership_transferred"
