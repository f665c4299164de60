"""Audit journal for registry notifications.

Every committed publish or ownership transfer, and every rejected call, is
appended as one JSON line to a daily file under the audit directory. The
journal is write-only from the registry's point of view; nothing in the
registry reads it back to make decisions.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ethpm_registry.registry.errors import RegistryError
from ethpm_registry.registry.models import PackageOwnershipTransferred, PackagePublished

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single journal entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    package: str
    version: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True

    @property
    def resource_id(self) -> str:
        return f"{self.package}@{self.version}" if self.version else self.package


class AuditLogger:
    """Newline-delimited JSON journal, one file per UTC day."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping malformed audit line %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        actor: str,
        action: str,
        package: str,
        version: str = "",
        details: Optional[dict[str, Any]] = None,
        success: bool = True,
    ) -> AuditEntry:
        """Append an entry and return it."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            actor=actor,
            action=action,
            package=package,
            version=version,
            details=details or {},
            success=success,
        )
        with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def record(self, notification) -> AuditEntry:
        """Journal a committed registry notification."""
        if isinstance(notification, PackagePublished):
            return self.log_event(
                actor=notification.caller,
                action=notification.event,
                package=notification.name,
                version=notification.version,
                details={"manifest_uri": notification.manifest_uri},
            )
        if isinstance(notification, PackageOwnershipTransferred):
            return self.log_event(
                actor=notification.previous_owner,
                action=notification.event,
                package=notification.name,
                details={
                    "previous_owner": notification.previous_owner,
                    "new_owner": notification.new_owner,
                },
            )
        raise TypeError(f"Unsupported notification: {type(notification).__name__}")

    def record_rejection(
        self, action: str, caller: str, package: str, error: RegistryError, version: str = ""
    ) -> AuditEntry:
        """Journal a rejected call together with its error code."""
        return self.log_event(
            actor=caller,
            action=action,
            package=package,
            version=version,
            details=error.to_dict(),
            success=False,
        )

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        package: Optional[str] = None,
        success: Optional[bool] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered entries, newest first."""
        entries = self._read_all_entries()

        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        if package:
            entries = [e for e in entries if e.package == package]
        if success is not None:
            entries = [e for e in entries if e.success == success]

        # Stable sort keeps append order for entries in the same microsecond
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export_events(self, fmt: str = "json", **filters: Any) -> str:
        """Export entries as ``json`` or ``csv``."""
        entries = self.get_events(**filters)

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(["id", "timestamp", "actor", "action", "package", "version", "success"])
            for e in entries:
                writer.writerow([e.id, e.timestamp, e.actor, e.action, e.package, e.version, e.success])
            return buf.getvalue()

        return json.dumps([asdict(e) for e in entries], indent=2)
