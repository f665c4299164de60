"""Registry service — the only entry point that mutates registry state.

Each mutating call validates its input, then checks and updates the state
while holding the lock for the package name, so two concurrent first
publishes of the same name cannot both claim it. A call either commits
every effect and emits its notification, or raises a ``RegistryError``
and leaves the state untouched.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Callable, Optional

from ethpm_registry.audit.audit_log import AuditLogger
from ethpm_registry.config import RegistrySettings
from ethpm_registry.registry.errors import (
    DuplicateVersion,
    EmptyField,
    InvalidNameSyntax,
    InvalidTransferTarget,
    NotFound,
    RegistryError,
    Unauthorized,
)
from ethpm_registry.registry.models import (
    PackageOwnershipTransferred,
    PackagePublished,
    PackageRecord,
    Release,
    release_id,
)
from ethpm_registry.registry.state import FileRegistryState, RegistryState
from ethpm_registry.standard.naming import is_valid_package_name

logger = logging.getLogger(__name__)

Notification = PackagePublished | PackageOwnershipTransferred
Subscriber = Callable[[Notification], None]


class RegistryService:
    """Publish, transfer and look up EthPM package releases."""

    def __init__(
        self,
        state: Optional[RegistryState] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.state = state if state is not None else RegistryState()
        self.audit = audit
        self._subscribers: list[Subscriber] = []
        # Entries vanish once no call holds the lock, so unknown names leave nothing behind
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(cls, settings: RegistrySettings) -> "RegistryService":
        """Build a file-backed service, with a journal unless it is disabled."""
        audit = AuditLogger(settings.resolved_audit_dir) if settings.audit_enabled else None
        return cls(state=FileRegistryState(settings.registry_dir), audit=audit)

    def subscribe(self, callback: Subscriber) -> None:
        """Call ``callback`` with every notification emitted from now on."""
        self._subscribers.append(callback)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def publish(self, name: str, version: str, manifest_uri: str, caller: str) -> Release:
        """Record ``manifest_uri`` as release ``name@version``.

        The first successful publish of a name makes ``caller`` its owner;
        after that only the owner may publish. A version is never
        overwritten.

        Raises:
            EmptyField, InvalidNameSyntax, DuplicateVersion, Unauthorized
        """
        try:
            _require(name=name, version=version, manifest_uri=manifest_uri, caller=caller)
            if not is_valid_package_name(name):
                raise InvalidNameSyntax(name)

            with self._lock_for(name), self.state.transaction():
                if self.state.reference_of(name, version) is not None:
                    raise DuplicateVersion(name, version)
                owner = self.state.owner_of(name)
                if owner is not None and owner != caller:
                    raise Unauthorized(name, caller)
                claimed = self.state.add_release(name, version, manifest_uri, caller)
        except RegistryError as exc:
            self._reject(PackagePublished.event, caller, name, exc, version=version)
            raise

        if claimed:
            logger.info("Package '%s' claimed by %s", name, caller)
        logger.info("Published %s@%s -> %s", name, version, manifest_uri)
        self._emit(
            PackagePublished(name=name, version=version, manifest_uri=manifest_uri, caller=caller)
        )
        return Release(name=name, version=version, manifest_uri=manifest_uri)

    def transfer_ownership(self, name: str, new_owner: str, caller: str) -> str:
        """Hand ``name`` to ``new_owner``. Returns the previous owner.

        Releases and the version history are left as they are.

        Raises:
            Unauthorized, InvalidTransferTarget
        """
        try:
            if self.state.owner_of(name) is None:
                raise Unauthorized(name, caller)
            with self._lock_for(name), self.state.transaction():
                owner = self.state.owner_of(name)
                if owner is None or not caller or owner != caller:
                    raise Unauthorized(name, caller)
                if not isinstance(new_owner, str) or not new_owner.strip():
                    raise InvalidTransferTarget(name)
                previous = self.state.set_owner(name, new_owner)
        except RegistryError as exc:
            self._reject(PackageOwnershipTransferred.event, caller, name, exc)
            raise

        logger.info("Ownership of '%s' transferred from %s to %s", name, previous, new_owner)
        self._emit(
            PackageOwnershipTransferred(name=name, previous_owner=previous, new_owner=new_owner)
        )
        return previous

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_package_uri(self, name: str, version: str) -> str:
        """Return the manifest URI exactly as it was published.

        Raises:
            NotFound: nothing was published for ``name@version``.
        """
        uri = self.state.reference_of(name, version)
        if not uri:
            raise NotFound(name, version)
        return uri

    def package_exists(self, name: str, version: str) -> bool:
        return bool(self.state.reference_of(name, version))

    def get_versions(self, name: str) -> list[str]:
        """Versions of ``name`` in publish order; empty for unknown names."""
        return self.state.versions_of(name)

    def get_owner(self, name: str) -> Optional[str]:
        """The current owner, or None if ``name`` was never published."""
        return self.state.owner_of(name)

    def get_release_id(self, name: str, version: str) -> str:
        if not self.package_exists(name, version):
            raise NotFound(name, version)
        return release_id(name, version)

    def list_packages(self) -> list[str]:
        """Every claimed name, in the order it was first published."""
        return self.state.package_names()

    def package_count(self) -> int:
        return len(self.state.package_names())

    def get_package(self, name: str) -> Optional[PackageRecord]:
        owner = self.state.owner_of(name)
        if owner is None:
            return None
        versions = self.state.versions_of(name)
        releases = tuple(
            Release(name=name, version=v, manifest_uri=self.state.reference_of(name, v))
            for v in versions
        )
        return PackageRecord(name=name, owner=owner, versions=tuple(versions), releases=releases)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock

    def _emit(self, notification: Notification) -> None:
        # The mutation is already committed; a failing listener cannot undo it.
        if self.audit is not None:
            try:
                self.audit.record(notification)
            except OSError:
                logger.exception("Failed to journal %s", notification.event)
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:
                logger.exception("Subscriber %r failed on %s", callback, notification.event)

    def _reject(
        self, action: str, caller: str, name: str, error: RegistryError, version: str = ""
    ) -> None:
        logger.warning("Rejected %s for '%s' by %s: %s", action, name, caller, error)
        if self.audit is None:
            return
        try:
            self.audit.record_rejection(action, caller or "", name or "", error, version=version or "")
        except OSError:
            logger.exception("Failed to journal rejected %s", action)


def _require(**fields: str) -> None:
    for field_name, value in fields.items():
        if not value:
            raise EmptyField(field_name)
