"""Registry state — the three tables behind the registry.

``owner_of[name]``, ``reference_of[name][version]`` and ``version_index[name]``.
The tables only grow: there is no operation that removes a release, a
version or a package. Callers are expected to validate before writing;
this layer only keeps the tables consistent with each other and, for
``FileRegistryState``, with the file on disk.
"""

from __future__ import annotations

import fcntl
import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class RegistryState:
    """In-memory registry tables.

    Writes are serialized by an internal lock and are all-or-nothing: if
    ``_persist`` raises, the write is rolled back before the error
    propagates. Reads take no lock and see the last committed write.
    """

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}
        self._releases: dict[str, dict[str, str]] = {}
        self._versions: dict[str, list[str]] = {}
        self._packages: list[str] = []  # in order of first claim
        self._write_lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Hold the write lock across a check-then-write sequence.

        Reads made inside the block see the latest committed state, and no
        other writer can commit until the block exits.
        """
        with self._write_lock:
            yield

    def _refresh(self) -> None:
        """Hook for durable subclasses to pick up writes made elsewhere."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def owner_of(self, name: str) -> Optional[str]:
        self._refresh()
        return self._owners.get(name)

    def reference_of(self, name: str, version: str) -> Optional[str]:
        self._refresh()
        return self._releases.get(name, {}).get(version)

    def versions_of(self, name: str) -> list[str]:
        self._refresh()
        return list(self._versions.get(name, ()))

    def package_names(self) -> list[str]:
        self._refresh()
        return list(self._packages)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_release(self, name: str, version: str, manifest_uri: str, owner: str) -> bool:
        """Record a release, claiming ``name`` for ``owner`` if it is unclaimed.

        Returns True when this call claimed the name.
        """
        with self.transaction():
            claimed = name not in self._owners
            if claimed:
                self._owners[name] = owner
                self._packages.append(name)
            self._releases.setdefault(name, {})[version] = manifest_uri
            self._versions.setdefault(name, []).append(version)

            try:
                self._persist()
            except Exception:
                self._versions[name].pop()
                del self._releases[name][version]
                if claimed:
                    self._packages.pop()
                    del self._owners[name]
                    del self._releases[name]
                    del self._versions[name]
                raise
        return claimed

    def set_owner(self, name: str, owner: str) -> str:
        """Replace the owner of a claimed name. Returns the previous owner."""
        with self.transaction():
            previous = self._owners[name]
            self._owners[name] = owner
            try:
                self._persist()
            except Exception:
                self._owners[name] = previous
                raise
        return previous

    def _persist(self) -> None:
        """Hook for durable subclasses; called with the write lock held."""

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "owners": dict(self._owners),
            "releases": {name: dict(r) for name, r in self._releases.items()},
            "versions": {name: list(v) for name, v in self._versions.items()},
            "packages": list(self._packages),
        }

    def _load_dict(self, data: dict) -> None:
        self._owners = dict(data.get("owners", {}))
        self._releases = {name: dict(r) for name, r in data.get("releases", {}).items()}
        self._versions = {name: list(v) for name, v in data.get("versions", {}).items()}
        self._packages = list(data.get("packages", list(self._owners)))


class FileRegistryState(RegistryState):
    """Registry tables persisted as JSON in a local directory.

    Several processes may share one directory (for example the CLI and the
    HTTP server). A transaction takes an exclusive ``flock`` on
    ``index.lock`` and re-reads ``index.json`` before any check runs, so a
    writer always decides against the state other processes committed.
    Reads reload the index whenever the file changed on disk.
    """

    INDEX_FILE = "index.json"
    LOCK_FILE = "index.lock"

    def __init__(self, registry_dir: str | Path):
        super().__init__()
        self.registry_dir = Path(registry_dir)
        self.registry_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.registry_dir / self.INDEX_FILE
        self.lock_path = self.registry_dir / self.LOCK_FILE
        self._stamp: Optional[tuple[int, int]] = None
        self._lock_depth = 0
        self._lock_fh = None
        self._load_index()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._write_lock:
            if self._lock_depth == 0:
                fh = open(self.lock_path, "a")
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
                try:
                    self._load_index(force=True)
                except BaseException:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
                    fh.close()
                    raise
                self._lock_fh = fh
            self._lock_depth += 1
            try:
                yield
            finally:
                self._lock_depth -= 1
                if self._lock_depth == 0:
                    fcntl.flock(self._lock_fh.fileno(), fcntl.LOCK_UN)
                    self._lock_fh.close()
                    self._lock_fh = None

    def _current_stamp(self) -> Optional[tuple[int, int]]:
        try:
            st = self.index_path.stat()
        except FileNotFoundError:
            return None
        return (st.st_mtime_ns, st.st_size)

    def _refresh(self) -> None:
        stamp = self._current_stamp()
        if stamp is not None and stamp != self._stamp:
            with self._write_lock:
                self._load_index()

    def _load_index(self, force: bool = False) -> None:
        # index.json is only ever replaced whole, so it can be read without the flock
        stamp = self._current_stamp()
        if stamp is None or (stamp == self._stamp and not force):
            return
        with open(self.index_path, encoding="utf-8") as f:
            self._load_dict(json.load(f))
        self._stamp = stamp
        logger.debug("Loaded %d package(s) from %s", len(self._packages), self.index_path)

    def _persist(self) -> None:
        tmp_path = self.index_path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        tmp_path.replace(self.index_path)
        self._stamp = self._current_stamp()
        logger.debug("Wrote registry index to %s", self.index_path)
