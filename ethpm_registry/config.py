"""Registry settings, read from the environment.

- ``ETHPM_REGISTRY_DIR`` -- registry data directory (default ``.ethpm_registry``)
- ``ETHPM_AUDIT_DIR`` -- audit journal directory (default ``<registry dir>/audit_logs``)
- ``ETHPM_AUDIT_ENABLED`` -- set to ``0``/``false``/``no`` to disable the journal
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_REGISTRY_DIR = ".ethpm_registry"

_FALSEY = {"0", "false", "no", "off"}


@dataclass
class RegistrySettings:
    registry_dir: Path = Path(DEFAULT_REGISTRY_DIR)
    audit_dir: Optional[Path] = None
    audit_enabled: bool = True

    @property
    def resolved_audit_dir(self) -> Path:
        return self.audit_dir or self.registry_dir / "audit_logs"

    @classmethod
    def from_env(
        cls, env: Optional[Mapping[str, str]] = None, registry_dir: Optional[str] = None
    ) -> "RegistrySettings":
        """Build settings from ``env`` (default ``os.environ``).

        An explicit ``registry_dir`` wins over ``ETHPM_REGISTRY_DIR``.
        """
        env = os.environ if env is None else env
        audit_dir = env.get("ETHPM_AUDIT_DIR")
        return cls(
            registry_dir=Path(registry_dir or env.get("ETHPM_REGISTRY_DIR", DEFAULT_REGISTRY_DIR)),
            audit_dir=Path(audit_dir) if audit_dir else None,
            audit_enabled=env.get("ETHPM_AUDIT_ENABLED", "1").strip().lower() not in _FALSEY,
        )
