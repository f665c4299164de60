"""Registry errors.

Every rejected registry call raises a ``RegistryError`` subclass. The
``code`` attribute is stable across releases so callers can branch on it;
the message is for humans.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for rejected registry calls. No state was changed."""

    code = "REGISTRY_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class EmptyField(RegistryError):
    code = "EMPTY_FIELD"

    def __init__(self, field_name: str):
        super().__init__(f"Field '{field_name}' must not be empty")
        self.field_name = field_name


class InvalidNameSyntax(RegistryError):
    code = "INVALID_NAME_SYNTAX"

    def __init__(self, name: str):
        super().__init__(
            f"Invalid package name {name!r}: use lowercase letters, digits and hyphens only"
        )
        self.name = name


class Unauthorized(RegistryError):
    code = "UNAUTHORIZED"

    def __init__(self, name: str, caller: str):
        super().__init__(f"Caller {caller!r} is not the owner of package '{name}'")
        self.name = name
        self.caller = caller


class DuplicateVersion(RegistryError):
    code = "DUPLICATE_VERSION"

    def __init__(self, name: str, version: str):
        super().__init__(f"Version '{version}' of package '{name}' is already published")
        self.name = name
        self.version = version


class NotFound(RegistryError):
    code = "NOT_FOUND"

    def __init__(self, name: str, version: str):
        super().__init__(f"No release recorded for '{name}@{version}'")
        self.name = name
        self.version = version


class InvalidTransferTarget(RegistryError):
    code = "INVALID_TRANSFER_TARGET"

    def __init__(self, name: str):
        super().__init__(f"Ownership of package '{name}' cannot be transferred to an empty owner")
        self.name = name
