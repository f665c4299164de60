"""Caller middleware -- FastAPI dependency for identifying the calling account.

Mutating endpoints act on behalf of the account named in the
``X-Registry-Caller`` header. The registry compares it with the recorded
owner; authenticating the header itself is left to the deployment (for
example a gateway that sets it from a verified signature).
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status


async def get_caller(
    x_registry_caller: Optional[str] = Header(None, alias="X-Registry-Caller"),
) -> str:
    """Return the caller account or raise ``401 Unauthorized``."""
    if x_registry_caller and x_registry_caller.strip():
        return x_registry_caller

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "CALLER_MISSING", "message": "X-Registry-Caller header is required"},
    )
