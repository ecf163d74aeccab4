"""JWT access tokens — signing and verification."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt

from leave_manager.config import settings


def create_access_token(
    employee_id: uuid.UUID,
    *,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Return a signed access token whose subject is the employee id.

    The role is deliberately not a claim: it is read from the employee
    record on every request.
    """
    lifetime = expires_in if expires_in is not None else timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(employee_id),
        "type": "access",
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry. Raises jose.JWTError on failure."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
