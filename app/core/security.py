# app/core/security.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from app.core.config import settings

# =====
# JWTs
# =====
# Tokens are issued by the hosted auth service using the shared secret.
# This module only verifies them.


class TokenType(str, Enum):
    ACCESS = "access"


class AppRole(str, Enum):
    USER = "user"
    PROVIDER = "provider"
    ADMIN = "admin"


class InvalidTokenError(Exception):
    """Raised when a token is missing/invalid/expired or claims are malformed."""


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises InvalidTokenError on failure.
    """
    if not token:
        raise InvalidTokenError("missing_token")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        # JWTError covers expired signature, invalid signature, bad format, etc.
        raise InvalidTokenError("invalid_token") from exc

    if "sub" not in payload or "type" not in payload:
        raise InvalidTokenError("invalid_claims")

    return payload


def is_access_token(payload: Dict[str, Any]) -> bool:
    return payload.get("type") == TokenType.ACCESS.value


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as supplied by the session context."""

    user_id: uuid.UUID
    role: str
    email: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_claims(cls, payload: Dict[str, Any]) -> "Principal":
        try:
            user_id = uuid.UUID(str(payload["sub"]))
        except (KeyError, ValueError) as exc:
            raise InvalidTokenError("invalid_subject") from exc
        role = payload.get("role") or AppRole.USER.value
        if role not in {r.value for r in AppRole}:
            raise InvalidTokenError("invalid_role")
        return cls(user_id=user_id, role=role, email=payload.get("email"), claims=payload)
