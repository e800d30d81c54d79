# app/dependencies.py
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import InvalidTokenError, Principal, decode_token, is_access_token
from app.db.sql import get_session
from app.modules.providers.models import Provider
from app.modules.providers.repository import get_provider_by_owner

# Tokens are issued by the hosted auth service; this URL is only advertised in the docs
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/token"
)


async def get_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    try:
        payload = decode_token(token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
        )

    if not is_access_token(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token_type",
        )

    try:
        return Principal.from_claims(payload)
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        )


async def get_current_provider(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
) -> Provider:
    """The provider record managed by the calling account."""
    if principal.role != "provider":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="forbidden_role",
        )
    provider = await get_provider_by_owner(session, owner_user_id=principal.user_id)
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="no_provider_for_account",
        )
    return provider
