# app/core/permission.py
from __future__ import annotations

from fastapi import Depends, HTTPException, status

from app.core.security import Principal
from app.dependencies import get_principal


def require_roles(*allowed: str):
    """
    Role guard factory. Example: Depends(require_roles("user", "admin"))
    """
    async def dep(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="forbidden_role",
            )
        return principal
    return dep
