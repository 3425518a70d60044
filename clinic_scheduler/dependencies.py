"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.security import (
    Principal,
    Role,
    decode_access_token,
    principal_from_payload,
)
from clinic_scheduler.database import get_db

# Security
security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Principal:
    """
    Resolve the bearer token into a principal.

    Args:
        credentials: Bearer token credentials

    Returns:
        Principal with id and role

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    principal = principal_from_payload(payload) if payload else None

    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return principal


def require_role(role: Role):
    """Build a dependency admitting only principals with ``role``."""

    async def dependency(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if principal.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {role.value}s can access this resource",
            )
        return principal

    return dependency


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
CurrentProvider = Annotated[Principal, Depends(require_role(Role.PROVIDER))]
CurrentClient = Annotated[Principal, Depends(require_role(Role.CLIENT))]
