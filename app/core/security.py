"""Identity dependencies for the booking API.

  - get_current_principal()  verifies the bearer JWT and loads the user
  - require_admin()          additionally requires the admin role

Token payload carries the user id under ``id``; the role always comes
from the stored user, never from the token.
"""

from typing import Optional
import logging
import uuid

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.principal import Principal
from app.models.user import User

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_user_id(token: str) -> uuid.UUID:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return uuid.UUID(str(payload["id"]))
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        logger.info(f"Rejected bearer token: {str(e)}")
        raise _unauthorized("Not authorized to access this route")


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """FastAPI dependency: resolve the acting principal from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authorized to access this route")

    user_id = decode_user_id(credentials.credentials)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized("Not authorized to access this route")

    return Principal(id=user.id, role=user.role, name=user.name, email=user.email)


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User role {principal.role} is not authorized to access this route",
        )
    return principal
