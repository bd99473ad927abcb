"""
FastAPI Dependencies

Provides dependency injection for database sessions, authentication,
and authorization.

SECURITY NOTES:
- JWT payloads are never logged
- Bearer token is the only auth method; tokens are issued elsewhere and
  verified here with the shared SECRET_KEY
"""

from typing import Annotated
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from jose import JWTError, jwt
import bcrypt
from datetime import datetime, timedelta, timezone
import logging

from app.database import get_db
from app.config import settings
from app.exceptions import UnauthorizedError
from app.models.profile import Profile

logger = logging.getLogger(__name__)


security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token. ``sub`` must be the profile id."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> Profile:
    """
    Resolve the bearer token to an active profile.

    SECURITY:
    - Missing, malformed or expired tokens all produce the same 401
    - Unknown and deactivated profiles are rejected the same way
    """
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Unauthorized. Please log in.")

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        profile_id = payload.get("sub")
    except JWTError:
        logger.warning("JWT validation failed")
        raise UnauthorizedError("Unauthorized. Please log in.")

    if not profile_id:
        raise UnauthorizedError("Unauthorized. Please log in.")

    result = await db.execute(select(Profile).where(Profile.id == str(profile_id)))
    profile = result.scalar_one_or_none()

    if profile is None or not profile.active:
        raise UnauthorizedError("Unauthorized. Please log in.")

    logger.debug("Profile authenticated", extra={"user_id": profile.id, "role": profile.role})
    return profile


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[Profile, Depends(get_current_user)]
