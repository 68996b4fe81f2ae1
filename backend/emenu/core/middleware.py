import uuid
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from emenu.core.config import settings
from emenu.core.exceptions import ForbiddenError
from emenu.core.security import decode_token
from emenu.db.models import User
from emenu.db.session import get_db

bearer_scheme = HTTPBearer(auto_error=False)

STAFF_ROLES = ("admin", "manager")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject(token: str) -> uuid.UUID:
    """User id carried by a valid access token."""
    try:
        payload = decode_token(token)
    except JWTError:
        raise _unauthorized()

    if payload.get("type") != "access" or payload.get("sub") is None:
        raise _unauthorized()

    try:
        return uuid.UUID(payload["sub"])
    except ValueError:
        raise _unauthorized()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user; every attendance call runs as this identity."""
    if credentials is None:
        raise _unauthorized()

    user = await db.get(User, _subject(credentials.credentials))
    if user is None:
        raise _unauthorized()

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def require_role(*roles: str) -> Callable:
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(roles)}",
            )
        return current_user

    return role_checker


def is_staff(user: User) -> bool:
    return user.role in STAFF_ROLES


def get_clock() -> datetime:
    """Current instant in the business time zone; overridden in tests."""
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def ensure_business_access(user: User, business_id: uuid.UUID | None, what: str) -> None:
    """Staff bound to a business only reach that business's records."""
    if user.business_id is not None and user.business_id != business_id:
        raise ForbiddenError(f"{what} belongs to another business")
