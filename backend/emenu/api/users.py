from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from emenu.core.exceptions import NotFoundError
from emenu.core.middleware import (
    STAFF_ROLES,
    ensure_business_access,
    get_current_user,
    require_role,
)
from emenu.core.security import hash_password
from emenu.db.models import Business, User
from emenu.db.session import get_db
from emenu.schemas.user import UserCreate, UserResponse

router = APIRouter()


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user (admin only)",
)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
) -> User:
    existing = await db.execute(select(User).where(User.username == body.username))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Username '{body.username}' is already taken",
        )

    business_id = body.business_id or current_user.business_id
    ensure_business_access(current_user, business_id, "Business")
    if business_id is not None and await db.get(Business, business_id) is None:
        raise NotFoundError(f"Business not found with id: {business_id}")

    user = User(
        username=body.username,
        password_hash=hash_password(body.password),
        role=body.role,
        full_name=body.full_name,
        business_id=business_id,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@router.get(
    "/employees",
    response_model=list[UserResponse],
    summary="List active employees of the caller's business",
)
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> list[User]:
    q = select(User).where(User.is_active == True)  # noqa: E712
    if current_user.business_id is not None:
        q = q.where(User.business_id == current_user.business_id)
    result = await db.execute(q.order_by(User.full_name))
    return list(result.scalars().all())


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current authenticated user profile",
)
async def get_me(
    current_user: User = Depends(get_current_user),
) -> User:
    return current_user
