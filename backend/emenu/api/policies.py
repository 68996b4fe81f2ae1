import math
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emenu.core.config import settings
from emenu.core.exceptions import NotFoundError
from emenu.core.middleware import STAFF_ROLES, ensure_business_access, require_role
from emenu.db.models import AttendancePolicy, Business, User
from emenu.db.session import get_db
from emenu.schemas.policy import PolicyCreate, PolicyResponse, PolicyUpdate

router = APIRouter()


async def _get_policy(db: AsyncSession, policy_id: int, current_user: User) -> AttendancePolicy:
    policy = await db.get(AttendancePolicy, policy_id)
    if policy is None:
        raise NotFoundError(f"Attendance policy not found with id: {policy_id}")
    ensure_business_access(current_user, policy.business_id, "Attendance policy")
    return policy


def _geofence_incomplete(policy: AttendancePolicy) -> bool:
    return policy.require_location_check and (
        policy.office_latitude is None
        or policy.office_longitude is None
        or policy.allowed_radius_meters is None
    )


@router.post(
    "/",
    response_model=PolicyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an attendance policy for a business",
)
async def create_policy(
    body: PolicyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> AttendancePolicy:
    business_id = body.business_id or current_user.business_id
    ensure_business_access(current_user, business_id, "Business")
    if business_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="business_id is required",
        )
    if await db.get(Business, business_id) is None:
        raise NotFoundError(f"Business not found with id: {business_id}")

    policy = AttendancePolicy(**body.model_dump(exclude={"business_id"}), business_id=business_id)
    db.add(policy)
    await db.commit()
    await db.refresh(policy)
    return policy


@router.get(
    "/",
    summary="List attendance policies of a business",
)
async def list_policies(
    business_id: uuid.UUID | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> dict:
    q = select(AttendancePolicy)
    scope = business_id or current_user.business_id
    ensure_business_access(current_user, scope, "Business")
    if scope is not None:
        q = q.where(AttendancePolicy.business_id == scope)

    total = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar_one()
    result = await db.execute(
        q.order_by(AttendancePolicy.name).offset((page - 1) * per_page).limit(per_page)
    )
    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total > 0 else 1,
        "items": [PolicyResponse.model_validate(p) for p in result.scalars().all()],
    }


@router.get(
    "/{policy_id}",
    response_model=PolicyResponse,
    summary="Get an attendance policy",
)
async def get_policy(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> AttendancePolicy:
    return await _get_policy(db, policy_id, current_user)


@router.patch(
    "/{policy_id}",
    response_model=PolicyResponse,
    summary="Update an attendance policy (only supplied fields change)",
)
async def update_policy(
    policy_id: int,
    body: PolicyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> AttendancePolicy:
    policy = await _get_policy(db, policy_id, current_user)

    for field, value in body.model_dump(exclude_none=True).items():
        setattr(policy, field, value)

    if _geofence_incomplete(policy):
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Office location and allowed radius are required when location check is enabled",
        )

    await db.commit()
    await db.refresh(policy)
    return policy


@router.delete(
    "/{policy_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an attendance policy that no schedule references",
)
async def delete_policy(
    policy_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
) -> Response:
    policy = await _get_policy(db, policy_id, current_user)
    await db.delete(policy)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Attendance policy is still referenced by work schedules",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
