import math
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emenu.core.config import settings
from emenu.core.exceptions import ForbiddenError, NotFoundError
from emenu.core.middleware import (
    STAFF_ROLES,
    ensure_business_access,
    get_current_user,
    is_staff,
    require_role,
)
from emenu.db.models import AttendancePolicy, User, WorkSchedule
from emenu.db.session import get_db
from emenu.schemas.schedule import ScheduleCreate, ScheduleResponse, ScheduleUpdate
from emenu.services.schedule_compliance import effective_shift_end, effective_shift_start

router = APIRouter()


def _to_response(schedule: WorkSchedule) -> ScheduleResponse:
    return ScheduleResponse(
        id=schedule.id,
        employee_id=schedule.employee_id,
        policy_id=schedule.policy_id,
        name=schedule.name,
        schedule_type=schedule.schedule_type,
        work_days=schedule.work_days,
        custom_start_time=schedule.custom_start_time,
        custom_end_time=schedule.custom_end_time,
        effective_start_time=effective_shift_start(schedule, schedule.policy),
        effective_end_time=effective_shift_end(schedule, schedule.policy),
        is_active=schedule.is_active,
    )


async def _get_schedule(db: AsyncSession, schedule_id: int) -> WorkSchedule:
    schedule = await db.get(WorkSchedule, schedule_id)
    if schedule is None:
        raise NotFoundError(f"Work schedule not found with id: {schedule_id}")
    return schedule


async def _get_staff_schedule(db: AsyncSession, schedule_id: int, current_user: User) -> WorkSchedule:
    schedule = await _get_schedule(db, schedule_id)
    ensure_business_access(current_user, schedule.policy.business_id, "Work schedule")
    return schedule


async def _list_for_employee(db: AsyncSession, employee_id: uuid.UUID) -> list[ScheduleResponse]:
    result = await db.execute(
        select(WorkSchedule)
        .where(WorkSchedule.employee_id == employee_id)
        .order_by(WorkSchedule.id)
    )
    return [_to_response(s) for s in result.scalars().all()]


@router.post(
    "/",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a work schedule to an employee",
)
async def create_schedule(
    body: ScheduleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> ScheduleResponse:
    employee = await db.get(User, body.employee_id)
    if employee is None:
        raise NotFoundError(f"User not found with id: {body.employee_id}")
    ensure_business_access(current_user, employee.business_id, "User")

    policy = await db.get(AttendancePolicy, body.policy_id)
    if policy is None:
        raise NotFoundError(f"Attendance policy not found with id: {body.policy_id}")
    ensure_business_access(current_user, policy.business_id, "Attendance policy")

    schedule = WorkSchedule(**body.model_dump())
    db.add(schedule)
    await db.commit()
    return _to_response(await db.get(WorkSchedule, schedule.id, populate_existing=True))


@router.get(
    "/",
    summary="List work schedules of the caller's business",
)
async def list_schedules(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> dict:
    q = select(WorkSchedule)
    if current_user.business_id is not None:
        q = q.join(User, User.id == WorkSchedule.employee_id).where(
            User.business_id == current_user.business_id
        )

    total = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar_one()
    result = await db.execute(
        q.order_by(WorkSchedule.id).offset((page - 1) * per_page).limit(per_page)
    )
    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total > 0 else 1,
        "items": [_to_response(s) for s in result.unique().scalars().all()],
    }


@router.get(
    "/me",
    response_model=list[ScheduleResponse],
    summary="Work schedules of the current user",
)
async def list_my_schedules(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ScheduleResponse]:
    return await _list_for_employee(db, current_user.id)


@router.get(
    "/employee/{employee_id}",
    response_model=list[ScheduleResponse],
    summary="Work schedules of an employee",
)
async def list_employee_schedules(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> list[ScheduleResponse]:
    employee = await db.get(User, employee_id)
    if employee is None:
        raise NotFoundError(f"User not found with id: {employee_id}")
    ensure_business_access(current_user, employee.business_id, "User")
    return await _list_for_employee(db, employee_id)


@router.get(
    "/{schedule_id}",
    response_model=ScheduleResponse,
    summary="Get a work schedule (owner, admin or manager)",
)
async def get_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ScheduleResponse:
    schedule = await _get_schedule(db, schedule_id)
    if schedule.employee_id != current_user.id:
        if not is_staff(current_user):
            raise ForbiddenError("Work schedule does not belong to current user")
        ensure_business_access(current_user, schedule.policy.business_id, "Work schedule")
    return _to_response(schedule)


@router.patch(
    "/{schedule_id}",
    response_model=ScheduleResponse,
    summary="Update a work schedule (only supplied fields change)",
)
async def update_schedule(
    schedule_id: int,
    body: ScheduleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> ScheduleResponse:
    schedule = await _get_staff_schedule(db, schedule_id, current_user)
    for field, value in body.model_dump(exclude_none=True).items():
        setattr(schedule, field, value)
    await db.commit()
    await db.refresh(schedule)
    return _to_response(schedule)


@router.delete(
    "/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a work schedule that no attendance record references",
)
async def delete_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
) -> Response:
    schedule = await _get_staff_schedule(db, schedule_id, current_user)
    await db.delete(schedule)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Work schedule is still referenced by attendance records",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
