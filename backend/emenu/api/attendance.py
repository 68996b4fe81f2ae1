import math
import uuid
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from emenu.core.config import settings
from emenu.core.exceptions import ForbiddenError
from emenu.core.middleware import (
    STAFF_ROLES,
    ensure_business_access,
    get_clock,
    get_current_user,
    is_staff,
    require_role,
)
from emenu.db.models import Attendance, User
from emenu.db.session import get_db
from emenu.schemas.attendance import (
    AttendancePage,
    AttendanceResponse,
    CheckInRequest,
    CheckOutRequest,
)
from emenu.services import attendance_lifecycle as lifecycle
from emenu.services.classifier import AttendanceStatus, state_of
from emenu.services.schedule_compliance import effective_shift_end, effective_shift_start

router = APIRouter()


def _to_response(attendance: Attendance) -> AttendanceResponse:
    schedule = attendance.work_schedule
    check_out_time = attendance.check_out_time
    return AttendanceResponse(
        id=attendance.id,
        employee_id=attendance.employee_id,
        work_schedule_id=attendance.work_schedule_id,
        attendance_date=attendance.attendance_date,
        state=state_of(check_out_time).value,
        status=attendance.status,
        late_minutes=attendance.late_minutes,
        check_in_time=lifecycle.localize(attendance.check_in_time),
        check_in_latitude=attendance.check_in_latitude,
        check_in_longitude=attendance.check_in_longitude,
        check_in_address=attendance.check_in_address,
        check_in_note=attendance.check_in_note,
        check_out_time=lifecycle.localize(check_out_time) if check_out_time else None,
        check_out_latitude=attendance.check_out_latitude,
        check_out_longitude=attendance.check_out_longitude,
        check_out_address=attendance.check_out_address,
        check_out_note=attendance.check_out_note,
        total_work_minutes=attendance.total_work_minutes,
        shift_start=effective_shift_start(schedule, schedule.policy),
        shift_end=effective_shift_end(schedule, schedule.policy),
    )


def _punch(body: CheckInRequest | CheckOutRequest) -> lifecycle.Punch:
    return lifecycle.Punch(
        latitude=body.latitude,
        longitude=body.longitude,
        address=body.address,
        note=body.note,
    )


@router.post(
    "/check-in",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check in for today against one of the caller's work schedules",
)
async def check_in(
    body: CheckInRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_clock),
) -> AttendanceResponse:
    attendance = await lifecycle.check_in(
        db, current_user.id, body.work_schedule_id, _punch(body), now
    )
    return _to_response(attendance)


@router.post(
    "/{attendance_id}/check-out",
    response_model=AttendanceResponse,
    summary="Check out of an open attendance record",
)
async def check_out(
    attendance_id: int,
    body: CheckOutRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_clock),
) -> AttendanceResponse:
    attendance = await lifecycle.check_out(
        db, attendance_id, current_user.id, _punch(body), now
    )
    return _to_response(attendance)


@router.get(
    "/today",
    response_model=AttendanceResponse,
    summary="Caller's attendance record for today",
)
async def get_today(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_clock),
) -> AttendanceResponse:
    return _to_response(await lifecycle.get_today(db, current_user.id, now))


@router.get(
    "/me",
    response_model=list[AttendanceResponse],
    summary="Caller's attendance records in a date range (defaults to last 30 days)",
)
async def list_mine(
    date_from: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    date_to: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_clock),
) -> list[AttendanceResponse]:
    today = lifecycle.localize(now).date()
    df = date_from or today - timedelta(days=30)
    dt = date_to or today
    records = await lifecycle.list_attendance(db, current_user.id, df, dt)
    return [_to_response(a) for a in records]


@router.get(
    "/",
    response_model=AttendancePage,
    summary="List attendance records with filters and pagination (admin/manager)",
)
async def list_attendance(
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: AttendanceStatus | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    date_to: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(*STAFF_ROLES)),
) -> AttendancePage:
    total, items = await lifecycle.list_all(
        db,
        business_id=current_user.business_id,
        employee_id=employee_id,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        page=page,
        per_page=per_page,
    )
    return AttendancePage(
        total=total,
        page=page,
        per_page=per_page,
        pages=math.ceil(total / per_page) if total > 0 else 1,
        items=[_to_response(a) for a in items],
    )


@router.get(
    "/{attendance_id}",
    response_model=AttendanceResponse,
    summary="Get one attendance record (owner, admin or manager)",
)
async def get_attendance(
    attendance_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AttendanceResponse:
    attendance = await lifecycle.get_attendance(db, attendance_id)
    if attendance.employee_id != current_user.id:
        if not is_staff(current_user):
            raise ForbiddenError("Attendance record does not belong to current user")
        employee = await db.get(User, attendance.employee_id)
        ensure_business_access(current_user, employee.business_id, "Attendance record")
    return _to_response(attendance)
