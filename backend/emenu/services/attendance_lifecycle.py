"""
Check-in / check-out lifecycle for one attendance record per employee per day.

The caller identity and the current instant are explicit arguments; nothing
here reads ambient request state. Uniqueness of (employee, date) is enforced
by the ``uq_attendance_employee_date`` constraint, so a concurrent second
check-in fails at commit and is reported as ``AlreadyCheckedInError``.
Check-out is a conditional UPDATE guarded on ``check_out_time IS NULL``.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from emenu.core.config import settings
from emenu.core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    AttendanceError,
    NotAWorkDayError,
    NotFoundError,
)
from emenu.db.models import Attendance, User, WorkSchedule
from emenu.services.classifier import (
    AttendanceStatus,
    classify_duration,
    classify_punctuality,
)
from emenu.services.geofence import validate_location
from emenu.services.schedule_compliance import (
    effective_shift_start,
    ensure_owner,
    is_work_day,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Punch:
    """Location details supplied with a check-in or check-out."""

    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    note: str | None = None


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def localize(moment: datetime) -> datetime:
    """Express a stored or supplied instant in the business time zone.

    Naive values (some backends drop the offset) are taken as business-local.
    """
    tz = business_tz()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def build_check_in(
    employee_id: uuid.UUID,
    schedule: WorkSchedule,
    punch: Punch,
    now: datetime,
) -> Attendance:
    """Classify punctuality and return the new, unsaved attendance record."""
    policy = schedule.policy
    start = effective_shift_start(schedule, policy)
    punctuality = classify_punctuality(start, policy.late_threshold_minutes, now)
    return Attendance(
        employee_id=employee_id,
        work_schedule_id=schedule.id,
        attendance_date=now.date(),
        check_in_time=now,
        check_in_latitude=punch.latitude,
        check_in_longitude=punch.longitude,
        check_in_address=punch.address,
        check_in_note=punch.note,
        late_minutes=punctuality.late_minutes,
        status=punctuality.status,
    )


def build_check_out(attendance: Attendance, punch: Punch, now: datetime) -> dict:
    """Return the column values that close ``attendance`` at ``now``."""
    policy = attendance.work_schedule.policy
    checked_in_at = localize(attendance.check_in_time)
    if now <= checked_in_at:
        raise AttendanceError("Check-out time must be after check-in time")

    worked = classify_duration(
        checked_in_at,
        now,
        policy.half_day_threshold_minutes,
        attendance.status,
    )
    return {
        "check_out_time": now,
        "check_out_latitude": punch.latitude,
        "check_out_longitude": punch.longitude,
        "check_out_address": punch.address,
        "check_out_note": punch.note,
        "total_work_minutes": worked.total_work_minutes,
        "status": worked.status,
    }


UNIQUE_DAY_CONSTRAINT = "uq_attendance_employee_date"


def is_duplicate_day(exc: IntegrityError) -> bool:
    """True when ``exc`` is the one-record-per-employee-per-day violation.

    PostgreSQL names the constraint; SQLite only lists the columns.
    """
    message = str(exc.orig)
    if UNIQUE_DAY_CONSTRAINT in message:
        return True
    return (
        "UNIQUE constraint failed" in message
        and "attendances.employee_id" in message
        and "attendances.attendance_date" in message
    )


async def _reload(db: AsyncSession, attendance_id: int) -> Attendance:
    return await db.get(Attendance, attendance_id, populate_existing=True)


async def _find_for_day(db: AsyncSession, employee_id: uuid.UUID, day: date) -> Attendance | None:
    result = await db.execute(
        select(Attendance).where(
            Attendance.employee_id == employee_id,
            Attendance.attendance_date == day,
        )
    )
    return result.scalar_one_or_none()


async def check_in(
    db: AsyncSession,
    employee_id: uuid.UUID,
    schedule_id: int,
    punch: Punch,
    now: datetime,
) -> Attendance:
    now = localize(now)
    today = now.date()

    if await _find_for_day(db, employee_id, today) is not None:
        logger.warning("Duplicate check-in for employee %s on %s", employee_id, today)
        raise AlreadyCheckedInError()

    schedule = await db.get(WorkSchedule, schedule_id)
    if schedule is None:
        raise NotFoundError("Work schedule not found")

    ensure_owner(schedule.employee_id, employee_id, "Work schedule")

    if not is_work_day(schedule, today):
        logger.warning(
            "Check-in on non-work day %s for employee %s (schedule %s)",
            today, employee_id, schedule.id,
        )
        raise NotAWorkDayError()

    validate_location(punch.latitude, punch.longitude, schedule.policy)

    attendance = build_check_in(employee_id, schedule, punch, now)
    db.add(attendance)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if not is_duplicate_day(exc):
            raise
        logger.warning("Concurrent check-in rejected for employee %s on %s", employee_id, today)
        raise AlreadyCheckedInError() from None

    attendance = await _reload(db, attendance.id)
    logger.info(
        "Check-in: employee=%s attendance=%s status=%s late_minutes=%d",
        employee_id, attendance.id, attendance.status.value, attendance.late_minutes,
    )
    return attendance


async def check_out(
    db: AsyncSession,
    attendance_id: int,
    employee_id: uuid.UUID,
    punch: Punch,
    now: datetime,
) -> Attendance:
    now = localize(now)

    attendance = await db.get(Attendance, attendance_id)
    if attendance is None:
        raise NotFoundError("Attendance record not found")

    ensure_owner(attendance.employee_id, employee_id, "Attendance record")

    if attendance.check_out_time is not None:
        raise AlreadyCheckedOutError()

    validate_location(punch.latitude, punch.longitude, attendance.work_schedule.policy)

    values = build_check_out(attendance, punch, now)
    result = await db.execute(
        update(Attendance)
        .where(Attendance.id == attendance_id, Attendance.check_out_time.is_(None))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise AlreadyCheckedOutError()
    await db.commit()

    attendance = await _reload(db, attendance_id)
    logger.info(
        "Check-out: employee=%s attendance=%s status=%s worked_minutes=%d",
        employee_id, attendance.id, attendance.status.value, attendance.total_work_minutes,
    )
    return attendance


async def get_attendance(db: AsyncSession, attendance_id: int) -> Attendance:
    attendance = await db.get(Attendance, attendance_id)
    if attendance is None:
        raise NotFoundError("Attendance record not found")
    return attendance


async def get_today(db: AsyncSession, employee_id: uuid.UUID, now: datetime) -> Attendance:
    attendance = await _find_for_day(db, employee_id, localize(now).date())
    if attendance is None:
        raise NotFoundError("No attendance record found for today")
    return attendance


async def list_attendance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    date_from: date,
    date_to: date,
) -> list[Attendance]:
    result = await db.execute(
        select(Attendance)
        .where(
            Attendance.employee_id == employee_id,
            Attendance.attendance_date.between(date_from, date_to),
        )
        .order_by(Attendance.attendance_date)
    )
    return list(result.scalars().all())


async def list_all(
    db: AsyncSession,
    *,
    business_id: uuid.UUID | None = None,
    employee_id: uuid.UUID | None = None,
    status: AttendanceStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[int, list[Attendance]]:
    """Filtered, paginated listing, newest day first. Returns (total, page items)."""
    q = select(Attendance)
    if business_id is not None:
        q = q.join(User, User.id == Attendance.employee_id).where(User.business_id == business_id)
    if employee_id is not None:
        q = q.where(Attendance.employee_id == employee_id)
    if status is not None:
        q = q.where(Attendance.status == status)
    if date_from is not None:
        q = q.where(Attendance.attendance_date >= date_from)
    if date_to is not None:
        q = q.where(Attendance.attendance_date <= date_to)

    total = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar_one()

    result = await db.execute(
        q.order_by(Attendance.attendance_date.desc(), Attendance.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return total, list(result.scalars().all())
