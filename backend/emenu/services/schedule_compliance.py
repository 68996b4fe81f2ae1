"""Work-day and shift-window resolution for a work schedule."""

import uuid
from collections.abc import Iterable
from datetime import date, time
from typing import Protocol

from emenu.core.exceptions import ForbiddenError

WEEKDAYS: tuple[str, ...] = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)


class ShiftPolicy(Protocol):
    shift_start: time
    shift_end: time


class Schedule(Protocol):
    employee_id: uuid.UUID
    work_days: list[str]
    custom_start_time: time | None
    custom_end_time: time | None


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def normalize_work_days(values: Iterable[str]) -> list[str]:
    """Upper-case, de-duplicate and order weekday names Monday first.

    Raises ValueError on anything that is not one of the seven weekdays.
    """
    seen: set[str] = set()
    for raw in values:
        name = raw.strip().upper()
        if name not in WEEKDAYS:
            raise ValueError(f"Unknown weekday '{raw}'")
        seen.add(name)
    return [d for d in WEEKDAYS if d in seen]


def is_work_day(schedule: Schedule, day: date) -> bool:
    return weekday_name(day) in set(schedule.work_days)


def effective_shift_start(schedule: Schedule, policy: ShiftPolicy) -> time:
    if schedule.custom_start_time is not None:
        return schedule.custom_start_time
    return policy.shift_start


def effective_shift_end(schedule: Schedule, policy: ShiftPolicy) -> time:
    if schedule.custom_end_time is not None:
        return schedule.custom_end_time
    return policy.shift_end


def ensure_owner(owner_id: uuid.UUID, caller_id: uuid.UUID, what: str) -> None:
    if owner_id != caller_id:
        raise ForbiddenError(f"{what} does not belong to current user")
