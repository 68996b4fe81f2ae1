"""
Attendance status classification.

A record moves through NO_RECORD -> CHECKED_IN -> CHECKED_OUT. Check-in
decides PRESENT or LATE; check-out may only demote that status to HALF_DAY
when too few minutes were worked. Nothing promotes a record back to PRESENT.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, time, timedelta


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"


class AttendanceState(str, enum.Enum):
    NO_RECORD = "NO_RECORD"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"


# (status stored at check-in, worked less than the half-day threshold) -> status after check-out
CHECK_OUT_TRANSITIONS: dict[tuple[AttendanceStatus, bool], AttendanceStatus] = {
    (AttendanceStatus.PRESENT, False): AttendanceStatus.PRESENT,
    (AttendanceStatus.PRESENT, True): AttendanceStatus.HALF_DAY,
    (AttendanceStatus.LATE, False): AttendanceStatus.LATE,
    (AttendanceStatus.LATE, True): AttendanceStatus.HALF_DAY,
}


@dataclass(frozen=True)
class Punctuality:
    status: AttendanceStatus
    late_minutes: int


@dataclass(frozen=True)
class WorkedDuration:
    status: AttendanceStatus
    total_work_minutes: int


def _whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def classify_punctuality(
    effective_start: time,
    late_threshold_minutes: int,
    check_in: datetime,
) -> Punctuality:
    """
    PRESENT when the check-in falls at or before start + grace period,
    otherwise LATE. Lateness is counted from the nominal start, not from the
    end of the grace period, in whole minutes.
    """
    if late_threshold_minutes < 0:
        raise ValueError("late_threshold_minutes must be >= 0")

    start = datetime.combine(check_in.date(), effective_start, tzinfo=check_in.tzinfo)
    cutoff = start + timedelta(minutes=late_threshold_minutes)
    if check_in <= cutoff:
        return Punctuality(AttendanceStatus.PRESENT, 0)
    return Punctuality(AttendanceStatus.LATE, _whole_minutes(check_in - start))


def classify_duration(
    check_in: datetime,
    check_out: datetime,
    half_day_threshold_minutes: int,
    current_status: AttendanceStatus,
) -> WorkedDuration:
    if check_out <= check_in:
        raise ValueError("check-out must be strictly after check-in")

    total = _whole_minutes(check_out - check_in)
    short_day = total < half_day_threshold_minutes
    try:
        status = CHECK_OUT_TRANSITIONS[(AttendanceStatus(current_status), short_day)]
    except KeyError:
        raise ValueError(f"No check-out transition from status {current_status}") from None
    return WorkedDuration(status, total)


def state_of(check_out_time: datetime | None) -> AttendanceState:
    if check_out_time is None:
        return AttendanceState.CHECKED_IN
    return AttendanceState.CHECKED_OUT
