"""
Attendance business-rule errors.

Every error here is a recoverable validation failure surfaced to the caller.
The API layer renders them through ``attendance_error_handler``; storage
failures are not part of this hierarchy and propagate as-is.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class AttendanceError(Exception):
    """Base class for attendance business-rule violations."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "attendance_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFoundError(AttendanceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ForbiddenError(AttendanceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class AlreadyCheckedInError(AttendanceError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_checked_in"

    def __init__(self, message: str = "Already checked in today") -> None:
        super().__init__(message)


class AlreadyCheckedOutError(AttendanceError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_checked_out"

    def __init__(self, message: str = "Already checked out") -> None:
        super().__init__(message)


class NotAWorkDayError(AttendanceError):
    code = "not_a_work_day"

    def __init__(self, message: str = "Today is not a work day according to your schedule") -> None:
        super().__init__(message)


class LocationRequiredError(AttendanceError):
    code = "location_required"

    def __init__(self, message: str = "Location coordinates are required") -> None:
        super().__init__(message)


class OutOfRangeError(AttendanceError):
    code = "out_of_range"

    def __init__(self, distance_meters: float, allowed_radius_meters: float) -> None:
        super().__init__(
            f"You are {distance_meters:.0f} meters away from office location. "
            f"Maximum allowed: {allowed_radius_meters:.0f} meters"
        )
        self.distance_meters = distance_meters
        self.allowed_radius_meters = allowed_radius_meters

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["distance_meters"] = round(self.distance_meters, 1)
        data["allowed_radius_meters"] = self.allowed_radius_meters
        return data


async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
