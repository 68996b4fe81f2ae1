from datetime import date, datetime, time
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from emenu.services.classifier import AttendanceStatus


class PunchRequest(BaseModel):
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    address: str | None = Field(default=None, max_length=500)
    note: str | None = None

    @field_validator("address", "note")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @model_validator(mode="after")
    def coordinates_together(self) -> "PunchRequest":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be supplied together")
        return self


class CheckInRequest(PunchRequest):
    work_schedule_id: int


class CheckOutRequest(PunchRequest):
    pass


class AttendanceResponse(BaseModel):
    id: int
    employee_id: UUID
    work_schedule_id: int
    attendance_date: date
    state: Literal["CHECKED_IN", "CHECKED_OUT"]
    status: AttendanceStatus
    late_minutes: int

    check_in_time: datetime
    check_in_latitude: float | None
    check_in_longitude: float | None
    check_in_address: str | None
    check_in_note: str | None

    check_out_time: datetime | None
    check_out_latitude: float | None
    check_out_longitude: float | None
    check_out_address: str | None
    check_out_note: str | None
    total_work_minutes: int | None

    shift_start: time
    shift_end: time


class AttendancePage(BaseModel):
    total: int
    page: int
    per_page: int
    pages: int
    items: list[AttendanceResponse]
