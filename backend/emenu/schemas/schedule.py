from datetime import time
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from emenu.services.schedule_compliance import normalize_work_days


class ScheduleCreate(BaseModel):
    employee_id: UUID
    policy_id: int
    name: str | None = Field(default=None, max_length=255)
    schedule_type: str | None = Field(default=None, max_length=50)
    work_days: list[str] = Field(..., min_length=1)
    custom_start_time: time | None = None
    custom_end_time: time | None = None
    is_active: bool = True

    @field_validator("work_days")
    @classmethod
    def valid_weekdays(cls, v: list[str]) -> list[str]:
        return normalize_work_days(v)


class ScheduleUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    schedule_type: str | None = Field(default=None, max_length=50)
    work_days: list[str] | None = Field(default=None, min_length=1)
    custom_start_time: time | None = None
    custom_end_time: time | None = None
    is_active: bool | None = None

    @field_validator("work_days")
    @classmethod
    def valid_weekdays(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return normalize_work_days(v)


class ScheduleResponse(BaseModel):
    id: int
    employee_id: UUID
    policy_id: int
    name: str | None
    schedule_type: str | None
    work_days: list[str]
    custom_start_time: time | None
    custom_end_time: time | None
    effective_start_time: time
    effective_end_time: time
    is_active: bool
