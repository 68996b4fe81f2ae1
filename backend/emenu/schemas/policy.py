from datetime import time
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class PolicyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    shift_start: time
    shift_end: time
    late_threshold_minutes: int = Field(default=0, ge=0)
    half_day_threshold_minutes: int = Field(default=0, ge=0)
    break_start: time | None = None
    break_end: time | None = None
    require_location_check: bool = False
    office_latitude: float | None = Field(default=None, ge=-90, le=90)
    office_longitude: float | None = Field(default=None, ge=-180, le=180)
    allowed_radius_meters: int | None = Field(default=None, gt=0)
    is_active: bool = True


class PolicyCreate(PolicyBase):
    business_id: UUID | None = None

    @model_validator(mode="after")
    def geofence_complete(self) -> "PolicyCreate":
        if self.require_location_check and (
            self.office_latitude is None
            or self.office_longitude is None
            or self.allowed_radius_meters is None
        ):
            raise ValueError(
                "office_latitude, office_longitude and allowed_radius_meters "
                "are required when require_location_check is true"
            )
        return self


class PolicyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    shift_start: time | None = None
    shift_end: time | None = None
    late_threshold_minutes: int | None = Field(default=None, ge=0)
    half_day_threshold_minutes: int | None = Field(default=None, ge=0)
    break_start: time | None = None
    break_end: time | None = None
    require_location_check: bool | None = None
    office_latitude: float | None = Field(default=None, ge=-90, le=90)
    office_longitude: float | None = Field(default=None, ge=-180, le=180)
    allowed_radius_meters: int | None = Field(default=None, gt=0)
    is_active: bool | None = None


class PolicyResponse(PolicyBase):
    id: int
    business_id: UUID

    model_config = {"from_attributes": True}
