from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str
    password: str = Field(..., min_length=6)
    role: Literal["admin", "manager", "employee"] = "employee"
    full_name: str | None = None
    business_id: UUID | None = None


class UserResponse(BaseModel):
    id: UUID
    username: str
    role: str
    full_name: str | None
    business_id: UUID | None
    is_active: bool

    model_config = {"from_attributes": True}
