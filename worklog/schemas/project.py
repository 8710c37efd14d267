from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    client_name: Optional[str] = None
    client_email: Optional[str] = None


ProjectStatusValue = Literal["ACTIVE", "COMPLETED", "ON_HOLD", "ARCHIVED"]


class ProjectUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    status: Optional[ProjectStatusValue] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None


class TaskCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    name: str
    description: Optional[str]
    is_active: bool
    created_at: datetime


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    hourly_rate: Optional[Decimal]
    status: str
    client_name: Optional[str]
    client_email: Optional[str]
    created_at: datetime


class AssignedProjectResponse(ProjectResponse):
    tasks: list[TaskResponse]


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: int
    user_id: str
