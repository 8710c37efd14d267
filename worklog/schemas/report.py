from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EntryStatus = Literal["IN_PROGRESS", "COMPLETED", "CANCELLED"]


class ReportFilters(BaseModel):
    """Optional report restrictions, combined with AND. Unset means unrestricted."""

    model_config = ConfigDict(extra="forbid")

    start_date: Optional[date] = None
    end_date: Optional[date] = Field(default=None, description="Inclusive, through end of day.")
    project_id: Optional[int] = None
    user_id: Optional[str] = None
    task_id: Optional[int] = None
    status: Optional[EntryStatus] = None

    @field_validator("start_date", "end_date", "project_id", "user_id", "task_id", "status", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_date_order(self) -> "ReportFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class ReportUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str]
    email: str

    @property
    def display_name(self) -> str:
        return self.name or self.email


class ReportProject(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    client_name: Optional[str]
    hourly_rate: Optional[Decimal]


class ReportTask(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ReportRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    start_time: datetime
    end_time: Optional[datetime]
    duration: Optional[int]
    status: str
    notes: Optional[str]
    user: ReportUser
    project: ReportProject
    task: ReportTask


class UserSummary(BaseModel):
    user: ReportUser
    total_minutes: int = 0
    entries_count: int = 0


class ProjectSummary(BaseModel):
    project: ReportProject
    total_minutes: int = 0
    entries_count: int = 0
    estimated_cost: Decimal = Decimal("0.00")


class ReportSummary(BaseModel):
    total_entries: int
    total_minutes: int
    total_hours: float
    by_user: list[UserSummary]
    by_project: list[ProjectSummary]


class CatalogProject(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class CatalogUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str]
    email: str


class CatalogTask(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    project_id: int


class FilterCatalog(BaseModel):
    projects: list[CatalogProject]
    users: list[CatalogUser]
    tasks: list[CatalogTask]
