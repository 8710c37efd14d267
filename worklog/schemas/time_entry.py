from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StartEntryRequest(BaseModel):
    project_id: int
    task_id: int
    notes: Optional[str] = Field(default=None, max_length=2000)


class AdjustStartTimeRequest(BaseModel):
    start_time: datetime = Field(description="Naive values are read as UTC.")


class EntryProject(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class EntryTask(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    project_id: int
    task_id: int
    status: str
    start_time: datetime
    end_time: Optional[datetime]
    duration: Optional[int]
    notes: Optional[str]
    project: EntryProject
    task: EntryTask


class StartEntryResponse(BaseModel):
    id: str
