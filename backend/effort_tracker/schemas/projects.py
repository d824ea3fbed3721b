from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date
from uuid import UUID

from effort_tracker.models.enums import RecordState


class _DateWindow(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_window(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class TaskCreate(_DateWindow):
    title: str = Field(..., min_length=1, max_length=200)


class MemberCreate(BaseModel):
    user_id: UUID
    is_billable: bool = True


class ProjectCreate(_DateWindow):
    title: str = Field(..., min_length=1, max_length=200)
    billable_hours: int = Field(default=0, ge=0)
    non_billable_hours: int = Field(default=0, ge=0)
    members: list[MemberCreate] = Field(default_factory=list)
    tasks: list[TaskCreate] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    billable_hours: Optional[int] = Field(default=None, ge=0)
    non_billable_hours: Optional[int] = Field(default=None, ge=0)


class TaskResponse(BaseModel):
    id: UUID
    project_id: UUID
    title: str
    start_date: date
    end_date: date
    is_added_by_member: bool
    member_id: Optional[UUID] = None
    state: RecordState

    model_config = {"from_attributes": True}


class MemberResponse(BaseModel):
    id: UUID
    project_id: UUID
    user_id: UUID
    is_billable: bool
    state: RecordState

    model_config = {"from_attributes": True}


class ProjectResponse(BaseModel):
    id: UUID
    title: str
    start_date: date
    end_date: date
    billable_hours: int
    non_billable_hours: int
    created_by: UUID
    tasks: list[TaskResponse] = Field(default_factory=list)
    members: list[MemberResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ProjectUtilization(BaseModel):
    id: UUID
    title: str
    start_date: date
    end_date: date
    billable_hours: int
    non_billable_hours: int
    billable_utilized_hours: int
    non_billable_utilized_hours: int
    total_hours: int


class MemberOverview(BaseModel):
    id: UUID
    user_id: UUID
    is_billable: bool
    total_hours: int


class TaskOverview(BaseModel):
    id: UUID
    title: str
    start_date: date
    end_date: date
    is_added_by_member: bool
    total_hours: int


class DashboardProject(BaseModel):
    """One row of the manager dashboard: budget against approved hours."""
    id: UUID
    title: str
    start_date: date
    end_date: date
    total_hours: int
    utilized_hours: int
