from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from effort_tracker.models.enums import TimesheetStatus


class TimesheetDetails(BaseModel):
    """Hours for one task on one day, as sent by the fill-timesheet grid."""
    task_id: UUID
    task_title: str = ""
    hours: int = Field(default=0, ge=0)
    status: TimesheetStatus = TimesheetStatus.NONE
    manager_comments: str = ""
    is_added_by_member: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectDetails(BaseModel):
    id: UUID
    title: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    timesheet_details: list[TimesheetDetails] = Field(default_factory=list)


class UserTimesheet(BaseModel):
    timesheet_date: date
    project_details: list[ProjectDetails] = Field(default_factory=list)


class TimesheetResponse(BaseModel):
    id: UUID
    user_id: UUID
    task_id: UUID
    task_title: str
    timesheet_date: date
    hours: int
    status: TimesheetStatus
    manager_comments: Optional[str] = ""
    submitted_on: Optional[datetime] = None
    last_modified_on: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DuplicateEffortsRequest(BaseModel):
    source_date: date
    target_dates: list[date] = Field(min_length=1)


class RequestApproval(BaseModel):
    timesheet_id: UUID
    manager_comments: str = ""


class SubmittedRequestSummary(BaseModel):
    user_id: UUID
    entries: int
    total_hours: int
    first_date: date
    last_date: date
