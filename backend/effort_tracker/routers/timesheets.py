"""
Timesheet endpoints.

Static routes (/submit, /duplicate, /approve, /reject, /requests) are declared
before /{client_date} so FastAPI does not try to parse "submit" as a date.
"""

import logging
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from effort_tracker.database import get_db
from effort_tracker.dependencies import get_current_user_id, get_timesheet_service
from effort_tracker.models import TimesheetStatus
from effort_tracker.schemas.timesheet import (
    DuplicateEffortsRequest, RequestApproval, SubmittedRequestSummary, TimesheetResponse, UserTimesheet,
)
from effort_tracker.services import approval_service
from effort_tracker.services.timesheet_service import TimesheetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/timesheets", tags=["timesheets"])


# ── READ ──

@router.get("", response_model=list[UserTimesheet])
def get_timesheets(
    start_date: date = Query(...),
    end_date: date = Query(...),
    service: TimesheetService = Depends(get_timesheet_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return service.get_timesheets(start_date, end_date, user_id)


# ── SUBMIT ──

@router.post("/submit/{client_date}", response_model=list[TimesheetResponse])
def submit_timesheets(
    client_date: date,
    payload: list[UserTimesheet],
    service: TimesheetService = Depends(get_timesheet_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return service.submit_timesheets(client_date, payload, user_id)


# ── DUPLICATE ──

@router.post("/duplicate/{client_date}", response_model=list[TimesheetResponse])
def duplicate_efforts(
    client_date: date,
    payload: DuplicateEffortsRequest,
    service: TimesheetService = Depends(get_timesheet_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return service.duplicate_efforts(payload.source_date, payload.target_dates, client_date, user_id)


# ── APPROVE / REJECT (manager action) ──

@router.post("/approve", status_code=204)
def approve_timesheets(
    payload: list[RequestApproval],
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    approval_service.approve_or_reject_timesheets(db, user_id, payload, TimesheetStatus.APPROVED)
    return Response(status_code=204)


@router.post("/reject", status_code=204)
def reject_timesheets(
    payload: list[RequestApproval],
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    approval_service.approve_or_reject_timesheets(db, user_id, payload, TimesheetStatus.REJECTED)
    return Response(status_code=204)


# ── MANAGER DASHBOARD ──

@router.get("/requests/summary", response_model=list[SubmittedRequestSummary])
def pending_requests_summary(
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return approval_service.get_pending_requests_summary(db, user_id)


@router.get("/requests", response_model=list[TimesheetResponse])
def timesheet_requests(
    status: TimesheetStatus = Query(TimesheetStatus.SUBMITTED),
    reportee_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return approval_service.get_timesheet_requests(db, user_id, status, reportee_id)


# ── SAVE ──

@router.post("/{client_date}", response_model=list[TimesheetResponse])
def save_timesheets(
    client_date: date,
    payload: list[UserTimesheet],
    service: TimesheetService = Depends(get_timesheet_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return service.save_timesheets(payload, client_date, user_id)
