"""
Manager approval of submitted timesheet entries.

A manager can only act on entries that are still Submitted and that were
logged against a project the manager created. A request that names any other
entry is rejected as a whole.
"""

import logging
import uuid
from collections import defaultdict
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from effort_tracker.database import RowCountMismatch, expect_writes, unit_of_work
from effort_tracker.models import TimesheetEntry, TimesheetStatus
from effort_tracker.models.enums import MANAGER, can_transition
from effort_tracker.schemas.timesheet import RequestApproval, SubmittedRequestSummary
from effort_tracker.services import repository

logger = logging.getLogger(__name__)


def get_submitted_timesheets_by_ids(
    db: Session, manager_id: uuid.UUID, timesheet_ids: Iterable[uuid.UUID]
) -> Optional[list[TimesheetEntry]]:
    """Submitted entries for the manager's projects, or None if any id is not one of them."""
    requested = set(timesheet_ids)
    entries = repository.get_submitted_timesheets_by_ids(db, manager_id, requested)
    if len(entries) != len(requested):
        return None
    return entries


def approve_or_reject_timesheets(
    db: Session,
    manager_id: uuid.UUID,
    approvals: list[RequestApproval],
    status: TimesheetStatus,
) -> list[TimesheetEntry]:
    if status not in (TimesheetStatus.APPROVED, TimesheetStatus.REJECTED):
        raise HTTPException(status_code=400, detail="Timesheets can only be approved or rejected.")
    if not approvals:
        logger.info("Timesheet requests are either null or empty.")
        raise HTTPException(status_code=400, detail="Timesheet requests to update is null or empty.")

    entries = get_submitted_timesheets_by_ids(db, manager_id, [a.timesheet_id for a in approvals])
    if entries is None:
        logger.info("Manager %s requested timesheets that are not pending on their projects", manager_id)
        raise HTTPException(status_code=404, detail="Timesheets not found.")

    comments = {a.timesheet_id: a.manager_comments for a in approvals}

    try:
        with unit_of_work(db):
            for entry in entries:
                if not can_transition(entry.status, status, MANAGER):
                    raise RowCountMismatch(f"entry {entry.id} is {entry.status.value}")
                entry.status = status
                entry.manager_comments = comments[entry.id] if status == TimesheetStatus.REJECTED else ""
            expect_writes(db, len(entries))
    except Exception:
        logger.exception("Unable to update timesheets.")
        raise HTTPException(status_code=500, detail="Unable to update timesheets.")

    logger.info("Manager %s set %s entries to %s", manager_id, len(entries), status.value)
    return entries


def get_timesheet_requests(
    db: Session,
    manager_id: uuid.UUID,
    status: TimesheetStatus = TimesheetStatus.SUBMITTED,
    user_id: Optional[uuid.UUID] = None,
) -> list[TimesheetEntry]:
    return repository.get_timesheet_requests_by_manager(db, manager_id, status, user_id)


def get_pending_requests_summary(db: Session, manager_id: uuid.UUID) -> list[SubmittedRequestSummary]:
    """Per reportee: how many entries and hours are waiting for this manager."""
    grouped: dict[uuid.UUID, list[TimesheetEntry]] = defaultdict(list)
    for entry in get_timesheet_requests(db, manager_id, TimesheetStatus.SUBMITTED):
        grouped[entry.user_id].append(entry)

    return [
        SubmittedRequestSummary(
            user_id=user_id,
            entries=len(entries),
            total_hours=sum(e.hours for e in entries),
            first_date=min(e.timesheet_date for e in entries),
            last_date=max(e.timesheet_date for e in entries),
        )
        for user_id, entries in grouped.items()
    ]
