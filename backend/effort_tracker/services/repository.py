"""
Query helpers for projects, memberships, tasks and timesheet entries.

Every helper takes the request's Session and only reads or stages rows; the
caller owns the transaction.
"""

import logging
import uuid
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from effort_tracker.models import Member, Project, Task, TimesheetEntry, TimesheetStatus

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Projects / members / tasks
# ──────────────────────────────────────────────

def get_projects_for_user(db: Session, user_id: uuid.UUID, start: date, end: date) -> list[Project]:
    """Projects overlapping [start, end] on which the user is an active member."""
    return (
        db.query(Project)
        .join(Member, Member.project_id == Project.id)
        .filter(
            Member.user_id == user_id,
            Member.is_active,
            Project.start_date <= end,
            Project.end_date >= start,
        )
        .order_by(Project.start_date, Project.title)
        .all()
    )


def get_project(db: Session, project_id: uuid.UUID) -> Optional[Project]:
    return db.query(Project).filter(Project.id == project_id).first()


def get_owned_project(db: Session, project_id: uuid.UUID, manager_id: uuid.UUID) -> Optional[Project]:
    return (
        db.query(Project)
        .filter(Project.id == project_id, Project.created_by == manager_id)
        .first()
    )


def get_projects_created_by(db: Session, manager_id: uuid.UUID, start: date, end: date) -> list[Project]:
    """Projects the manager created whose window overlaps [start, end]."""
    return (
        db.query(Project)
        .filter(
            Project.created_by == manager_id,
            Project.start_date <= end,
            Project.end_date >= start,
        )
        .order_by(Project.created_on, Project.title)
        .all()
    )


def get_active_member(db: Session, project_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Member]:
    return (
        db.query(Member)
        .filter(Member.project_id == project_id, Member.user_id == user_id, Member.is_active)
        .first()
    )


def get_members(db: Session, project_id: uuid.UUID, include_removed: bool = False) -> list[Member]:
    q = db.query(Member).filter(Member.project_id == project_id)
    if not include_removed:
        q = q.filter(Member.is_active)
    return q.all()


def get_tasks_by_ids(db: Session, task_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Task]:
    ids = set(task_ids)
    if not ids:
        return {}
    return {t.id: t for t in db.query(Task).filter(Task.id.in_(ids)).all()}


# ──────────────────────────────────────────────
# Timesheet entries
# ──────────────────────────────────────────────

def get_timesheets(
    db: Session, user_id: uuid.UUID, timesheet_date: date, task_ids: Iterable[uuid.UUID]
) -> list[TimesheetEntry]:
    """Entries of one user on one date, limited to the given tasks."""
    ids = set(task_ids)
    if not ids:
        return []
    return (
        db.query(TimesheetEntry)
        .filter(
            TimesheetEntry.user_id == user_id,
            TimesheetEntry.timesheet_date == timesheet_date,
            TimesheetEntry.task_id.in_(ids),
        )
        .all()
    )


def get_timesheets_between(db: Session, user_id: uuid.UUID, start: date, end: date) -> list[TimesheetEntry]:
    return (
        db.query(TimesheetEntry)
        .filter(
            TimesheetEntry.user_id == user_id,
            TimesheetEntry.timesheet_date >= start,
            TimesheetEntry.timesheet_date <= end,
        )
        .order_by(TimesheetEntry.timesheet_date)
        .all()
    )


def get_timesheets_of_user(
    db: Session,
    user_id: uuid.UUID,
    timesheet_dates: Iterable[date],
    project_ids: Optional[Iterable[uuid.UUID]] = None,
) -> list[TimesheetEntry]:
    dates = set(timesheet_dates)
    if not dates:
        return []
    q = db.query(TimesheetEntry).filter(
        TimesheetEntry.user_id == user_id,
        TimesheetEntry.timesheet_date.in_(dates),
    )
    if project_ids:
        q = q.join(Task, Task.id == TimesheetEntry.task_id).filter(Task.project_id.in_(set(project_ids)))
    return q.all()


def get_hours_between(
    db: Session, user_id: uuid.UUID, start: date, end: date, exclude_date: Optional[date] = None
) -> Optional[int]:
    """Sum of persisted hours in [start, end]; None when the user has no rows there at all."""
    q = db.query(sa_func.count(TimesheetEntry.id), sa_func.coalesce(sa_func.sum(TimesheetEntry.hours), 0)).filter(
        TimesheetEntry.user_id == user_id,
        TimesheetEntry.timesheet_date >= start,
        TimesheetEntry.timesheet_date <= end,
    )
    count, _ = q.one()
    if not count:
        return None
    if exclude_date is not None:
        q = q.filter(TimesheetEntry.timesheet_date != exclude_date)
    _, total = q.one()
    return int(total)


def get_timesheets_by_status(db: Session, user_id: uuid.UUID, status: TimesheetStatus) -> list[TimesheetEntry]:
    return (
        db.query(TimesheetEntry)
        .filter(TimesheetEntry.user_id == user_id, TimesheetEntry.status == status)
        .order_by(TimesheetEntry.timesheet_date)
        .all()
    )


def get_submitted_timesheets_by_ids(
    db: Session, manager_id: uuid.UUID, timesheet_ids: Iterable[uuid.UUID]
) -> list[TimesheetEntry]:
    """Submitted entries among ``timesheet_ids`` whose project was created by the manager."""
    ids = set(timesheet_ids)
    if not ids:
        return []
    return (
        db.query(TimesheetEntry)
        .join(Task, Task.id == TimesheetEntry.task_id)
        .join(Project, Project.id == Task.project_id)
        .filter(
            TimesheetEntry.id.in_(ids),
            TimesheetEntry.status == TimesheetStatus.SUBMITTED,
            Project.created_by == manager_id,
        )
        .all()
    )


def get_timesheet_requests_by_manager(
    db: Session,
    manager_id: uuid.UUID,
    status: TimesheetStatus,
    user_id: Optional[uuid.UUID] = None,
) -> list[TimesheetEntry]:
    q = (
        db.query(TimesheetEntry)
        .join(Task, Task.id == TimesheetEntry.task_id)
        .join(Project, Project.id == Task.project_id)
        .filter(TimesheetEntry.status == status, Project.created_by == manager_id)
    )
    if user_id is not None:
        q = q.filter(TimesheetEntry.user_id == user_id)
    return q.order_by(TimesheetEntry.user_id, TimesheetEntry.timesheet_date).all()


def get_projects_timesheets_by_status(
    db: Session, project_ids: Iterable[uuid.UUID], status: TimesheetStatus, start: date, end: date
) -> list[TimesheetEntry]:
    ids = set(project_ids)
    if not ids:
        return []
    return (
        db.query(TimesheetEntry)
        .join(Task, Task.id == TimesheetEntry.task_id)
        .filter(
            Task.project_id.in_(ids),
            TimesheetEntry.status == status,
            TimesheetEntry.timesheet_date >= start,
            TimesheetEntry.timesheet_date <= end,
        )
        .all()
    )
