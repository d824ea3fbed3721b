"""
Project, membership and task management.

Members and tasks are never deleted, only marked REMOVED, so that historical
timesheet entries keep pointing at real rows. Adding a user who was removed
earlier reactivates their old membership.
"""

import logging
import uuid
from collections import defaultdict
from datetime import date

from fastapi import HTTPException
from sqlalchemy.orm import Session

from effort_tracker.database import unit_of_work
from effort_tracker.models import Member, Project, RecordState, Task, TimesheetStatus
from effort_tracker.schemas.projects import (
    DashboardProject, MemberCreate, MemberOverview, ProjectCreate, ProjectResponse, ProjectUpdate,
    ProjectUtilization, TaskCreate, TaskOverview,
)
from effort_tracker.services import repository

logger = logging.getLogger(__name__)


def _get_owned_project_or_404(db: Session, project_id: uuid.UUID, manager_id: uuid.UUID) -> Project:
    project = repository.get_owned_project(db, project_id, manager_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _check_task_windows(tasks: list[TaskCreate], start: date, end: date):
    for task in tasks:
        if task.start_date < start or task.end_date > end:
            raise HTTPException(status_code=400, detail="Invalid start and end date for task")


def _check_range(start: date, end: date):
    if start > end:
        raise HTTPException(status_code=400, detail="The start date must be less than or equal to end date.")


def _commit(db: Session, message: str):
    try:
        with unit_of_work(db):
            db.flush()
    except Exception:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message)


def project_view(project: Project) -> ProjectResponse:
    view = ProjectResponse.model_validate(project)
    return view.model_copy(update={
        "tasks": [t for t in view.tasks if t.state == RecordState.ACTIVE],
        "members": [m for m in view.members if m.state == RecordState.ACTIVE],
    })


# ──────────────────────────────────────────────
# Projects
# ──────────────────────────────────────────────

def create_project(db: Session, payload: ProjectCreate, manager_id: uuid.UUID) -> Project:
    _check_task_windows(payload.tasks, payload.start_date, payload.end_date)

    project = Project(
        title=payload.title,
        start_date=payload.start_date,
        end_date=payload.end_date,
        billable_hours=payload.billable_hours,
        non_billable_hours=payload.non_billable_hours,
        created_by=manager_id,
    )
    db.add(project)
    members = {m.user_id: m for m in payload.members}
    for m in members.values():
        project.members.append(Member(user_id=m.user_id, is_billable=m.is_billable, state=RecordState.ACTIVE))
    for t in payload.tasks:
        project.tasks.append(Task(title=t.title, start_date=t.start_date, end_date=t.end_date, state=RecordState.ACTIVE))

    _commit(db, "Unable to create project")
    db.refresh(project)
    logger.info("Project %s created by %s", project.id, manager_id)
    return project


def get_project(db: Session, project_id: uuid.UUID, manager_id: uuid.UUID) -> Project:
    return _get_owned_project_or_404(db, project_id, manager_id)


def update_project(db: Session, project_id: uuid.UUID, payload: ProjectUpdate, manager_id: uuid.UUID) -> Project:
    project = _get_owned_project_or_404(db, project_id, manager_id)
    updates = payload.model_dump(exclude_unset=True)

    start = updates.get("start_date") or project.start_date
    end = updates.get("end_date") or project.end_date
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")
    for task in project.tasks:
        if task.is_active and (task.start_date < start or task.end_date > end):
            raise HTTPException(status_code=400, detail="Project dates must cover all of its tasks")

    for field, value in updates.items():
        if value is not None:
            setattr(project, field, value)

    _commit(db, "Unable to update project")
    db.refresh(project)
    return project


def get_project_utilization(
    db: Session, project_id: uuid.UUID, manager_id: uuid.UUID, start: date, end: date
) -> ProjectUtilization:
    """Approved hours in [start, end], split by the billable flag of each member."""
    _check_range(start, end)
    project = _get_owned_project_or_404(db, project_id, manager_id)

    billable = {m.user_id: m.is_billable for m in project.members}
    billable_hours = non_billable_hours = 0
    for entry in repository.get_projects_timesheets_by_status(db, [project_id], TimesheetStatus.APPROVED, start, end):
        if billable.get(entry.user_id, False):
            billable_hours += entry.hours
        else:
            non_billable_hours += entry.hours

    return ProjectUtilization(
        id=project.id,
        title=project.title,
        start_date=project.start_date,
        end_date=project.end_date,
        billable_hours=project.billable_hours,
        non_billable_hours=project.non_billable_hours,
        billable_utilized_hours=billable_hours,
        non_billable_utilized_hours=non_billable_hours,
        total_hours=billable_hours + non_billable_hours,
    )


def _approved_entries(db: Session, project_ids: list[uuid.UUID], start: date, end: date):
    return repository.get_projects_timesheets_by_status(db, project_ids, TimesheetStatus.APPROVED, start, end)


def get_project_members_overview(
    db: Session, project_id: uuid.UUID, manager_id: uuid.UUID, start: date, end: date
) -> list[MemberOverview]:
    """Approved hours in [start, end] per active member of the project."""
    _check_range(start, end)
    project = _get_owned_project_or_404(db, project_id, manager_id)

    hours: dict[uuid.UUID, int] = defaultdict(int)
    for entry in _approved_entries(db, [project.id], start, end):
        hours[entry.user_id] += entry.hours

    return [
        MemberOverview(id=m.id, user_id=m.user_id, is_billable=m.is_billable, total_hours=hours[m.user_id])
        for m in repository.get_members(db, project.id)
    ]


def get_project_tasks_overview(
    db: Session, project_id: uuid.UUID, manager_id: uuid.UUID, start: date, end: date
) -> list[TaskOverview]:
    """Approved hours in [start, end] per active task of the project."""
    _check_range(start, end)
    project = _get_owned_project_or_404(db, project_id, manager_id)

    hours: dict[uuid.UUID, int] = defaultdict(int)
    for entry in _approved_entries(db, [project.id], start, end):
        hours[entry.task_id] += entry.hours

    return [
        TaskOverview(
            id=t.id,
            title=t.title,
            start_date=t.start_date,
            end_date=t.end_date,
            is_added_by_member=t.is_added_by_member,
            total_hours=hours[t.id],
        )
        for t in sorted(project.tasks, key=lambda t: (t.start_date, t.title))
        if t.is_active
    ]


def get_dashboard_projects(db: Session, manager_id: uuid.UUID, start: date, end: date) -> list[DashboardProject]:
    """The manager's projects running in [start, end] with their approved hours."""
    _check_range(start, end)
    projects = repository.get_projects_created_by(db, manager_id, start, end)

    utilized: dict[uuid.UUID, int] = defaultdict(int)
    for entry in _approved_entries(db, [p.id for p in projects], start, end):
        utilized[entry.task.project_id] += entry.hours

    return [
        DashboardProject(
            id=p.id,
            title=p.title,
            start_date=p.start_date,
            end_date=p.end_date,
            total_hours=p.billable_hours + p.non_billable_hours,
            utilized_hours=utilized[p.id],
        )
        for p in projects
    ]


# ──────────────────────────────────────────────
# Members
# ──────────────────────────────────────────────

def add_project_members(
    db: Session, project_id: uuid.UUID, members: list[MemberCreate], manager_id: uuid.UUID
) -> list[Member]:
    if not members:
        raise HTTPException(status_code=400, detail="Member list is either null or empty.")
    project = _get_owned_project_or_404(db, project_id, manager_id)

    existing = {m.user_id: m for m in repository.get_members(db, project.id, include_removed=True)}
    result = []
    for payload in {m.user_id: m for m in members}.values():
        member = existing.get(payload.user_id)
        if member is None:
            member = Member(project_id=project.id, user_id=payload.user_id)
            db.add(member)
        member.is_billable = payload.is_billable
        member.state = RecordState.ACTIVE
        result.append(member)

    _commit(db, "Unable to add project members")
    logger.info("Added %s members to project %s", len(result), project.id)
    return result


def remove_project_members(
    db: Session, project_id: uuid.UUID, member_ids: list[uuid.UUID], manager_id: uuid.UUID
) -> None:
    project = _get_owned_project_or_404(db, project_id, manager_id)
    ids = set(member_ids)
    members = [m for m in repository.get_members(db, project.id) if m.id in ids]
    if not ids or len(members) != len(ids):
        raise HTTPException(status_code=404, detail="Members not found")

    for member in members:
        member.state = RecordState.REMOVED
    _commit(db, "Unable to remove project members")


# ──────────────────────────────────────────────
# Tasks
# ──────────────────────────────────────────────

def add_project_tasks(
    db: Session, project_id: uuid.UUID, tasks: list[TaskCreate], manager_id: uuid.UUID
) -> list[Task]:
    if not tasks:
        raise HTTPException(status_code=400, detail="Task list is either null or empty.")
    project = _get_owned_project_or_404(db, project_id, manager_id)
    _check_task_windows(tasks, project.start_date, project.end_date)

    created = [
        Task(project_id=project.id, title=t.title, start_date=t.start_date, end_date=t.end_date,
             state=RecordState.ACTIVE)
        for t in tasks
    ]
    db.add_all(created)
    _commit(db, "Unable to add project tasks")
    return created


def remove_project_tasks(
    db: Session, project_id: uuid.UUID, task_ids: list[uuid.UUID], manager_id: uuid.UUID
) -> None:
    project = _get_owned_project_or_404(db, project_id, manager_id)
    ids = set(task_ids)
    tasks = [t for t in project.tasks if t.id in ids and t.is_active]
    if not ids or len(tasks) != len(ids):
        raise HTTPException(status_code=404, detail="Tasks not found")

    for task in tasks:
        task.state = RecordState.REMOVED
    _commit(db, "Unable to remove project tasks")


def add_member_task(db: Session, project_id: uuid.UUID, payload: TaskCreate, user_id: uuid.UUID) -> Task:
    """A project member adds a task only they can log time against."""
    project = repository.get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=400, detail="Invalid project")

    member = repository.get_active_member(db, project_id, user_id)
    if not member:
        logger.info("User %s is not member of project %s", user_id, project_id)
        raise HTTPException(status_code=403, detail="User is not member of project")

    _check_task_windows([payload], project.start_date, project.end_date)

    task = Task(
        project_id=project.id,
        title=payload.title,
        start_date=payload.start_date,
        end_date=payload.end_date,
        is_added_by_member=True,
        member_id=member.id,
        state=RecordState.ACTIVE,
    )
    db.add(task)
    _commit(db, "Unable to create task")
    db.refresh(task)
    return task


def delete_member_task(db: Session, project_id: uuid.UUID, task_id: uuid.UUID, user_id: uuid.UUID) -> None:
    task = repository.get_tasks_by_ids(db, [task_id]).get(task_id)
    if (
        task is None
        or not task.is_active
        or not task.is_added_by_member
        or task.project_id != project_id
        or task.member is None
        or task.member.user_id != user_id
    ):
        raise HTTPException(status_code=404, detail="Task not found")

    task.state = RecordState.REMOVED
    _commit(db, "Error occurred while deleting task.")
