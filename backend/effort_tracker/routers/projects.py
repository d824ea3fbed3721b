import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from effort_tracker.database import get_db
from effort_tracker.dependencies import get_current_user_id
from effort_tracker.schemas.projects import (
    DashboardProject, MemberCreate, MemberOverview, MemberResponse, ProjectCreate, ProjectResponse,
    ProjectUpdate, ProjectUtilization, TaskCreate, TaskOverview, TaskResponse,
)
from effort_tracker.services import project_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    project = project_service.create_project(db, payload, user_id)
    return project_service.project_view(project)


@router.get("/dashboard", response_model=list[DashboardProject])
def dashboard_projects(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.get_dashboard_projects(db, user_id, start_date, end_date)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.project_view(project_service.get_project(db, project_id, user_id))


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: uuid.UUID,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    project = project_service.update_project(db, project_id, payload, user_id)
    return project_service.project_view(project)


@router.get("/{project_id}/utilization", response_model=ProjectUtilization)
def project_utilization(
    project_id: uuid.UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.get_project_utilization(db, project_id, user_id, start_date, end_date)


@router.get("/{project_id}/members/overview", response_model=list[MemberOverview])
def members_overview(
    project_id: uuid.UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.get_project_members_overview(db, project_id, user_id, start_date, end_date)


@router.get("/{project_id}/tasks/overview", response_model=list[TaskOverview])
def tasks_overview(
    project_id: uuid.UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.get_project_tasks_overview(db, project_id, user_id, start_date, end_date)


# ── MEMBERS ──

@router.post("/{project_id}/members", response_model=list[MemberResponse])
def add_members(
    project_id: uuid.UUID,
    payload: list[MemberCreate],
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.add_project_members(db, project_id, payload, user_id)


@router.delete("/{project_id}/members", status_code=204)
def remove_members(
    project_id: uuid.UUID,
    member_ids: list[uuid.UUID] = Query(...),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    project_service.remove_project_members(db, project_id, member_ids, user_id)
    return Response(status_code=204)


# ── TASKS ──

@router.post("/{project_id}/tasks", response_model=list[TaskResponse])
def add_tasks(
    project_id: uuid.UUID,
    payload: list[TaskCreate],
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.add_project_tasks(db, project_id, payload, user_id)


@router.delete("/{project_id}/tasks", status_code=204)
def remove_tasks(
    project_id: uuid.UUID,
    task_ids: list[uuid.UUID] = Query(...),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    project_service.remove_project_tasks(db, project_id, task_ids, user_id)
    return Response(status_code=204)


@router.post("/{project_id}/member-tasks", response_model=TaskResponse)
def add_member_task(
    project_id: uuid.UUID,
    payload: TaskCreate,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return project_service.add_member_task(db, project_id, payload, user_id)


@router.delete("/{project_id}/member-tasks/{task_id}", status_code=204)
def delete_member_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    project_service.delete_member_task(db, project_id, task_id, user_id)
    return Response(status_code=204)
