# ruff: noqa

import dataclasses
import os

os.environ["DATABASE_URL"] = "sqlite://"

import uuid
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from effort_tracker import models
from effort_tracker.config import TimesheetSettings, get_settings
from effort_tracker.database import Base, get_db
from effort_tracker.models import Member, Project, RecordState, Task
from effort_tracker.services.timesheet_service import TimesheetService

MANAGER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
USER_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
OTHER_USER_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def settings():
    return TimesheetSettings(timesheet_freeze_day_of_month=12, daily_efforts_limit=10, weekly_efforts_limit=40)


def fixed_clock(day: date):
    moment = datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def make_service(db, settings):
    def _make(today: date, **overrides):
        cfg = dataclasses.replace(settings, **overrides)
        return TimesheetService(db, cfg, clock=fixed_clock(today))
    return _make


def add_project(
    db,
    title="Apollo",
    start=date(2021, 1, 2),
    end=date(2021, 2, 10),
    manager_id=MANAGER_ID,
    members=(USER_ID,),
    tasks=("Design", "Build"),
):
    project = Project(
        title=title, start_date=start, end_date=end,
        billable_hours=100, non_billable_hours=20, created_by=manager_id,
    )
    db.add(project)
    for user_id in members:
        project.members.append(Member(user_id=user_id, is_billable=True, state=RecordState.ACTIVE))
    for task_title in tasks:
        project.tasks.append(Task(title=task_title, start_date=start, end_date=end, state=RecordState.ACTIVE))
    db.commit()
    db.refresh(project)
    return project


@pytest.fixture
def project(db):
    return add_project(db)


@pytest.fixture
def client(engine, settings):
    from effort_tracker.main import app

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
