from datetime import date

import pytest
from fastapi import HTTPException

from conftest import USER_ID, add_project
from effort_tracker.models import TimesheetEntry, TimesheetStatus
from effort_tracker.schemas.timesheet import ProjectDetails, TimesheetDetails, UserTimesheet

TODAY = date(2021, 1, 24)
MONDAY = date(2021, 1, 25)
TUESDAY = date(2021, 1, 26)


def _fill(service, day, project, **hours_by_title):
    tasks = {t.title: t for t in project.tasks}
    service.save_timesheets(
        [UserTimesheet(
            timesheet_date=day,
            project_details=[ProjectDetails(
                id=project.id,
                timesheet_details=[
                    TimesheetDetails(task_id=tasks[title].id, hours=h) for title, h in hours_by_title.items()
                ],
            )],
        )],
        TODAY,
        USER_ID,
    )


def _hours(db, day):
    entries = db.query(TimesheetEntry).filter(TimesheetEntry.timesheet_date == day).all()
    return {e.task_title: e.hours for e in entries}


def _lock(db, day, status=TimesheetStatus.SUBMITTED):
    for entry in db.query(TimesheetEntry).filter(TimesheetEntry.timesheet_date == day):
        entry.status = status
    db.commit()


def test_copies_source_hours_and_overwrites_targets(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=4, Build=2)
    _fill(service, MONDAY, project, Design=1)

    result = service.duplicate_efforts(TODAY, [MONDAY, TUESDAY], TODAY, USER_ID)

    assert len(result) == 4
    assert all(r.status == TimesheetStatus.SAVED for r in result)
    assert _hours(db, MONDAY) == {"Design": 4, "Build": 2}
    assert _hours(db, TUESDAY) == {"Design": 4, "Build": 2}
    assert db.query(TimesheetEntry).count() == 6


def test_source_without_projects_fails_and_writes_nothing(db, project, make_service):
    # The project starts on the 2nd.
    with pytest.raises(HTTPException) as exc:
        make_service(TODAY).duplicate_efforts(date(2021, 1, 1), [MONDAY], TODAY, USER_ID)
    assert exc.value.status_code == 400
    assert exc.value.detail == "The source date must have projects."
    assert db.query(TimesheetEntry).count() == 0


def test_source_without_hours_fails(db, project, make_service):
    with pytest.raises(HTTPException) as exc:
        make_service(TODAY).duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)
    assert exc.value.status_code == 400
    assert db.query(TimesheetEntry).count() == 0


def test_source_date_is_not_its_own_target(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=4)

    with pytest.raises(HTTPException) as exc:
        service.duplicate_efforts(TODAY, [TODAY], TODAY, USER_ID)
    assert exc.value.status_code == 400


def test_frozen_targets_are_rejected(db, make_service):
    project = add_project(db, start=date(2020, 12, 1), end=date(2021, 2, 10))
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=4)

    with pytest.raises(HTTPException) as exc:
        service.duplicate_efforts(TODAY, [date(2020, 12, 30), date(2020, 12, 31)], TODAY, USER_ID)
    assert exc.value.status_code == 400
    assert _hours(db, date(2020, 12, 31)) == {}


def test_invalid_client_date_is_rejected(db, project, make_service):
    with pytest.raises(HTTPException) as exc:
        make_service(TODAY).duplicate_efforts(TODAY, [MONDAY], date(2021, 1, 20), USER_ID)
    assert exc.value.status_code == 400


def test_target_breaking_weekly_limit_is_skipped(db, project, make_service):
    service = make_service(TODAY, weekly_efforts_limit=14)
    _fill(service, TODAY, project, Design=6)

    result = service.duplicate_efforts(TODAY, [MONDAY, TUESDAY], TODAY, USER_ID)

    assert [r.timesheet_date for r in result] == [MONDAY]
    assert _hours(db, TUESDAY) == {}


def test_target_breaking_daily_limit_is_skipped(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=4)
    _fill(service, MONDAY, project, Build=8)

    result = service.duplicate_efforts(TODAY, [MONDAY, TUESDAY], TODAY, USER_ID)

    assert [r.timesheet_date for r in result] == [TUESDAY]
    assert _hours(db, MONDAY) == {"Build": 8}


def test_only_targets_inside_project_window_get_its_tasks(db, project, make_service):
    short = add_project(db, title="Hermes", start=date(2021, 1, 2), end=date(2021, 1, 26))
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=2)
    _fill(service, TODAY, short, Build=3)

    service.duplicate_efforts(TODAY, [TUESDAY, date(2021, 1, 27)], TODAY, USER_ID)

    entries = db.query(TimesheetEntry).filter(TimesheetEntry.timesheet_date == date(2021, 1, 27)).all()
    assert [(e.task.project_id, e.hours) for e in entries] == [(project.id, 2)]
    assert len(_hours(db, TUESDAY)) == 2


def test_no_eligible_target_fails(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=4)
    _fill(service, MONDAY, project, Build=8)

    with pytest.raises(HTTPException) as exc:
        service.duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)
    assert exc.value.status_code == 400


def test_locked_target_entries_count_as_failed_write(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=4)
    _fill(service, MONDAY, project, Design=3)
    _lock(db, MONDAY)

    with pytest.raises(HTTPException) as exc:
        service.duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)
    assert exc.value.status_code == 500
    assert _hours(db, MONDAY) == {"Design": 3}


def test_locked_target_hours_count_towards_daily_limit(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=1, Build=5)
    _fill(service, MONDAY, project, Design=8)
    _lock(db, MONDAY)

    result = service.duplicate_efforts(TODAY, [MONDAY, TUESDAY], TODAY, USER_ID)

    # The submitted 8 hours stay, so adding Build=5 would put Monday at 13.
    assert {r.timesheet_date for r in result} == {TUESDAY}
    assert _hours(db, MONDAY) == {"Design": 8}
    assert sum(_hours(db, MONDAY).values()) <= 10


def test_locked_target_writes_only_unlocked_tasks_within_limit(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=1, Build=5)
    _fill(service, MONDAY, project, Design=4)
    _lock(db, MONDAY, TimesheetStatus.APPROVED)

    result = service.duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)

    assert [(r.task_title, r.hours) for r in result] == [("Build", 5)]
    assert _hours(db, MONDAY) == {"Design": 4, "Build": 5}


def test_locked_target_hours_count_towards_weekly_limit(db, project, make_service):
    service = make_service(TODAY, daily_efforts_limit=12, weekly_efforts_limit=14)
    _fill(service, TODAY, project, Design=4)
    _fill(service, MONDAY, project, Build=7)
    _lock(db, MONDAY)

    # Sunday 4 + the copied 4 + the submitted 7 that stays on Monday is 15.
    with pytest.raises(HTTPException) as exc:
        service.duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)
    assert exc.value.status_code == 400

    assert _hours(db, MONDAY) == {"Build": 7}
    assert sum(e.hours for e in db.query(TimesheetEntry).all()) <= 14


def test_repeating_a_duplication_with_same_clock_succeeds(db, project, make_service):
    service = make_service(TODAY)
    _fill(service, TODAY, project, Design=4)

    first = service.duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)
    second = service.duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)

    assert [r.id for r in second] == [r.id for r in first]
    assert _hours(db, MONDAY) == {"Design": 4}


def test_locked_row_of_copied_task_counts_once_towards_weekly_limit(db, project, make_service):
    service = make_service(TODAY, weekly_efforts_limit=18)
    _fill(service, TODAY, project, Design=4, Build=5)
    _fill(service, MONDAY, project, Design=4)
    _lock(db, MONDAY)

    # Sunday 9 + Monday (submitted Design 4 + copied Build 5) is exactly 18.
    result = service.duplicate_efforts(TODAY, [MONDAY], TODAY, USER_ID)

    assert [(r.task_title, r.hours) for r in result] == [("Build", 5)]
    assert _hours(db, MONDAY) == {"Design": 4, "Build": 5}
