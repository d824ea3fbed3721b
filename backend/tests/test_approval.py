import uuid
from datetime import date

import pytest
from fastapi import HTTPException

from conftest import MANAGER_ID, OTHER_USER_ID, USER_ID, add_project
from effort_tracker.models import Member, RecordState, TimesheetEntry, TimesheetStatus
from effort_tracker.schemas.timesheet import ProjectDetails, RequestApproval, TimesheetDetails, UserTimesheet
from effort_tracker.services import approval_service

TODAY = date(2021, 1, 24)


def _submit(service, project, user_id=USER_ID, days=(TODAY,), hours=4):
    task = next(t for t in project.tasks if t.title == "Design")
    payload = [
        UserTimesheet(
            timesheet_date=day,
            project_details=[ProjectDetails(
                id=project.id, timesheet_details=[TimesheetDetails(task_id=task.id, hours=hours)]
            )],
        )
        for day in days
    ]
    return [r.id for r in service.submit_timesheets(TODAY, payload, user_id)]


def _statuses(db):
    return {e.id: e.status for e in db.query(TimesheetEntry).all()}


def test_approve_clears_comments(db, project, make_service):
    ids = _submit(make_service(TODAY), project)
    db.query(TimesheetEntry).update({"manager_comments": "stale"})
    db.commit()

    entries = approval_service.approve_or_reject_timesheets(
        db, MANAGER_ID, [RequestApproval(timesheet_id=ids[0], manager_comments="ignored")], TimesheetStatus.APPROVED
    )

    assert entries[0].status == TimesheetStatus.APPROVED
    assert entries[0].manager_comments == ""


def test_reject_stores_comment(db, project, make_service):
    ids = _submit(make_service(TODAY), project, days=(TODAY, date(2021, 1, 25)))

    approval_service.approve_or_reject_timesheets(
        db,
        MANAGER_ID,
        [RequestApproval(timesheet_id=i, manager_comments="Split by task please") for i in ids],
        TimesheetStatus.REJECTED,
    )

    entries = db.query(TimesheetEntry).all()
    assert {e.status for e in entries} == {TimesheetStatus.REJECTED}
    assert {e.manager_comments for e in entries} == {"Split by task please"}


def test_one_foreign_id_fails_whole_request(db, project, make_service):
    other_manager = uuid.uuid4()
    foreign_project = add_project(db, title="Hermes", manager_id=other_manager)
    service = make_service(TODAY)
    own = _submit(service, project, days=(TODAY, date(2021, 1, 25)))
    foreign = _submit(service, foreign_project, days=(date(2021, 1, 26),))

    with pytest.raises(HTTPException) as exc:
        approval_service.approve_or_reject_timesheets(
            db,
            MANAGER_ID,
            [RequestApproval(timesheet_id=i) for i in own + foreign],
            TimesheetStatus.APPROVED,
        )

    assert exc.value.status_code == 404
    assert set(_statuses(db).values()) == {TimesheetStatus.SUBMITTED}


def test_entries_no_longer_submitted_are_not_found(db, project, make_service):
    ids = _submit(make_service(TODAY), project)
    approval_service.approve_or_reject_timesheets(
        db, MANAGER_ID, [RequestApproval(timesheet_id=ids[0])], TimesheetStatus.APPROVED
    )

    with pytest.raises(HTTPException) as exc:
        approval_service.approve_or_reject_timesheets(
            db, MANAGER_ID, [RequestApproval(timesheet_id=ids[0])], TimesheetStatus.REJECTED
        )
    assert exc.value.status_code == 404
    assert _statuses(db)[ids[0]] == TimesheetStatus.APPROVED


def test_empty_request_is_bad_request(db):
    with pytest.raises(HTTPException) as exc:
        approval_service.approve_or_reject_timesheets(db, MANAGER_ID, [], TimesheetStatus.APPROVED)
    assert exc.value.status_code == 400


def test_only_approve_or_reject_are_accepted(db, project, make_service):
    ids = _submit(make_service(TODAY), project)
    with pytest.raises(HTTPException) as exc:
        approval_service.approve_or_reject_timesheets(
            db, MANAGER_ID, [RequestApproval(timesheet_id=ids[0])], TimesheetStatus.SAVED
        )
    assert exc.value.status_code == 400
    assert _statuses(db)[ids[0]] == TimesheetStatus.SUBMITTED


def test_duplicate_ids_in_request_are_counted_once(db, project, make_service):
    ids = _submit(make_service(TODAY), project)
    entries = approval_service.approve_or_reject_timesheets(
        db,
        MANAGER_ID,
        [RequestApproval(timesheet_id=ids[0]), RequestApproval(timesheet_id=ids[0])],
        TimesheetStatus.APPROVED,
    )
    assert len(entries) == 1


def test_requests_are_listed_per_manager_and_reportee(db, project, make_service):
    db.add(Member(project_id=project.id, user_id=OTHER_USER_ID, state=RecordState.ACTIVE))
    db.commit()
    service = make_service(TODAY)
    _submit(service, project, days=(TODAY, date(2021, 1, 25)), hours=3)
    _submit(service, project, user_id=OTHER_USER_ID, days=(date(2021, 1, 26),), hours=5)

    assert len(approval_service.get_timesheet_requests(db, MANAGER_ID)) == 3
    assert len(approval_service.get_timesheet_requests(db, MANAGER_ID, user_id=OTHER_USER_ID)) == 1
    assert approval_service.get_timesheet_requests(db, uuid.uuid4()) == []

    summary = {s.user_id: s for s in approval_service.get_pending_requests_summary(db, MANAGER_ID)}
    assert summary[USER_ID].entries == 2
    assert summary[USER_ID].total_hours == 6
    assert summary[USER_ID].first_date == TODAY
    assert summary[USER_ID].last_date == date(2021, 1, 25)
    assert summary[OTHER_USER_ID].total_hours == 5
