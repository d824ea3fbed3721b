"""
Timesheet save / submit / duplicate / read.

Every mutating call:
  1. checks that the client's local date is plausible,
  2. drops frozen dates and dates that would break the effort limits,
  3. writes the remaining entries inside one unit of work.

Dates skipped in step 2 are not errors; the caller gets back only the entries
that were written. If nothing at all can be written the call fails with 400.
"""

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from effort_tracker.config import TimesheetSettings
from effort_tracker.database import RowCountMismatch, expect_writes, unit_of_work
from effort_tracker.models import Project, Task, TimesheetEntry, TimesheetStatus
from effort_tracker.models.enums import OWNER, can_transition
from effort_tracker.schemas.timesheet import ProjectDetails, TimesheetDetails, TimesheetResponse, UserTimesheet
from effort_tracker.services import repository
from effort_tracker.services.effort_limits import exceeds_daily_limit, total_efforts, will_weekly_limit_exceed
from effort_tracker.services.freeze_window import get_not_yet_frozen_dates, is_client_current_date_valid, utcnow

logger = logging.getLogger(__name__)


def _bad_request(message: str) -> HTTPException:
    logger.info(message)
    return HTTPException(status_code=400, detail=message)


def _to_response(entries: Iterable[TimesheetEntry]) -> list[TimesheetResponse]:
    return [TimesheetResponse.model_validate(e) for e in entries]


class TimesheetService:
    def __init__(
        self,
        db: Session,
        settings: TimesheetSettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock

    # ──────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────

    def is_current_date_valid(self, client_current_date: date) -> bool:
        return is_client_current_date_valid(client_current_date, self.clock())

    def not_yet_frozen_dates(self, dates: Iterable[date], client_current_date: date) -> list[date]:
        return get_not_yet_frozen_dates(dates, client_current_date, self.settings.timesheet_freeze_day_of_month)

    def _check_client_date(self, client_current_date: date, message: str = "The provided current date is invalid."):
        if not self.is_current_date_valid(client_current_date):
            raise _bad_request(message)

    @staticmethod
    def _split_day(
        stored: Iterable[TimesheetEntry], proposed: dict[uuid.UUID, int]
    ) -> tuple[dict[uuid.UUID, int], int]:
        """Split ``proposed`` (task id -> hours) against the rows already stored on one date.

        Returns the proposed hours that will actually be written and the sum of
        stored hours that stay on the date: rows of other tasks and locked rows.
        """
        writable = dict(proposed)
        kept = 0
        for entry in stored:
            if entry.task_id in writable and not can_transition(entry.status, TimesheetStatus.SAVED, OWNER):
                del writable[entry.task_id]
            if entry.task_id not in writable:
                kept += entry.hours
        return writable, kept

    def _day_total(self, timesheet: UserTimesheet, user_id: uuid.UUID) -> int:
        """Hours the user would have on this date once the payload is applied."""
        proposed = {d.task_id: d.hours for p in timesheet.project_details for d in p.timesheet_details}
        stored = repository.get_timesheets_of_user(self.db, user_id, [timesheet.timesheet_date])
        writable, kept = self._split_day(stored, proposed)
        return sum(writable.values()) + kept

    def _validate_references(
        self,
        timesheets: list[UserTimesheet],
        projects: dict[uuid.UUID, Project],
        user_id: uuid.UUID,
    ) -> dict[uuid.UUID, Task]:
        task_ids = {
            d.task_id for t in timesheets for p in t.project_details for d in p.timesheet_details
        }
        tasks = repository.get_tasks_by_ids(self.db, task_ids)

        for timesheet in timesheets:
            for project in timesheet.project_details:
                if not project.timesheet_details:
                    continue
                if project.id not in projects:
                    raise _bad_request("Unable to save timesheets as some of the projects are not assigned.")
                member = next(
                    m for m in projects[project.id].members if m.user_id == user_id and m.is_active
                )
                for detail in project.timesheet_details:
                    task = tasks.get(detail.task_id)
                    if task is None or task.project_id != project.id or not task.is_visible_to(member):
                        raise _bad_request("Unable to save timesheets as some of the tasks are not valid.")
        return tasks

    def _write_entry(
        self,
        existing: dict[tuple[date, uuid.UUID], TimesheetEntry],
        task: Task,
        day: date,
        hours: int,
        user_id: uuid.UUID,
        now: datetime,
    ) -> Optional[TimesheetEntry]:
        """Create or overwrite the (user, task, day) entry; None when nothing was written."""
        target = TimesheetStatus.SAVED if hours > 0 else TimesheetStatus.NONE
        entry = existing.get((day, task.id))

        if entry is None:
            if hours <= 0:
                return None
            entry = TimesheetEntry(
                user_id=user_id,
                task_id=task.id,
                task_title=task.title,
                timesheet_date=day,
                hours=hours,
                status=target,
                manager_comments="",
                last_modified_on=now,
            )
            self.db.add(entry)
            existing[(day, task.id)] = entry
            return entry

        if not can_transition(entry.status, target, OWNER):
            logger.info("Skipping %s entry for task %s on %s", entry.status.value, task.id, day)
            return None

        entry.hours = hours
        entry.status = target
        entry.task_title = task.title
        entry.last_modified_on = now
        return entry

    # ──────────────────────────────────────────────
    # Save
    # ──────────────────────────────────────────────

    def save_timesheets(
        self, user_timesheets: list[UserTimesheet], client_current_date: date, user_id: uuid.UUID
    ) -> list[TimesheetResponse]:
        self._check_client_date(client_current_date)

        to_save = [
            t for t in user_timesheets
            if any(p.timesheet_details for p in t.project_details)
        ]
        open_dates = set(self.not_yet_frozen_dates([t.timesheet_date for t in to_save], client_current_date))
        to_save = [t for t in to_save if t.timesheet_date in open_dates]

        if not to_save:
            raise _bad_request("The timesheet can not be filled for frozen timesheet dates.")

        start = min(t.timesheet_date for t in to_save)
        end = max(t.timesheet_date for t in to_save)
        projects = {p.id: p for p in repository.get_projects_for_user(self.db, user_id, start, end)}

        if not projects:
            raise _bad_request("There are no active projects assigned.")

        within_daily_limit = []
        for timesheet in to_save:
            day_total = self._day_total(timesheet, user_id)
            if exceeds_daily_limit(day_total, self.settings.daily_efforts_limit):
                logger.info(
                    "Daily limit %s exceeded for user %s on %s (%s hours); skipping date",
                    self.settings.daily_efforts_limit, user_id, timesheet.timesheet_date, day_total,
                )
                continue
            within_daily_limit.append((timesheet, day_total))

        tasks = self._validate_references([t for t, _ in within_daily_limit], projects, user_id)

        now = self.clock()
        saved: list[TimesheetEntry] = []
        try:
            with unit_of_work(self.db):
                for timesheet, day_total in within_daily_limit:
                    day = timesheet.timesheet_date
                    if will_weekly_limit_exceed(
                        self.db, user_id, day, day_total, self.settings.weekly_efforts_limit
                    ):
                        continue

                    task_ids = [d.task_id for p in timesheet.project_details for d in p.timesheet_details]
                    existing = {
                        (e.timesheet_date, e.task_id): e
                        for e in repository.get_timesheets(self.db, user_id, day, task_ids)
                    }
                    for project in timesheet.project_details:
                        if not project.timesheet_details:
                            continue
                        if not projects[project.id].covers(day):
                            logger.info("Project %s does not cover %s; skipping", project.id, day)
                            continue
                        for detail in project.timesheet_details:
                            task = tasks[detail.task_id]
                            if not task.covers(day):
                                continue
                            entry = self._write_entry(existing, task, day, detail.hours, user_id, now)
                            if entry is not None and entry not in saved:
                                saved.append(entry)

                    # Later dates in this batch must see these hours in the weekly sum.
                    self.db.flush()

                if not saved:
                    raise _bad_request("No timesheets were saved as none of the dates could be filled.")
        except HTTPException:
            raise
        except Exception:
            logger.exception("Failed to save timesheets.")
            raise HTTPException(status_code=500, detail="Failed to save timesheets.")

        logger.info("Saved %s timesheet entries for user %s", len(saved), user_id)
        return _to_response(saved)

    # ──────────────────────────────────────────────
    # Submit
    # ──────────────────────────────────────────────

    def submit_timesheets(
        self, client_current_date: date, user_timesheets: list[UserTimesheet], user_id: uuid.UUID
    ) -> list[TimesheetResponse]:
        if user_timesheets:
            self.save_timesheets(user_timesheets, client_current_date, user_id)
        else:
            self._check_client_date(client_current_date)

        saved = repository.get_timesheets_by_status(self.db, user_id, TimesheetStatus.SAVED)
        if not saved:
            raise _bad_request("Unable to submit timesheets as there are no saved timesheets found.")

        open_dates = set(self.not_yet_frozen_dates({e.timesheet_date for e in saved}, client_current_date))
        saved = [e for e in saved if e.timesheet_date in open_dates]
        if not saved:
            raise _bad_request("The timesheet can not be submitted for frozen timesheet dates.")

        now = self.clock()
        try:
            with unit_of_work(self.db):
                for entry in saved:
                    if not can_transition(entry.status, TimesheetStatus.SUBMITTED, OWNER):
                        raise RowCountMismatch(f"entry {entry.id} is {entry.status.value}")
                    entry.status = TimesheetStatus.SUBMITTED
                    entry.submitted_on = now
                    entry.last_modified_on = now
                expect_writes(self.db, len(saved))
        except Exception:
            logger.exception("Failed to submit timesheets.")
            raise HTTPException(status_code=500, detail="Failed to submit timesheets.")

        logger.info("Submitted %s timesheet entries for user %s", len(saved), user_id)
        return _to_response(saved)

    # ──────────────────────────────────────────────
    # Read
    # ──────────────────────────────────────────────

    def get_timesheets(self, start: date, end: date, user_id: uuid.UUID) -> list[UserTimesheet]:
        """Fill-timesheet grid: one item per day that has at least one of the user's projects."""
        if start > end:
            raise _bad_request("The start date must be less than or equal to end date.")

        projects = repository.get_projects_for_user(self.db, user_id, start, end)
        filled = {
            (e.task_id, e.timesheet_date): e
            for e in repository.get_timesheets_between(self.db, user_id, start, end)
        }
        members = {
            p.id: next(m for m in p.members if m.user_id == user_id and m.is_active)
            for p in projects
        }

        timesheets = []
        for offset in range((end - start).days + 1):
            day = start + timedelta(days=offset)
            covering = [p for p in projects if p.covers(day)]
            if not covering:
                continue

            project_details = []
            for project in covering:
                details = []
                for task in project.tasks:
                    if not task.is_visible_to(members[project.id]) or not task.covers(day):
                        continue
                    entry = filled.get((task.id, day))
                    details.append(TimesheetDetails(
                        task_id=task.id,
                        task_title=task.title,
                        is_added_by_member=task.is_added_by_member,
                        start_date=task.start_date,
                        end_date=task.end_date,
                        hours=entry.hours if entry else 0,
                        status=entry.status if entry else TimesheetStatus.NONE,
                        manager_comments=(entry.manager_comments or "") if entry else "",
                    ))
                project_details.append(ProjectDetails(
                    id=project.id,
                    title=project.title,
                    start_date=project.start_date,
                    end_date=project.end_date,
                    timesheet_details=details,
                ))
            timesheets.append(UserTimesheet(timesheet_date=day, project_details=project_details))
        return timesheets

    # ──────────────────────────────────────────────
    # Duplicate
    # ──────────────────────────────────────────────

    def duplicate_efforts(
        self,
        source_date: date,
        target_dates: list[date],
        client_current_date: date,
        user_id: uuid.UUID,
    ) -> list[TimesheetResponse]:
        self._check_client_date(
            client_current_date, "The timesheet can not be filled as provided current date is invalid."
        )

        targets = self.not_yet_frozen_dates(sorted(set(target_dates) - {source_date}), client_current_date)
        if not targets:
            raise _bad_request("The timesheet can not be filled as the target dates are frozen.")

        source_view = self.get_timesheets(source_date, source_date, user_id)
        if not source_view or not source_view[0].project_details:
            raise _bad_request("The source date must have projects.")
        source = source_view[0]

        source_total = total_efforts([source])
        if source_total <= 0:
            raise _bad_request("The source date has no efforts to duplicate.")

        source_task_ids = {d.task_id for p in source.project_details for d in p.timesheet_details if d.hours > 0}
        tasks = repository.get_tasks_by_ids(self.db, source_task_ids)

        now = self.clock()
        duplicated: list[TimesheetEntry] = []
        candidates = 0
        try:
            with unit_of_work(self.db):
                for target in targets:
                    to_copy = {
                        d.task_id: d.hours
                        for p in source.project_details
                        if p.start_date <= target <= p.end_date
                        for d in p.timesheet_details
                        if d.hours > 0 and tasks[d.task_id].covers(target)
                    }
                    if not to_copy:
                        continue

                    on_target = repository.get_timesheets_of_user(self.db, user_id, [target])
                    writable, kept = self._split_day(on_target, to_copy)
                    day_total = sum(writable.values()) + kept
                    if exceeds_daily_limit(day_total, self.settings.daily_efforts_limit):
                        logger.info("Daily limit exceeded on %s (%s hours); not duplicating", target, day_total)
                        continue
                    if will_weekly_limit_exceed(
                        self.db, user_id, target, day_total, self.settings.weekly_efforts_limit
                    ):
                        continue

                    existing = {(e.timesheet_date, e.task_id): e for e in on_target}
                    for task_id, hours in to_copy.items():
                        candidates += 1
                        entry = self._write_entry(existing, tasks[task_id], target, hours, user_id, now)
                        if entry is not None:
                            duplicated.append(entry)

                    self.db.flush()

                if not candidates:
                    raise _bad_request("No efforts were duplicated as the target dates are not eligible.")
                if not duplicated:
                    raise RowCountMismatch("no rows written while duplicating efforts")
        except HTTPException:
            raise
        except Exception:
            logger.exception("Failed to duplicate efforts.")
            raise HTTPException(status_code=500, detail="Failed to duplicate efforts.")

        logger.info("Duplicated %s entries from %s for user %s", len(duplicated), source_date, user_id)
        return _to_response(duplicated)
