import logging
import uuid
from datetime import date, timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from effort_tracker.schemas.timesheet import UserTimesheet
from effort_tracker.services import repository

logger = logging.getLogger(__name__)


def week_bounds(d: date) -> tuple[date, date]:
    """Sunday..Saturday week containing ``d``."""
    start = d - timedelta(days=(d.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def total_efforts(user_timesheets: Iterable[UserTimesheet]) -> int:
    total = 0
    for timesheet in user_timesheets:
        for project in timesheet.project_details:
            total += sum(t.hours for t in project.timesheet_details)
    return total


def exceeds_daily_limit(efforts: int, daily_limit: int) -> bool:
    return efforts > daily_limit


def will_weekly_limit_exceed(
    db: Session,
    user_id: uuid.UUID,
    timesheet_date: date,
    efforts_to_save: int,
    weekly_limit: int,
) -> bool:
    """Would ``efforts_to_save`` on ``timesheet_date`` push the user's week over the limit?

    Rows already stored on ``timesheet_date`` are left out of the sum because
    the new efforts replace them.
    """
    start, end = week_bounds(timesheet_date)
    filled = repository.get_hours_between(db, user_id, start, end, exclude_date=timesheet_date)
    if filled is None:
        return efforts_to_save > weekly_limit

    exceeded = filled + efforts_to_save > weekly_limit
    if exceeded:
        logger.info(
            "Weekly limit %s exceeded for user %s on %s (filled=%s, new=%s)",
            weekly_limit, user_id, timesheet_date, filled, efforts_to_save,
        )
    return exceeded
