"""
Freeze window: which calendar dates are still open for timesheet edits.

The rule is evaluated against the caller's own local date, which the client
sends with every request, so that users in every time zone see the same cutoff
for their own month. The server clock is only used to check that the client
date is plausible.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

# Earliest and latest UTC offsets in use anywhere.
MIN_UTC_OFFSET = timedelta(hours=-12)
MAX_UTC_OFFSET = timedelta(hours=14)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _month_start(d: date) -> date:
    return d.replace(day=1)


def _month_end(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def _previous_month_start(d: date) -> date:
    return (_month_start(d) - timedelta(days=1)).replace(day=1)


def effective_freeze_day(client_current_date: date, freeze_day: int) -> int:
    """Clamp the configured freeze day to the length of the client's month."""
    days_in_month = calendar.monthrange(client_current_date.year, client_current_date.month)[1]
    return min(freeze_day, days_in_month)


def editable_range(client_current_date: date, freeze_day: int) -> tuple[date, date]:
    """First and last editable date for a client whose local date is ``client_current_date``.

    On or after the freeze day only the current month is open; before it the
    previous month is still open as well.
    """
    end = _month_end(client_current_date)
    if client_current_date.day >= effective_freeze_day(client_current_date, freeze_day):
        return _month_start(client_current_date), end
    return _previous_month_start(client_current_date), end


def get_not_yet_frozen_dates(
    timesheet_dates: Iterable[date],
    client_current_date: date,
    freeze_day: int,
) -> list[date]:
    start, end = editable_range(client_current_date, freeze_day)
    return [d for d in timesheet_dates if start <= d <= end]


def is_client_current_date_valid(client_current_date: date, utc_now: datetime) -> bool:
    """The client's date must be a date that is "today" somewhere on earth right now."""
    earliest = (utc_now + MIN_UTC_OFFSET).date()
    latest = (utc_now + MAX_UTC_OFFSET).date()
    return earliest <= client_current_date <= latest
