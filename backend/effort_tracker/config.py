"""
Timesheet business-rule configuration.

Read once from the environment at process start and handed to the services as
an immutable value. Nothing in the services reads os.environ directly.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env", override=True)


@dataclass(frozen=True)
class TimesheetSettings:
    # Day of month from which the previous month's timesheets can no longer be edited.
    timesheet_freeze_day_of_month: int = 10
    daily_efforts_limit: int = 24
    weekly_efforts_limit: int = 168

    def __post_init__(self):
        if self.timesheet_freeze_day_of_month < 1:
            raise ValueError("timesheet_freeze_day_of_month must be at least 1")
        if self.daily_efforts_limit < 0 or self.weekly_efforts_limit < 0:
            raise ValueError("effort limits must not be negative")


def load_settings() -> TimesheetSettings:
    return TimesheetSettings(
        timesheet_freeze_day_of_month=int(os.getenv("TIMESHEET_FREEZE_DAY_OF_MONTH", "10")),
        daily_efforts_limit=int(os.getenv("DAILY_EFFORTS_LIMIT", "24")),
        weekly_efforts_limit=int(os.getenv("WEEKLY_EFFORTS_LIMIT", "168")),
    )


@lru_cache
def get_settings() -> TimesheetSettings:
    """FastAPI dependency; settings are fixed for the lifetime of the process."""
    return load_settings()
