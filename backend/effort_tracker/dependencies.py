"""
Request-scoped dependencies.

Identity: the caller's user id arrives in the X-User-Id header. Resolving and
verifying that identity is done upstream (gateway / Teams SSO) and is outside
this service; AUTH_MODE=demo additionally falls back to a fixed demo user.
"""

import os
import uuid
from fastapi import HTTPException, Header, Depends
from sqlalchemy.orm import Session
from typing import Optional

from effort_tracker.config import TimesheetSettings, get_settings
from effort_tracker.database import get_db
from effort_tracker.services.timesheet_service import TimesheetService

AUTH_MODE = os.getenv("AUTH_MODE", "header")  # "header" or "demo"

DEMO_USER_ID = "00000000-0000-0000-0000-000000000000"


def _as_uuid(value) -> uuid.UUID:
    if value is None:
        raise ValueError("None is not a UUID")
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> uuid.UUID:
    if not x_user_id and AUTH_MODE == "demo":
        x_user_id = DEMO_USER_ID
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return _as_uuid(x_user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-User-Id (must be UUID)")


def get_timesheet_service(
    db: Session = Depends(get_db),
    settings: TimesheetSettings = Depends(get_settings),
) -> TimesheetService:
    return TimesheetService(db, settings)
