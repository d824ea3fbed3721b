import enum


class TimesheetStatus(str, enum.Enum):
    NONE = "none"
    SAVED = "saved"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class RecordState(str, enum.Enum):
    ACTIVE = "active"
    REMOVED = "removed"


# Who may move an entry from one status to another.
OWNER = "owner"
MANAGER = "manager"

ALLOWED_TRANSITIONS: dict[tuple[TimesheetStatus, TimesheetStatus], str] = {
    (TimesheetStatus.NONE, TimesheetStatus.SAVED): OWNER,
    (TimesheetStatus.NONE, TimesheetStatus.NONE): OWNER,
    (TimesheetStatus.SAVED, TimesheetStatus.SAVED): OWNER,
    (TimesheetStatus.SAVED, TimesheetStatus.NONE): OWNER,
    (TimesheetStatus.REJECTED, TimesheetStatus.SAVED): OWNER,
    (TimesheetStatus.REJECTED, TimesheetStatus.NONE): OWNER,
    (TimesheetStatus.SAVED, TimesheetStatus.SUBMITTED): OWNER,
    (TimesheetStatus.SUBMITTED, TimesheetStatus.APPROVED): MANAGER,
    (TimesheetStatus.SUBMITTED, TimesheetStatus.REJECTED): MANAGER,
}


def can_transition(current: TimesheetStatus, target: TimesheetStatus, actor: str) -> bool:
    return ALLOWED_TRANSITIONS.get((current, target)) == actor
