from effort_tracker.models.enums import TimesheetStatus, RecordState
from effort_tracker.models.project import Project, Member, Task
from effort_tracker.models.timesheet import TimesheetEntry

__all__ = [
    "TimesheetStatus",
    "RecordState",
    "Project",
    "Member",
    "Task",
    "TimesheetEntry",
]
