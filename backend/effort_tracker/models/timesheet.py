import uuid

from sqlalchemy import Column, String, Text, DateTime, Date, Integer, ForeignKey, Enum, Uuid, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from effort_tracker.database import Base
from effort_tracker.models.enums import TimesheetStatus


class TimesheetEntry(Base):
    __tablename__ = "timesheets"
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", "timesheet_date", name="uq_timesheets_user_task_date"),
        CheckConstraint("hours >= 0", name="ck_timesheets_hours_non_negative"),
        Index("ix_timesheets_user_date", "user_id", "timesheet_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    task_id = Column(Uuid, ForeignKey("tasks.id"), nullable=False, index=True)
    task_title = Column(String(200), nullable=False)
    timesheet_date = Column(Date, nullable=False)
    hours = Column(Integer, nullable=False, default=0)
    status = Column(
        Enum(
            TimesheetStatus,
            name="timesheet_status",
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=TimesheetStatus.NONE,
    )
    manager_comments = Column(Text, nullable=True, default="")
    submitted_on = Column(DateTime(timezone=True), nullable=True)
    created_on = Column(DateTime(timezone=True), server_default=func.now())
    last_modified_on = Column(DateTime(timezone=True), server_default=func.now())

    task = relationship("Task", lazy="joined")
