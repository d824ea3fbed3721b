import uuid

from sqlalchemy import Column, String, Boolean, Date, DateTime, Integer, ForeignKey, Enum, Uuid, UniqueConstraint
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from effort_tracker.database import Base
from effort_tracker.models.enums import RecordState

_RECORD_STATE = Enum(
    RecordState,
    name="record_state",
    native_enum=False,
    length=20,
    values_callable=lambda e: [m.value for m in e],
)


class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    billable_hours = Column(Integer, nullable=False, default=0)
    non_billable_hours = Column(Integer, nullable=False, default=0)
    created_by = Column(Uuid, nullable=False, index=True)
    created_on = Column(DateTime(timezone=True), server_default=func.now())
    updated_on = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tasks = relationship("Task", back_populates="project", lazy="selectin")
    members = relationship("Member", back_populates="project", lazy="selectin")

    def covers(self, day) -> bool:
        return self.start_date <= day <= self.end_date


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_members_project_user"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=False, index=True)
    is_billable = Column(Boolean, nullable=False, default=True)
    state = Column(_RECORD_STATE, nullable=False, default=RecordState.ACTIVE)

    project = relationship("Project", back_populates="members")

    @hybrid_property
    def is_active(self):
        return self.state == RecordState.ACTIVE


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_added_by_member = Column(Boolean, nullable=False, default=False)
    member_id = Column(Uuid, ForeignKey("members.id"), nullable=True)
    state = Column(_RECORD_STATE, nullable=False, default=RecordState.ACTIVE)

    project = relationship("Project", back_populates="tasks")
    member = relationship("Member")

    @hybrid_property
    def is_active(self):
        return self.state == RecordState.ACTIVE

    def covers(self, day) -> bool:
        return self.start_date <= day <= self.end_date

    def is_visible_to(self, member: Member) -> bool:
        """Manager tasks are visible to every member, member tasks only to their author."""
        if not self.is_active:
            return False
        return not self.is_added_by_member or self.member_id == member.id
