from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from worklog.database import Base


class TimeEntryStatus:
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    ALL = (IN_PROGRESS, COMPLETED, CANCELLED)


_ACTIVE_PREDICATE = text("status = 'IN_PROGRESS'")


class TimeEntry(Base):
    __tablename__ = "time_entries"

    __table_args__ = (
        Index(
            "uq_time_entries_active_user",
            "user_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        CheckConstraint(
            "duration IS NULL OR duration >= 0",
            name="ck_time_entries_duration_nonnegative",
        ),
        Index("ix_time_entries_user_start", "user_id", "start_time"),
    )

    id = Column(String, primary_key=True, index=True)

    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration = Column(Integer, nullable=True)  # minutes

    status = Column(String, nullable=False, index=True, default=TimeEntryStatus.IN_PROGRESS)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", lazy="joined", innerjoin=True)
    project = relationship("Project", lazy="joined", innerjoin=True)
    task = relationship("Task", lazy="joined", innerjoin=True)
