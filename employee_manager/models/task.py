# employee_manager/models/task.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text, JSON
from sqlalchemy.orm import relationship
import enum

from employee_manager.database import Base
from employee_manager.utils.dates import utcnow


class TaskStatus(str, enum.Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    NEEDS_FEEDBACK = "Needs Feedback"


class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class LogEntryType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    COMMENT = "comment"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    note = Column(Text, nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(
        Enum(TaskStatus, name="task_status", values_callable=_enum_values),
        default=TaskStatus.NOT_STARTED,
        nullable=False,
    )
    priority = Column(
        Enum(TaskPriority, name="task_priority", values_callable=_enum_values),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )

    due_date = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    # Provider name -> external event id, e.g. {"google": "...", "microsoft": "..."}
    calendar_event_ids = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    creator = relationship("User", foreign_keys=[creator_id], back_populates="created_tasks")
    assignee = relationship("User", foreign_keys=[assignee_id], back_populates="assigned_tasks")
    logs = relationship(
        "TaskLog",
        back_populates="task",
        order_by=lambda: [TaskLog.timestamp.desc(), TaskLog.id.desc()],
    )

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}')>"


class TaskLog(Base):
    """Append-only audit entry: a status transition or a comment on a task"""
    __tablename__ = "task_logs"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    previous_status = Column(
        Enum(TaskStatus, name="task_status", values_callable=_enum_values),
        nullable=True,
    )
    new_status = Column(
        Enum(TaskStatus, name="task_status", values_callable=_enum_values),
        nullable=False,
    )
    entry_type = Column(String, nullable=False, default=LogEntryType.STATUS_CHANGE.value)
    comment = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False)

    task = relationship("Task", back_populates="logs")
    user = relationship("User")

    @property
    def is_comment_only(self) -> bool:
        # Comments also record the unchanged status on both sides, but a status
        # update to the same status does too, so only entry_type tells them apart
        return self.entry_type == LogEntryType.COMMENT.value
