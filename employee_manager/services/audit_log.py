# employee_manager/services/audit_log.py
"""Read side of the task audit log: timelines, aggregates and exports."""

import csv
import io
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from employee_manager.models import Task, TaskLog, TaskStatus, TaskPriority, User
from employee_manager.utils.dates import utcnow


def timeline(db: Session, task_id: int) -> List[TaskLog]:
    """All log entries for a task, newest first, with the acting user loaded"""
    return (
        db.query(TaskLog)
        .options(joinedload(TaskLog.user))
        .filter(TaskLog.task_id == task_id)
        .order_by(TaskLog.timestamp.desc(), TaskLog.id.desc())
        .all()
    )


def _counts_by(db: Session, column, enum_cls, *filters) -> dict:
    counts = {member.value: 0 for member in enum_cls}
    rows = db.query(column, func.count(Task.id)).filter(*filters).group_by(column).all()
    for value, count in rows:
        counts[value.value if hasattr(value, 'value') else value] = count
    return counts


def overdue_count(db: Session, *filters) -> int:
    return (
        db.query(func.count(Task.id))
        .filter(Task.due_date < utcnow(), Task.status != TaskStatus.COMPLETED, *filters)
        .scalar()
    )


def per_assignee_stats(db: Session) -> List[dict]:
    completed = func.sum(case((Task.status == TaskStatus.COMPLETED, 1), else_=0))
    in_progress = func.sum(case((Task.status == TaskStatus.IN_PROGRESS, 1), else_=0))
    rows = (
        db.query(
            Task.assignee_id,
            User.name,
            User.email,
            func.count(Task.id),
            completed,
            in_progress,
        )
        .join(User, User.id == Task.assignee_id)
        .group_by(Task.assignee_id, User.name, User.email)
        .order_by(Task.assignee_id)
        .all()
    )
    return [
        {
            "assignee_id": assignee_id,
            "name": name,
            "email": email,
            "total": total,
            "completed": int(done or 0),
            "in_progress": int(active or 0),
        }
        for assignee_id, name, email, total, done, active in rows
    ]


def task_analytics(db: Session, include_per_user: bool = False) -> dict:
    """Task counts by status and priority plus the overdue count"""
    analytics = {
        "total": db.query(func.count(Task.id)).scalar(),
        "by_status": _counts_by(db, Task.status, TaskStatus),
        "by_priority": _counts_by(db, Task.priority, TaskPriority),
        "overdue": overdue_count(db),
    }
    if include_per_user:
        analytics["per_user"] = per_assignee_stats(db)
    return analytics


def export_tasks(db: Session) -> List[dict]:
    """Every task with its people and timeline, flattened for export"""
    tasks = (
        db.query(Task)
        .options(
            joinedload(Task.creator),
            joinedload(Task.assignee),
            joinedload(Task.logs).joinedload(TaskLog.user),
        )
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )
    return [
        {
            "id": task.id,
            "title": task.title,
            "description": task.description,
            "status": task.status.value,
            "priority": task.priority.value,
            "creator": task.creator.name,
            "assignee": task.assignee.name,
            "due_date": task.due_date.isoformat(),
            "created_at": task.created_at.isoformat(),
            "completed_at": task.completed_at.isoformat() if task.completed_at else None,
            "timeline": [
                {
                    "status": log.new_status.value,
                    "updated_by": log.user.name,
                    "timestamp": log.timestamp.isoformat(),
                    "comment": log.comment,
                }
                for log in task.logs
            ],
        }
        for task in tasks
    ]


EXPORT_COLUMNS = [
    "id", "title", "status", "priority", "creator", "assignee",
    "due_date", "created_at", "completed_at", "log_entries", "last_comment",
]


def export_tasks_csv(rows: List[dict]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_COLUMNS)
    for row in rows:
        last_comment: Optional[str] = row["timeline"][0]["comment"] if row["timeline"] else None
        writer.writerow([
            row["id"], row["title"], row["status"], row["priority"], row["creator"],
            row["assignee"], row["due_date"], row["created_at"], row["completed_at"] or "",
            len(row["timeline"]), last_comment or "",
        ])
    return output.getvalue()
