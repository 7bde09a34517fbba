# employee_manager/services/task_service.py
"""Task lifecycle: creation, status changes, comments and bulk updates.

Each operation validates first, then mutates the task row and appends
exactly one TaskLog row per task in the same commit. Email and calendar
calls happen only after that commit and are best-effort: a notifier
failure is logged and never reaches the caller or undoes the task change.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from employee_manager.models import LogEntryType, Task, TaskLog, TaskStatus, TaskPriority, User
from employee_manager.schemas.task import TaskCreate
from employee_manager.services.calendar_service import CalendarService
from employee_manager.services.email_service import EmailService
from employee_manager.services.errors import InvalidAssignee, NotAuthorized, NotFound, ValidationFailed
from employee_manager.utils.access import can_access_task, can_update_status, visible_tasks_clause
from employee_manager.utils.dates import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

TASK_CREATED_COMMENT = "Task created"


def _coerce_status(value) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in TaskStatus)
        raise ValidationFailed(f"Invalid status. Must be one of: {valid}")


class TaskService:
    """Request-scoped task operations over a DB session plus process-wide notifiers"""

    def __init__(self, db: Session, email_service: EmailService, calendar_service: CalendarService):
        self.db = db
        self.email_service = email_service
        self.calendar_service = calendar_service

    # Lookups

    def _load_task(self, task_id: int, with_logs: bool = False) -> Task:
        options = [joinedload(Task.creator), joinedload(Task.assignee)]
        if with_logs:
            options.append(joinedload(Task.logs).joinedload(TaskLog.user))
        task = self.db.query(Task).options(*options).filter(Task.id == task_id).first()
        if not task:
            raise NotFound("Task not found")
        return task

    def get_task(self, actor: User, task_id: int, with_logs: bool = True) -> Task:
        task = self._load_task(task_id, with_logs=with_logs)
        if not can_access_task(actor, task):
            raise NotAuthorized("Not authorized to access this task")
        return task

    def _visible_query(self, actor: User):
        query = self.db.query(Task).options(joinedload(Task.creator), joinedload(Task.assignee))
        clause = visible_tasks_clause(actor)
        if clause is not None:
            query = query.filter(clause)
        return query

    @staticmethod
    def _apply_filters(query, status: Optional[TaskStatus] = None, priority: Optional[TaskPriority] = None,
                       start_date: Optional[datetime] = None, end_date: Optional[datetime] = None):
        if status:
            query = query.filter(Task.status == status)
        if priority:
            query = query.filter(Task.priority == priority)
        # A due-date range only applies when both ends are given
        if start_date and end_date:
            query = query.filter(Task.due_date.between(to_naive_utc(start_date), to_naive_utc(end_date)))
        return query

    def list_tasks(self, actor: User, status: Optional[TaskStatus] = None,
                   priority: Optional[TaskPriority] = None, start_date: Optional[datetime] = None,
                   end_date: Optional[datetime] = None) -> List[Task]:
        """Admins see every task; everyone else only tasks they created or are assigned"""
        query = self._apply_filters(self._visible_query(actor), status, priority, start_date, end_date)
        return query.order_by(Task.created_at.desc(), Task.id.desc()).all()

    def search_tasks(self, actor: User, text: Optional[str] = None, status: Optional[TaskStatus] = None,
                     priority: Optional[TaskPriority] = None, assignee_id: Optional[int] = None,
                     start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> List[Task]:
        query = self._apply_filters(self._visible_query(actor), status, priority, start_date, end_date)
        if text:
            pattern = f"%{text}%"
            query = query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        if assignee_id:
            query = query.filter(Task.assignee_id == assignee_id)
        return query.order_by(Task.created_at.desc(), Task.id.desc()).all()

    # Mutations

    def create_task(self, actor: User, data: TaskCreate) -> Task:
        """Create a task and its initial log entry.

        Notifies the assignee by email and schedules a calendar event for the
        due date; both are best-effort and never fail the creation.
        """
        due_date = to_naive_utc(data.due_date)
        if due_date <= utcnow():
            raise ValidationFailed(
                "Due date must be in the future",
                errors=[{"field": "due_date", "message": "Due date must be in the future"}],
            )

        assignee = self.db.get(User, data.assignee_id)
        if assignee is None or not assignee.is_active:
            raise InvalidAssignee()

        task = Task(
            title=data.title,
            description=data.description,
            note=data.note,
            creator_id=actor.id,
            assignee_id=assignee.id,
            due_date=due_date,
            status=TaskStatus.NOT_STARTED,
            priority=data.priority or TaskPriority.MEDIUM,
        )
        self.db.add(task)
        self.db.flush()
        self.db.add(TaskLog(
            task_id=task.id,
            user_id=actor.id,
            previous_status=None,
            new_status=TaskStatus.NOT_STARTED,
            comment=TASK_CREATED_COMMENT,
        ))
        self.db.commit()
        self.db.refresh(task)
        logger.info("Task %s created by user %s for user %s", task.id, actor.id, assignee.id)

        self._notify_assignment(task, assignee)
        self._schedule_calendar_event(task, assignee)
        return task

    def _apply_status(self, actor: User, task: Task, new_status: TaskStatus, comment: Optional[str]) -> TaskStatus:
        """Write the new status and stage its log entry; the caller commits"""
        previous_status = task.status
        task.status = new_status
        if new_status == TaskStatus.COMPLETED:
            # Refreshed on every transition to Completed, including Completed -> Completed
            task.completed_at = utcnow()
        self.db.add(TaskLog(
            task_id=task.id,
            user_id=actor.id,
            previous_status=previous_status,
            new_status=new_status,
            comment=comment,
        ))
        return previous_status

    def update_status(self, actor: User, task_id: int, new_status, comment: Optional[str] = None) -> Task:
        """Change a task's status (admin or assignee only).

        Emails the creator a completion notice when the new status is
        Completed; that email is best-effort.
        """
        task = self._load_task(task_id)
        if not can_update_status(actor, task):
            raise NotAuthorized("Not authorized to update this task")
        new_status = _coerce_status(new_status)

        previous_status = self._apply_status(actor, task, new_status, comment)
        self.db.commit()
        self.db.refresh(task)
        logger.info("Task %s status %s -> %s by user %s",
                    task.id, previous_status.value, new_status.value, actor.id)

        if new_status == TaskStatus.COMPLETED:
            self._notify_completion(task, actor)
        return task

    def add_comment(self, actor: User, task_id: int, comment: str) -> TaskLog:
        """Append a comment-only entry: previous and new status both equal the current status"""
        task = self._load_task(task_id)
        if not can_access_task(actor, task):
            raise NotAuthorized("Not authorized to access this task")
        if not comment or not comment.strip():
            raise ValidationFailed("Comment is required")

        log = TaskLog(
            task_id=task.id,
            user_id=actor.id,
            previous_status=task.status,
            new_status=task.status,
            entry_type=LogEntryType.COMMENT.value,
            comment=comment.strip(),
        )
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        return log

    def bulk_update_status(self, actor: User, task_ids: Iterable[int], new_status,
                           comment: Optional[str] = None) -> Dict[str, list]:
        """Apply one status to many tasks, best-effort per id.

        Every id is committed on its own; a missing task or a failed write is
        reported in ``failed`` and the remaining ids are still processed.
        """
        if not actor.is_admin:
            raise NotAuthorized("Admin access required")
        new_status = _coerce_status(new_status)
        comment = comment or f"Bulk status update to {new_status.value}"

        updated: List[int] = []
        failed: List[dict] = []
        for task_id in dict.fromkeys(task_ids):
            task = self.db.get(Task, task_id)
            if task is None:
                failed.append({"id": task_id, "reason": "Task not found"})
                continue
            try:
                self._apply_status(actor, task, new_status, comment)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Bulk status update failed for task %s: %s", task_id, e)
                failed.append({"id": task_id, "reason": "Update failed"})
                continue
            updated.append(task_id)
            if new_status == TaskStatus.COMPLETED:
                self._notify_completion(task, actor)

        logger.info("Bulk status update to %s by user %s: %d updated, %d failed",
                    new_status.value, actor.id, len(updated), len(failed))
        return {"updated": updated, "failed": failed}

    # Best-effort side effects

    def _notify_assignment(self, task: Task, assignee: User) -> None:
        try:
            self.email_service.send_task_assigned(assignee.email, task)
        except Exception:
            logger.exception("Email notification failed for task %s", task.id)

    def _schedule_calendar_event(self, task: Task, assignee: User) -> None:
        try:
            event_ids = self.calendar_service.schedule_event(
                title=task.title,
                description=task.description,
                start_time=task.due_date,
                attendees=[assignee.email],
            )
            if event_ids:
                task.calendar_event_ids = event_ids
                self.db.commit()
                self.db.refresh(task)
        except Exception:
            self.db.rollback()
            logger.exception("Calendar event scheduling failed for task %s", task.id)

    def _notify_completion(self, task: Task, actor: User) -> None:
        try:
            creator = task.creator or self.db.get(User, task.creator_id)
            self.email_service.send_task_completed(creator.email, task, completed_by=actor.name)
        except Exception:
            logger.exception("Completion notification failed for task %s", task.id)
