# employee_manager/services/scheduler.py
from datetime import timedelta
from typing import Any, Callable, Dict, Optional
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session, joinedload

from employee_manager.config import Settings
from employee_manager.database import SessionLocal
from employee_manager.models import Task, TaskStatus
from employee_manager.services.email_service import EmailService
from employee_manager.utils.dates import utcnow

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Daily job that emails assignees about tasks coming due"""

    def __init__(self, email_service: EmailService, session_factory: Callable[[], Session] = SessionLocal,
                 config: Optional[dict] = None):
        self.email_service = email_service
        self.session_factory = session_factory
        self.config = dict(config or Settings.SCHEDULER)
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False

    def start(self):
        """Start the scheduler (must be called with a running event loop)"""
        if self.is_running:
            return
        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.check_tasks_due_soon,
            trigger=CronTrigger(hour=self.config['reminder_hour'], minute=0),
            id='daily_due_date_reminders',
            name='Daily Due Date Reminders',
            replace_existing=True
        )
        self.scheduler.start()
        self.is_running = True
        logger.info("Reminder scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Reminder scheduler stopped")

    def find_tasks_due_soon(self, db: Session):
        now = utcnow()
        window_end = now + timedelta(hours=self.config['reminder_window_hours'])
        return (
            db.query(Task)
            .options(joinedload(Task.assignee))
            .filter(
                Task.due_date >= now,
                Task.due_date <= window_end,
                Task.status != TaskStatus.COMPLETED,
            )
            .all()
        )

    def check_tasks_due_soon(self) -> int:
        """Email the assignee of every open task due within the window; returns emails sent.

        Must stay a plain function: AsyncIOScheduler and FastAPI then run it
        in a worker thread, never on the event loop.
        """
        logger.info("Checking for tasks due soon...")
        sent = 0
        db = self.session_factory()
        try:
            tasks = self.find_tasks_due_soon(db)
            logger.info("Found %d tasks due soon", len(tasks))
            for task in tasks:
                try:
                    self.email_service.send_due_date_reminder(task.assignee.email, task)
                    sent += 1
                except Exception:
                    logger.exception("Due date reminder failed for task %s", task.id)
        finally:
            db.close()
        return sent

    def get_scheduler_status(self) -> Dict[str, Any]:
        """Get scheduler status and job information"""
        if not self.is_running:
            return {"status": "stopped", "jobs": []}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            })

        return {
            "status": "running",
            "jobs": jobs
        }
