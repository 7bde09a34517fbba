# employee_manager/routers/deps.py
# Request-scoped services built around the notifiers created once at startup
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from employee_manager.database import get_db
from employee_manager.services.calendar_service import CalendarService
from employee_manager.services.email_service import EmailService
from employee_manager.services.scheduler import ReminderScheduler
from employee_manager.services.task_service import TaskService
from employee_manager.services.user_service import UserService


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_calendar_service(request: Request) -> CalendarService:
    return request.app.state.calendar_service


def get_reminder_scheduler(request: Request) -> ReminderScheduler:
    return request.app.state.reminder_scheduler


def get_task_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    calendar_service: CalendarService = Depends(get_calendar_service),
) -> TaskService:
    return TaskService(db, email_service, calendar_service)


def get_user_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> UserService:
    return UserService(db, email_service)
