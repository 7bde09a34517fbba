"""
Database seeding script
Creates tables, a default admin and a handful of demo employees and tasks
"""

import logging
from datetime import timedelta

from create_tables import create_tables
from employee_manager.config import Settings
from employee_manager.database import SessionLocal
from employee_manager.models import Task, User, UserRole
from employee_manager.schemas.task import TaskCreate
from employee_manager.schemas.user import UserCreate
from employee_manager.services.calendar_service import CalendarService
from employee_manager.services.email_service import EmailService
from employee_manager.services.task_service import TaskService
from employee_manager.services.user_service import UserService
from employee_manager.utils.dates import utcnow
from employee_manager.utils.logger import setup_logging

logger = logging.getLogger(__name__)

DOMAIN = Settings.ORGANIZATION['email_domain']

DEMO_USERS = [
    {"name": "Rajesh Kumar", "email": f"rajesh.kumar@{DOMAIN}", "password": "password123"},
    {"name": "Priya Sharma", "email": f"priya.sharma@{DOMAIN}", "password": "password123"},
    {"name": "Arjun Singh", "email": f"arjun.singh@{DOMAIN}", "password": "password123"},
]

# (title, description, assignee index, days until due, priority)
DEMO_TASKS = [
    ("Prepare onboarding checklist", "Draft the checklist for new joiners", 0, 3, "High"),
    ("Update client proposal", "Incorporate feedback from the last review", 1, 5, "Medium"),
    ("Clean up shared drive", "Archive documents older than a year", 2, 10, "Low"),
]


def seed():
    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.role == UserRole.ADMIN.value).first()
        if admin is None:
            logger.error("No admin user found; run create_tables.py first")
            return

        # Seeding never emails or books calendars
        email_service = EmailService(config={"from_email": Settings.EMAIL['from_email']})
        users = UserService(db)
        tasks = TaskService(db, email_service, CalendarService())

        employees = []
        for data in DEMO_USERS:
            existing = db.query(User).filter(User.email == data["email"]).first()
            employees.append(existing or users.create_user(UserCreate(**data)))

        if db.query(Task).count():
            logger.info("Tasks already present, skipping demo tasks")
            return

        for title, description, index, days, priority in DEMO_TASKS:
            tasks.create_task(admin, TaskCreate(
                title=title,
                description=description,
                assignee_id=employees[index].id,
                due_date=utcnow() + timedelta(days=days),
                priority=priority,
            ))
        logger.info("Seeded %d users and %d tasks", len(employees), len(DEMO_TASKS))
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    create_tables()
    seed()
