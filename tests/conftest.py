"""Pytest configuration and shared fixtures."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from employee_manager.database import Base, get_db
from employee_manager.models import Task, TaskLog, TaskStatus, User, UserRole
from employee_manager.routers.deps import get_calendar_service, get_email_service
from employee_manager.services.task_service import TaskService
from employee_manager.utils.dates import utcnow
from employee_manager.utils.security import create_access_token, get_password_hash
from main import app
from tests.fakes import FakeCalendarService, FakeEmailService

DOMAIN = "thewebvalue.com"
PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def calendar_service():
    return FakeCalendarService(result={"google": "evt-google-1"})


@pytest.fixture
def task_service(db, email_service, calendar_service):
    return TaskService(db, email_service, calendar_service)


@pytest.fixture
def client(session_factory, email_service, calendar_service):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_calendar_service] = lambda: calendar_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(name=None, role=UserRole.EMPLOYEE, is_active=True, email=None):
        counter["n"] += 1
        name = name or f"User {counter['n']}"
        user = User(
            name=name,
            email=email or f"user{counter['n']}@{DOMAIN}",
            hashed_password=get_password_hash(PASSWORD),
            role=role.value,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def employee(make_user):
    return make_user(name="Employee")


@pytest.fixture
def other_employee(make_user):
    return make_user(name="Bystander")


@pytest.fixture
def make_task(db):
    """Insert a task row with its creation log directly, bypassing notifiers"""

    def _make_task(creator, assignee, status=TaskStatus.NOT_STARTED, due_in=timedelta(days=2), title="Task"):
        task = Task(
            title=title,
            description=f"{title} description",
            creator_id=creator.id,
            assignee_id=assignee.id,
            due_date=utcnow() + due_in,
            status=status,
        )
        db.add(task)
        db.flush()
        db.add(TaskLog(task_id=task.id, user_id=creator.id, previous_status=None,
                       new_status=TaskStatus.NOT_STARTED, comment="Task created"))
        db.commit()
        db.refresh(task)
        return task

    return _make_task


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


def future_iso(**delta):
    return (utcnow() + timedelta(**(delta or {"days": 1}))).isoformat()
