"""Tests for the due-date reminder job."""

import asyncio
import time
from datetime import datetime, timedelta, timezone

import pytest

from employee_manager.models import TaskStatus
from employee_manager.routers.deps import get_reminder_scheduler
from employee_manager.services.scheduler import ReminderScheduler
from main import app
from tests.conftest import auth_headers
from tests.fakes import FakeEmailService

CONFIG = {"enabled": True, "reminder_hour": 9, "reminder_window_hours": 24}


@pytest.fixture
def scheduler(session_factory, email_service):
    return ReminderScheduler(email_service, session_factory=session_factory, config=CONFIG)


def test_reminds_only_open_tasks_due_within_window(scheduler, email_service, make_task, admin, employee):
    due_soon = make_task(admin, employee, due_in=timedelta(hours=5))
    make_task(admin, employee, due_in=timedelta(hours=5), status=TaskStatus.COMPLETED)
    make_task(admin, employee, due_in=timedelta(days=3))
    make_task(admin, employee, due_in=timedelta(hours=-1))

    sent = scheduler.check_tasks_due_soon()

    assert sent == 1
    assert email_service.sent == [{"kind": "reminder", "to": employee.email, "task_id": due_soon.id}]


def test_failed_reminder_is_skipped(session_factory, make_task, admin, employee):
    make_task(admin, employee, due_in=timedelta(hours=2))
    scheduler = ReminderScheduler(FakeEmailService(fail=True), session_factory=session_factory, config=CONFIG)

    assert scheduler.check_tasks_due_soon() == 0


def test_status_when_stopped(scheduler):
    assert scheduler.get_scheduler_status() == {"status": "stopped", "jobs": []}


def test_start_registers_daily_job(scheduler):
    async def start_and_inspect():
        scheduler.start()
        try:
            return scheduler.get_scheduler_status()
        finally:
            scheduler.stop()

    status = asyncio.run(start_and_inspect())

    assert status["status"] == "running"
    assert [job["id"] for job in status["jobs"]] == ["daily_due_date_reminders"]
    assert scheduler.is_running is False


def test_manual_trigger_endpoint(client, scheduler, make_task, admin, employee):
    make_task(admin, employee, due_in=timedelta(hours=3))
    app.dependency_overrides[get_reminder_scheduler] = lambda: scheduler

    response = client.post("/scheduler/trigger/due-soon", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["message"] == "Due date reminders sent: 1"
    assert client.post("/scheduler/trigger/due-soon", headers=auth_headers(employee)).status_code == 403


class SlowEmailService(FakeEmailService):
    def send_due_date_reminder(self, to_email, task):
        time.sleep(0.3)
        return super().send_due_date_reminder(to_email, task)


def test_scheduled_run_does_not_block_event_loop(session_factory, make_task, admin, employee):
    make_task(admin, employee, due_in=timedelta(hours=2))
    make_task(admin, employee, due_in=timedelta(hours=4))
    mailer = SlowEmailService()
    scheduler = ReminderScheduler(mailer, session_factory=session_factory, config=CONFIG)

    async def run_job_and_measure_ticks():
        scheduler.start()
        try:
            scheduler.scheduler.modify_job("daily_due_date_reminders", next_run_time=datetime.now(timezone.utc))
            last, max_gap = time.monotonic(), 0.0
            deadline = last + 5
            while len(mailer.sent) < 2 and time.monotonic() < deadline:
                await asyncio.sleep(0.02)
                now = time.monotonic()
                max_gap, last = max(max_gap, now - last), now
            return max_gap
        finally:
            scheduler.stop()

    max_gap = asyncio.run(run_job_and_measure_ticks())

    assert len(mailer.sent) == 2
    assert max_gap < 0.2
