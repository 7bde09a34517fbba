"""Tests for the email and calendar notifiers, with the HTTP layer monkeypatched."""

from datetime import datetime

import pytest
import requests

from employee_manager.models import Task
from employee_manager.services import calendar_service as calendar_module
from employee_manager.services import email_service as email_module
from employee_manager.services.calendar_service import (
    CalendarService, GoogleCalendarProvider, MicrosoftCalendarProvider,
)
from employee_manager.services.email_service import EmailService
from tests.fakes import FakeCalendarProvider

DUE = datetime(2030, 5, 17, 15, 30)


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload or {}
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


@pytest.fixture
def captured_posts(monkeypatch):
    calls = []

    def fake_post(url, **kwargs):
        calls.append({"url": url, **kwargs})
        return FakeResponse({"id": "evt-1"})

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


def _task():
    return Task(id=7, title="Ship release", description="Tag and publish", due_date=DUE)


class TestEmailService:
    def test_debug_mode_without_credentials(self, captured_posts):
        service = EmailService({"from_email": "noreply@thewebvalue.com"})

        assert service.mode == "debug"
        assert service.send_task_assigned("dev@thewebvalue.com", _task()) is True
        assert captured_posts == []

    def test_smtp_mode_needs_host_user_and_password(self):
        config = {"smtp_host": "smtp.example.org", "smtp_user": "bot", "smtp_pass": "pw"}
        assert EmailService(config).mode == "smtp"
        assert EmailService({"smtp_host": "smtp.example.org"}).mode == "debug"

    def test_sendgrid_payload(self, captured_posts):
        service = EmailService({"sendgrid_api_key": "SG.key", "from_email": "noreply@thewebvalue.com"})

        service.send_task_assigned("dev@thewebvalue.com", _task())

        call = captured_posts[0]
        assert call["url"] == email_module.SENDGRID_URL
        assert call["headers"]["Authorization"] == "Bearer SG.key"
        assert call["json"]["personalizations"] == [{"to": [{"email": "dev@thewebvalue.com"}]}]
        assert call["json"]["subject"] == "New Task Assigned: Ship release"
        assert "Friday, May 17, 2030" in call["json"]["content"][0]["value"]

    def test_user_text_is_escaped_in_html(self, captured_posts):
        service = EmailService({"sendgrid_api_key": "SG.key", "from_email": "noreply@thewebvalue.com"})
        task = Task(id=8, title="<a href=\"http://evil\">click</a>", description="<script>x</script>", due_date=DUE)

        service.send_task_assigned("dev@thewebvalue.com", task)
        service.send_task_completed("boss@thewebvalue.com", task, completed_by="<b>Mallory</b>")

        assigned = captured_posts[0]["json"]["content"][0]["value"]
        completed = captured_posts[1]["json"]["content"][0]["value"]
        assert "&lt;a href=&quot;http://evil&quot;&gt;" in assigned
        assert "&lt;script&gt;" in assigned
        assert "<script>" not in assigned
        assert "&lt;b&gt;Mallory&lt;/b&gt;" in completed

    def test_password_reset_link(self, captured_posts):
        service = EmailService({"sendgrid_api_key": "SG.key", "from_email": "noreply@thewebvalue.com"})

        service.send_password_reset("dev@thewebvalue.com", "Dev", "abc123")

        body = captured_posts[0]["json"]["content"][0]["value"]
        assert "/reset-password/abc123" in body
        assert captured_posts[0]["json"]["subject"] == "Password Reset Request"

    def test_sendgrid_failure_raises(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda url, **kwargs: FakeResponse(status_code=500))
        service = EmailService({"sendgrid_api_key": "SG.key", "from_email": "noreply@thewebvalue.com"})

        with pytest.raises(RuntimeError):
            service.send_task_completed("boss@thewebvalue.com", _task(), completed_by="Dev")


class TestCalendarService:
    def test_collects_ids_from_successful_providers(self):
        service = CalendarService([
            FakeCalendarProvider("google", event_id="g-1"),
            FakeCalendarProvider("microsoft", error=requests.ConnectionError("down")),
        ])

        assert service.schedule_event("t", "d", DUE, ["a@thewebvalue.com"]) == {"google": "g-1"}

    def test_returns_none_when_every_provider_fails(self):
        service = CalendarService([FakeCalendarProvider("google", error=requests.Timeout("slow"))])
        assert service.schedule_event("t", "d", DUE, []) is None

    def test_returns_none_without_providers(self):
        assert CalendarService().schedule_event("t", "d", DUE, []) is None

    def test_from_settings_builds_configured_providers(self):
        service = CalendarService.from_settings({
            "google_access_token": "g-token",
            "google_calendar_id": "team",
            "microsoft_access_token": None,
            "timeout": 5,
        })

        assert [p.name for p in service.providers] == ["google"]
        assert service.providers[0].calendar_id == "team"

    def test_google_event_request(self, captured_posts):
        event_id = GoogleCalendarProvider("g-token", calendar_id="team").create_event(
            "Ship release", "Tag and publish", DUE, ["dev@thewebvalue.com"]
        )

        call = captured_posts[0]
        assert event_id == "evt-1"
        assert call["url"] == f"{GoogleCalendarProvider.base_url}/team/events"
        assert call["params"] == {"sendUpdates": "all"}
        assert call["json"]["start"] == {"dateTime": "2030-05-17T15:30:00", "timeZone": "UTC"}
        assert call["json"]["attendees"] == [{"email": "dev@thewebvalue.com"}]

    def test_microsoft_event_request(self, captured_posts):
        MicrosoftCalendarProvider("m-token").create_event("Ship release", "Tag and publish", DUE, ["x@y.com"])

        call = captured_posts[0]
        assert call["url"] == calendar_module.MicrosoftCalendarProvider.events_url
        assert call["headers"]["Authorization"] == "Bearer m-token"
        assert call["json"]["attendees"][0]["emailAddress"]["address"] == "x@y.com"
