# employee_manager/services/calendar_service.py
import logging
from datetime import datetime
from typing import Dict, List, Optional

import requests

from employee_manager.config import Settings

logger = logging.getLogger(__name__)


def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S")


class GoogleCalendarProvider:
    name = "google"
    base_url = "https://www.googleapis.com/calendar/v3/calendars"

    def __init__(self, access_token: str, calendar_id: str = "primary", timeout: int = 15):
        self.access_token = access_token
        self.calendar_id = calendar_id
        self.timeout = timeout

    def create_event(self, title: str, description: str, start_time: datetime, attendees: List[str]) -> str:
        event = {
            "summary": title,
            "description": description,
            "start": {"dateTime": _iso(start_time), "timeZone": "UTC"},
            "end": {"dateTime": _iso(start_time), "timeZone": "UTC"},
            "attendees": [{"email": email} for email in attendees],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 30},
                ],
            },
        }
        response = requests.post(
            f"{self.base_url}/{self.calendar_id}/events",
            params={"sendUpdates": "all"},
            headers={"Authorization": f"Bearer {self.access_token}"},
            json=event,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()["id"]


class MicrosoftCalendarProvider:
    name = "microsoft"
    events_url = "https://graph.microsoft.com/v1.0/me/events"

    def __init__(self, access_token: str, timeout: int = 15):
        self.access_token = access_token
        self.timeout = timeout

    def create_event(self, title: str, description: str, start_time: datetime, attendees: List[str]) -> str:
        event = {
            "subject": title,
            "body": {"contentType": "HTML", "content": description},
            "start": {"dateTime": _iso(start_time), "timeZone": "UTC"},
            "end": {"dateTime": _iso(start_time), "timeZone": "UTC"},
            "attendees": [
                {"emailAddress": {"address": email}, "type": "required"}
                for email in attendees
            ],
            "isReminderOn": True,
            "reminderMinutesBeforeStart": 30,
        }
        response = requests.post(
            self.events_url,
            headers={"Authorization": f"Bearer {self.access_token}"},
            json=event,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()["id"]


class CalendarService:
    """Schedules a task's due date on every configured calendar provider"""

    def __init__(self, providers: Optional[list] = None):
        self.providers = list(providers or [])

    @classmethod
    def from_settings(cls, config: Optional[dict] = None) -> "CalendarService":
        config = config or Settings.CALENDAR
        providers = []
        if config.get('google_access_token'):
            providers.append(GoogleCalendarProvider(
                config['google_access_token'],
                calendar_id=config.get('google_calendar_id', 'primary'),
                timeout=config.get('timeout', 15),
            ))
        if config.get('microsoft_access_token'):
            providers.append(MicrosoftCalendarProvider(
                config['microsoft_access_token'],
                timeout=config.get('timeout', 15),
            ))
        return cls(providers)

    def schedule_event(self, title: str, description: str, start_time: datetime,
                       attendees: List[str]) -> Optional[Dict[str, str]]:
        """Create the event everywhere; returns {provider: event_id} or None if no provider succeeded"""
        results: Dict[str, str] = {}
        for provider in self.providers:
            try:
                event_id = provider.create_event(title, description, start_time, attendees)
            except (requests.RequestException, KeyError, ValueError) as e:
                logger.error("%s calendar event creation failed: %s", provider.name, e)
                continue
            logger.info("%s calendar event created: %s", provider.name, event_id)
            results[provider.name] = event_id
        return results or None
