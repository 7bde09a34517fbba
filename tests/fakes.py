"""Recording stand-ins for the email and calendar notifiers."""


class FakeEmailService:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def _record(self, kind, to_email, **details):
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.sent.append({"kind": kind, "to": to_email, **details})
        return True

    def send_task_assigned(self, to_email, task):
        return self._record("assigned", to_email, task_id=task.id)

    def send_task_completed(self, to_email, task, completed_by):
        return self._record("completed", to_email, task_id=task.id, completed_by=completed_by)

    def send_due_date_reminder(self, to_email, task):
        return self._record("reminder", to_email, task_id=task.id)

    def send_welcome(self, to_email, name):
        return self._record("welcome", to_email, name=name)

    def send_password_reset(self, to_email, name, reset_token):
        return self._record("password_reset", to_email, reset_token=reset_token)

    def kinds(self):
        return [m["kind"] for m in self.sent]


class FakeCalendarService:
    def __init__(self, result=None, fail: bool = False):
        self.result = result
        self.fail = fail
        self.calls = []

    def schedule_event(self, title, description, start_time, attendees):
        self.calls.append({"title": title, "start_time": start_time, "attendees": attendees})
        if self.fail:
            raise RuntimeError("calendar unavailable")
        return self.result


class FakeCalendarProvider:
    def __init__(self, name, event_id=None, error=None):
        self.name = name
        self.event_id = event_id
        self.error = error

    def create_event(self, title, description, start_time, attendees):
        if self.error is not None:
            raise self.error
        return self.event_id
