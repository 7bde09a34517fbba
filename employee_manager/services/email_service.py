# employee_manager/services/email_service.py
"""Outgoing email: SendGrid when an API key is configured, SMTP otherwise.

With neither configured the service runs in debug mode and only logs what
it would have sent, so local development flows don't break.
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Optional

import requests

from employee_manager.config import Settings

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


def format_date(value: datetime) -> str:
    return value.strftime("%A, %B %d, %Y %I:%M %p")


def _layout(heading: str, body: str, link: str, link_label: str, color: str = "#007bff") -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #2c3e50;">{escape(heading)}</h2>
      <div style="background-color: #f8f9fa; padding: 20px; border-radius: 5px; margin: 20px 0;">
        {body}
      </div>
      <div style="margin: 30px 0;">
        <a href="{link}"
           style="background-color: {color}; color: white; padding: 12px 24px;
                  text-decoration: none; border-radius: 5px; display: inline-block;">
          {link_label}
        </a>
      </div>
      <p style="color: #6c757d; font-size: 0.9em;">
        This is an automated message from the {Settings.ORGANIZATION['name']} system.
      </p>
    </div>
    """


class EmailService:
    def __init__(self, config: Optional[dict] = None):
        self.config = dict(config or Settings.EMAIL)

    @property
    def mode(self) -> str:
        if self.config.get('sendgrid_api_key'):
            return "sendgrid"
        if self.config.get('smtp_host') and self.config.get('smtp_user') and self.config.get('smtp_pass'):
            return "smtp"
        return "debug"

    def send_email(self, to_email: str, subject: str, html: str) -> bool:
        """Send one HTML email. Returns True on success, raises RuntimeError on failure."""
        mode = self.mode
        if mode == "debug":
            logger.info("EMAIL DEBUG MODE: would send to %s (subject=%s)", to_email, subject)
            return True

        try:
            if mode == "sendgrid":
                self._send_sendgrid(to_email, subject, html)
            else:
                self._send_smtp(to_email, subject, html)
        except (requests.RequestException, smtplib.SMTPException, OSError) as e:
            logger.error("Email sending failed to %s: %s", to_email, e)
            raise RuntimeError(f"Email sending failed: {e}") from e

        logger.info("Email sent to %s (subject: %s)", to_email, subject)
        return True

    def _send_sendgrid(self, to_email: str, subject: str, html: str) -> None:
        response = requests.post(
            SENDGRID_URL,
            headers={"Authorization": f"Bearer {self.config['sendgrid_api_key']}"},
            json={
                "personalizations": [{"to": [{"email": to_email}]}],
                "from": {"email": self.config['from_email']},
                "subject": subject,
                "content": [{"type": "text/html", "value": html}],
            },
            timeout=self.config.get('timeout', 30),
        )
        response.raise_for_status()

    def _send_smtp(self, to_email: str, subject: str, html: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.config['from_email']
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html, subtype="html")

        context = ssl.create_default_context()
        host, port = self.config['smtp_host'], self.config['smtp_port']
        timeout = self.config.get('timeout', 30)

        # Port 465 uses implicit SSL, everything else STARTTLS
        if port == 465:
            with smtplib.SMTP_SSL(host, port, context=context, timeout=timeout) as smtp:
                smtp.login(self.config['smtp_user'], self.config['smtp_pass'])
                smtp.send_message(msg)
        else:
            with smtplib.SMTP(host, port, timeout=timeout) as smtp:
                smtp.ehlo()
                smtp.starttls(context=context)
                smtp.ehlo()
                smtp.login(self.config['smtp_user'], self.config['smtp_pass'])
                smtp.send_message(msg)

    def send_task_assigned(self, to_email: str, task) -> bool:
        html = _layout(
            f"New Task Assigned: {task.title}",
            f"<p><strong>Description:</strong><br>{escape(task.description)}</p>"
            f"<p><strong>Due Date:</strong><br>{format_date(task.due_date)}</p>",
            Settings.task_url(task.id),
            "View Task Details",
        )
        return self.send_email(to_email, f"New Task Assigned: {task.title}", html)

    def send_task_completed(self, to_email: str, task, completed_by: str) -> bool:
        html = _layout(
            "Task Completed",
            f"<p><strong>Task:</strong> {escape(task.title)}</p>"
            f"<p><strong>Completed By:</strong> {escape(completed_by)}</p>",
            Settings.task_url(task.id),
            "View Task Details",
            color="#28a745",
        )
        return self.send_email(to_email, f"Task Completed: {task.title}", html)

    def send_due_date_reminder(self, to_email: str, task) -> bool:
        html = _layout(
            "Task Due Date Reminder",
            f"<p><strong>Task:</strong> {escape(task.title)}</p>"
            f"<p><strong>Due Date:</strong> {format_date(task.due_date)}</p>",
            Settings.task_url(task.id),
            "View Task Details",
            color="#dc3545",
        )
        return self.send_email(to_email, f"Reminder: Task Due Soon - {task.title}", html)

    def send_welcome(self, to_email: str, name: str) -> bool:
        login_url = f"{Settings.ORGANIZATION['frontend_url'].rstrip('/')}/login"
        html = _layout(
            f"Welcome to {Settings.ORGANIZATION['name']}",
            f"<p>Hello {escape(name)},</p>"
            "<p>Your account has been created. Please change your password after your first login.</p>",
            login_url,
            "Login to Your Account",
            color="#28a745",
        )
        return self.send_email(to_email, f"Welcome to {Settings.ORGANIZATION['name']}", html)

    def send_password_reset(self, to_email: str, name: str, reset_token: str) -> bool:
        reset_url = f"{Settings.ORGANIZATION['frontend_url'].rstrip('/')}/reset-password/{reset_token}"
        minutes = Settings.AUTH['reset_token_expire_minutes']
        html = _layout(
            "Password Reset Request",
            f"<p>Hello {escape(name)},</p>"
            "<p>You have requested to reset your password. Use the button below to set a new password.</p>"
            f"<p>This link will expire in {minutes} minutes. "
            "If you did not request this reset, please ignore this email.</p>",
            reset_url,
            "Reset Password",
        )
        return self.send_email(to_email, "Password Reset Request", html)
