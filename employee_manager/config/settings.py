# employee_manager/config/settings.py
# Application configuration read from the environment (and .env)

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


class Settings:
    """Process-wide configuration, read once at import time"""

    DATABASE = {
        'url': os.getenv('DATABASE_URL', 'sqlite:///./employee_manager.db'),
        'echo': _flag('DATABASE_ECHO', 'false'),
    }

    AUTH = {
        'secret_key': os.getenv('SECRET_KEY', 'change-me'),
        'algorithm': os.getenv('ALGORITHM', 'HS256'),
        'access_token_expire_minutes': int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', 60 * 24)),
        'reset_token_expire_minutes': int(os.getenv('RESET_TOKEN_EXPIRE_MINUTES', 10)),
    }

    ORGANIZATION = {
        'email_domain': os.getenv('ORG_EMAIL_DOMAIN', 'thewebvalue.com'),
        'name': os.getenv('ORG_NAME', 'Web Value Employee Manager'),
        'frontend_url': os.getenv('FRONTEND_URL', 'http://localhost:3000'),
    }

    EMAIL = {
        'from_email': os.getenv('FROM_EMAIL', 'noreply@thewebvalue.com'),
        'sendgrid_api_key': os.getenv('SENDGRID_API_KEY'),
        'smtp_host': os.getenv('SMTP_HOST'),
        'smtp_port': int(os.getenv('SMTP_PORT', 587)),
        'smtp_user': os.getenv('SMTP_USER'),
        'smtp_pass': os.getenv('SMTP_PASS'),
        'timeout': int(os.getenv('EMAIL_TIMEOUT', 30)),
    }

    CALENDAR = {
        'google_access_token': os.getenv('GOOGLE_CALENDAR_ACCESS_TOKEN'),
        'google_calendar_id': os.getenv('GOOGLE_CALENDAR_ID', 'primary'),
        'microsoft_access_token': os.getenv('MICROSOFT_ACCESS_TOKEN'),
        'timeout': int(os.getenv('CALENDAR_TIMEOUT', 15)),
    }

    SCHEDULER = {
        'enabled': _flag('SCHEDULER_ENABLED', 'true'),
        'reminder_hour': int(os.getenv('REMINDER_HOUR', 9)),
        'reminder_window_hours': int(os.getenv('REMINDER_WINDOW_HOURS', 24)),
    }

    LOGGING = {
        'level': os.getenv('LOG_LEVEL', 'INFO').upper(),
        'log_dir': os.getenv('LOG_DIR', 'logs'),
        'max_log_size': int(os.getenv('MAX_LOG_SIZE', 10 * 1024 * 1024)),  # 10MB
        'backup_count': int(os.getenv('LOG_BACKUP_COUNT', 5)),
    }

    SERVER = {
        'host': os.getenv('HOST', '0.0.0.0'),
        'port': int(os.getenv('PORT', 8000)),
        'reload': _flag('RELOAD', 'false'),
    }

    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if origin.strip()
    ]

    @classmethod
    def is_org_email(cls, email: str) -> bool:
        """Check that an email address belongs to the organization domain"""
        return email.lower().endswith('@' + cls.ORGANIZATION['email_domain'].lower())

    @classmethod
    def task_url(cls, task_id: int) -> str:
        return f"{cls.ORGANIZATION['frontend_url'].rstrip('/')}/tasks/{task_id}"
