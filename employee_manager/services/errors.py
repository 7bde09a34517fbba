# employee_manager/services/errors.py
"""Errors raised by the service layer.

Each error carries the HTTP status it maps to; ``main.py`` turns them into
the ``{success: false, message}`` envelope.
"""

from typing import Any, List, Optional

from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidAssignee(ValidationFailed):
    def __init__(self, message: str = "Invalid or inactive assignee"):
        super().__init__(message)


class NotAuthorized(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
