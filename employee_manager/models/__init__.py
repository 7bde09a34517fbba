from .user import User, UserRole
from .task import Task, TaskLog, TaskStatus, TaskPriority, LogEntryType
