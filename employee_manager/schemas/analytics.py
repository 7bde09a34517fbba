from pydantic import BaseModel
from typing import Dict, List, Optional


class AssigneeStats(BaseModel):
    assignee_id: int
    name: str
    email: str
    total: int
    completed: int
    in_progress: int


class TaskAnalytics(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    overdue: int
    per_user: Optional[List[AssigneeStats]] = None


class UserAnalytics(BaseModel):
    total_users: int
    active_users: int
    admins: int
    employees: int


class UserTaskStats(BaseModel):
    tasks_by_status: Dict[str, int]
    overdue_tasks: int
