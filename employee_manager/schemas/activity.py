from pydantic import BaseModel
from typing import Dict, List

from employee_manager.schemas.analytics import UserTaskStats
from employee_manager.schemas.task import TaskOut, TaskDetailOut
from employee_manager.schemas.user import UserOut


class UserDetailOut(UserOut):
    recent_assigned_tasks: List[TaskOut] = []
    recent_created_tasks: List[TaskOut] = []
    task_stats: Dict[str, int] = {}


class UserDetailResponse(BaseModel):
    success: bool = True
    data: UserDetailOut


class UserStatsResponse(BaseModel):
    success: bool = True
    data: UserTaskStats


class UserActivityResponse(BaseModel):
    success: bool = True
    count: int
    data: List[TaskDetailOut]
