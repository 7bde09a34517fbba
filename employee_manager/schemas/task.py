# employee_manager/schemas/task.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Dict, List, Optional

from employee_manager.models.task import TaskStatus, TaskPriority
from employee_manager.schemas.user import UserBasic
from employee_manager.schemas.task_log import TaskLogOut


class TaskCreate(BaseModel):
    title: str
    description: str
    assignee_id: int
    due_date: datetime
    priority: Optional[TaskPriority] = None
    note: Optional[str] = None

    @field_validator('title', 'description')
    def must_not_be_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Field is required')
        return v.strip()


class TaskStatusUpdate(BaseModel):
    status: TaskStatus
    comment: Optional[str] = None


class CommentCreate(BaseModel):
    comment: str

    @field_validator('comment')
    def comment_must_not_be_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Comment is required')
        return v.strip()


class BulkStatusUpdate(BaseModel):
    task_ids: List[int] = Field(min_length=1)
    status: TaskStatus
    comment: Optional[str] = None


class TaskOut(BaseModel):
    id: int
    title: str
    description: str
    note: Optional[str] = None
    creator_id: int
    assignee_id: int
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime
    completed_at: Optional[datetime] = None
    calendar_event_ids: Optional[Dict[str, str]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    creator: Optional[UserBasic] = None
    assignee: Optional[UserBasic] = None

    class Config:
        from_attributes = True


class TaskDetailOut(TaskOut):
    logs: List[TaskLogOut] = []


class TaskResponse(BaseModel):
    success: bool = True
    data: TaskOut


class TaskDetailResponse(BaseModel):
    success: bool = True
    data: TaskDetailOut


class TaskListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[TaskOut]


class BulkFailure(BaseModel):
    id: int
    reason: str


class BulkUpdateResult(BaseModel):
    updated: List[int] = []
    failed: List[BulkFailure] = []


class BulkUpdateResponse(BaseModel):
    success: bool = True
    message: str
    data: BulkUpdateResult
