from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from employee_manager.models.task import TaskStatus
from employee_manager.schemas.user import UserBasic


class TaskLogOut(BaseModel):
    id: int
    task_id: int
    user_id: int
    previous_status: Optional[TaskStatus] = None
    new_status: TaskStatus
    entry_type: str = "status_change"
    comment: Optional[str] = None
    timestamp: datetime
    is_comment_only: bool = False
    user: Optional[UserBasic] = None

    model_config = {
        "from_attributes": True
    }


class TimelineResponse(BaseModel):
    success: bool = True
    count: int
    data: List[TaskLogOut]


class CommentResponse(BaseModel):
    success: bool = True
    message: str = "Comment added successfully"
    data: TaskLogOut
