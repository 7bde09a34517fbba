from .common import ApiResponse, MessageResponse
from .user import (
    UserCreate, UserLogin, UserOut, UserBasic, UserUpdate, PasswordUpdate, UserIdList,
    ForgotPassword, ResetPassword,
)
from .tokens import Token
from .task import (
    TaskCreate, TaskStatusUpdate, TaskOut, TaskDetailOut, CommentCreate,
    BulkStatusUpdate, BulkUpdateResult, BulkFailure, TaskStatus, TaskPriority,
)
from .task_log import TaskLogOut
from .analytics import TaskAnalytics, AssigneeStats, UserAnalytics, UserTaskStats
