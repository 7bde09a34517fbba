# employee_manager/routers/task.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from employee_manager.database import get_db
from employee_manager.models import TaskPriority, TaskStatus, User
from employee_manager.schemas.analytics import TaskAnalytics
from employee_manager.schemas.task import (
    BulkStatusUpdate, BulkUpdateResponse, CommentCreate, TaskCreate, TaskDetailResponse,
    TaskListResponse, TaskResponse, TaskStatusUpdate,
)
from employee_manager.schemas.task_log import CommentResponse, TimelineResponse
from employee_manager.routers.deps import get_task_service
from employee_manager.services import audit_log
from employee_manager.services.task_service import TaskService
from employee_manager.utils.access import get_access_scope_info
from employee_manager.utils.auth import get_current_user, require_admin

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("", response_model=TaskListResponse)
def get_tasks(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user)
):
    """Get tasks: admins see all, others only tasks they created or are assigned"""
    tasks = service.list_tasks(current_user, status, priority, start_date, end_date)
    return {"success": True, "count": len(tasks), "data": tasks}


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user)
):
    """Create a new task and notify the assignee"""
    task = service.create_task(current_user, task_data)
    return {"success": True, "data": task}


@router.get("/search", response_model=TaskListResponse)
def search_tasks(
    query: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    assignee_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user)
):
    tasks = service.search_tasks(current_user, query, status, priority, assignee_id, start_date, end_date)
    return {"success": True, "count": len(tasks), "data": tasks}


@router.get("/export")
def export_tasks(
    format: str = Query("json", pattern="^(json|csv)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Export every task with its timeline (admin only)"""
    rows = audit_log.export_tasks(db)
    if format == "csv":
        filename = f"tasks_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        return Response(
            content=audit_log.export_tasks_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return {"success": True, "count": len(rows), "data": rows}


@router.get("/analytics/overview")
def get_task_analytics(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    analytics = audit_log.task_analytics(db, include_per_user=True)
    return {"success": True, "data": TaskAnalytics(**analytics)}


@router.get("/access-scope")
def get_access_scope(current_user: User = Depends(get_current_user)):
    """Get information about current user's task access scope"""
    return {"success": True, "data": get_access_scope_info(current_user)}


@router.post("/bulk/update-status", response_model=BulkUpdateResponse)
def bulk_update_status(
    payload: BulkStatusUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(require_admin)
):
    result = service.bulk_update_status(current_user, payload.task_ids, payload.status, payload.comment)
    message = "Tasks updated successfully" if not result["failed"] else "Some tasks could not be updated"
    return {"success": not result["failed"], "message": message, "data": result}


@router.get("/{task_id}", response_model=TaskDetailResponse)
def get_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user)
):
    """Get a task with creator, assignee and audit log"""
    return {"success": True, "data": service.get_task(current_user, task_id)}


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    update: TaskStatusUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user)
):
    """Update task status (admin or assignee only)"""
    task = service.update_status(current_user, task_id, update.status, update.comment)
    return {"success": True, "data": task}


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    task_id: int,
    payload: CommentCreate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user)
):
    log = service.add_comment(current_user, task_id, payload.comment)
    return {"success": True, "message": "Comment added successfully", "data": log}


@router.get("/{task_id}/timeline", response_model=TimelineResponse)
def get_task_timeline(
    task_id: int,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user)
):
    """Audit log for a task, newest first"""
    service.get_task(current_user, task_id, with_logs=False)
    logs = audit_log.timeline(db, task_id)
    return {"success": True, "count": len(logs), "data": logs}
