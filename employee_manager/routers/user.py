# employee_manager/routers/user.py
from typing import Optional

from fastapi import APIRouter, Depends, status

from employee_manager.models import User, UserRole
from employee_manager.schemas.activity import UserActivityResponse, UserDetailResponse, UserStatsResponse
from employee_manager.schemas.analytics import UserAnalytics
from employee_manager.schemas.common import MessageResponse
from employee_manager.schemas.user import UserCreate, UserIdList, UserListResponse, UserResponse, UserUpdate
from employee_manager.routers.deps import get_user_service
from employee_manager.services.user_service import UserService
from employee_manager.utils.auth import get_current_user, require_admin

router = APIRouter()


@router.get("", response_model=UserListResponse)
def get_users(
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    """Get all users (admin only)"""
    users = service.list_users()
    return {"success": True, "count": len(users), "data": users}


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    """Create a new user (admin only); email must be on the organization domain"""
    return {"success": True, "data": service.create_user(user)}


@router.get("/search", response_model=UserListResponse)
def search_users(
    query: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    users = service.search_users(query, role, is_active)
    return {"success": True, "count": len(users), "data": users}


@router.get("/analytics/overview")
def get_user_analytics(
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    return {"success": True, "data": UserAnalytics(**service.analytics())}


@router.post("/bulk/activate")
def bulk_activate(
    payload: UserIdList,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    result = service.bulk_set_active(current_user, payload.user_ids, True)
    return {"success": not result["failed"], "message": "Users activated", "data": result}


@router.post("/bulk/deactivate")
def bulk_deactivate(
    payload: UserIdList,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    result = service.bulk_set_active(current_user, payload.user_ids, False)
    message = "Users deactivated" if not result["failed"] else "Some users could not be deactivated"
    return {"success": not result["failed"], "message": message, "data": result}


@router.get("/{user_id}", response_model=UserDetailResponse)
def get_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user)
):
    """Get a user with recent tasks and task counts (admin or self)"""
    detail = service.get_user_detail(current_user, user_id)
    user = detail.pop("user")
    data = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "is_active": user.is_active,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        **detail,
    }
    return {"success": True, "data": data}


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user)
):
    """Update a user (admin or self); only admins may change role or status"""
    return {"success": True, "data": service.update_user(current_user, user_id, user_update)}


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    """Deactivate a user (soft delete); refused while they have open tasks"""
    service.deactivate_user(current_user, user_id)
    return {"success": True, "message": "User deactivated successfully"}


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
def get_user_stats(
    user_id: int,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "data": service.user_stats(current_user, user_id)}


@router.get("/{user_id}/activity", response_model=UserActivityResponse)
def get_user_activity(
    user_id: int,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user)
):
    tasks = service.user_activity(current_user, user_id)
    return {"success": True, "count": len(tasks), "data": tasks}
