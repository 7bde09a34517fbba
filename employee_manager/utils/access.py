# employee_manager/utils/access.py
"""Authorization gate for task and user resources.

Every check is a pure predicate over the acting user and the resource; no
database access happens here. Inactive actors never reach these checks,
``get_current_user`` rejects them first.
"""

from sqlalchemy import or_

from employee_manager.models.task import Task
from employee_manager.models.user import User


def can_access_task(actor: User, task: Task) -> bool:
    """Admins, the creator and the assignee may view and comment on a task"""
    return actor.is_admin or actor.id == task.creator_id or actor.id == task.assignee_id


def can_update_status(actor: User, task: Task) -> bool:
    """Only admins and the assignee may change status; being the creator is not enough"""
    return actor.is_admin or actor.id == task.assignee_id


def is_owner_or_admin(actor: User, resource_owner_id: int) -> bool:
    return actor.is_admin or actor.id == resource_owner_id


def visible_tasks_clause(actor: User):
    """SQL filter limiting a task query to what the actor may see (None for admins)"""
    if actor.is_admin:
        return None
    return or_(Task.creator_id == actor.id, Task.assignee_id == actor.id)


def get_access_scope_info(actor: User) -> dict:
    """Describe what the actor can reach, for the frontend"""
    return {
        "user_id": actor.id,
        "user_role": actor.role,
        "scope_description": (
            "Can view and update all tasks"
            if actor.is_admin
            else "Can view tasks you created or are assigned; can update status of tasks assigned to you"
        ),
    }
