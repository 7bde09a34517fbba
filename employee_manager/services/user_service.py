# employee_manager/services/user_service.py
import logging
from datetime import timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from employee_manager.config import Settings
from employee_manager.models import Task, TaskLog, TaskStatus, User, UserRole
from employee_manager.schemas.user import UserCreate, UserUpdate
from employee_manager.services.audit_log import overdue_count
from employee_manager.services.email_service import EmailService
from employee_manager.services.errors import NotAuthorized, NotFound, ValidationFailed
from employee_manager.utils.access import is_owner_or_admin
from employee_manager.utils.dates import utcnow
from employee_manager.utils.security import generate_reset_token, get_password_hash, hash_reset_token

logger = logging.getLogger(__name__)

RECENT_TASK_LIMIT = 5


class UserService:
    def __init__(self, db: Session, email_service: Optional[EmailService] = None):
        self.db = db
        self.email_service = email_service

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def get_user_for(self, actor: User, user_id: int) -> User:
        if not is_owner_or_admin(actor, user_id):
            raise NotAuthorized("Not authorized to access this resource")
        return self.get_user(user_id)

    def _check_email(self, email: str, exclude_user_id: Optional[int] = None) -> None:
        if not Settings.is_org_email(email):
            raise ValidationFailed(f"Please provide a valid @{Settings.ORGANIZATION['email_domain']} email")
        query = self.db.query(User).filter(func.lower(User.email) == email.lower())
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        if query.first():
            raise ValidationFailed("User with this email already exists")

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def search_users(self, text: Optional[str] = None, role: Optional[UserRole] = None,
                     is_active: Optional[bool] = None) -> List[User]:
        query = self.db.query(User)
        if text:
            pattern = f"%{text}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if role:
            query = query.filter(User.role == UserRole(role).value)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        return query.order_by(User.name).all()

    def create_user(self, data: UserCreate) -> User:
        email = str(data.email).lower()
        self._check_email(email)

        user = User(
            name=data.name,
            email=email,
            hashed_password=get_password_hash(data.password),
            role=UserRole(data.role).value,
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s created with role %s", user.id, user.role)

        if self.email_service is not None:
            try:
                self.email_service.send_welcome(user.email, user.name)
            except Exception:
                logger.exception("Welcome email failed for user %s", user.id)
        return user

    def update_user(self, actor: User, user_id: int, data: UserUpdate) -> User:
        user = self.get_user_for(actor, user_id)
        changes = data.model_dump(exclude_unset=True)

        # Only admins can change role or account status
        if ("role" in changes or "is_active" in changes) and not actor.is_admin:
            raise NotAuthorized("Only admins can change role or account status")

        if changes.get("email"):
            changes["email"] = str(changes["email"]).lower()
            if changes["email"] != user.email:
                self._check_email(changes["email"], exclude_user_id=user.id)
        else:
            changes.pop("email", None)

        if changes.get("is_active") is False and user.is_active:
            self._ensure_can_deactivate(actor, user)

        password = changes.pop("password", None)
        if password:
            user.hashed_password = get_password_hash(password)
        if changes.get("role") is not None:
            changes["role"] = UserRole(changes["role"]).value
        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def request_password_reset(self, email: str) -> None:
        """Store a hashed reset token and email the raw one.

        Silent for unknown or inactive accounts so callers cannot learn
        which emails exist.
        """
        user = self.db.query(User).filter(func.lower(User.email) == email.lower()).first()
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return

        token, token_hash = generate_reset_token()
        user.reset_password_token = token_hash
        user.reset_password_expire = utcnow() + timedelta(minutes=Settings.AUTH['reset_token_expire_minutes'])
        self.db.commit()

        try:
            self.email_service.send_password_reset(user.email, user.name, token)
        except Exception:
            logger.exception("Password reset email failed for user %s", user.id)
            user.reset_password_token = None
            user.reset_password_expire = None
            self.db.commit()

    def reset_password(self, token: str, new_password: str) -> User:
        user = (
            self.db.query(User)
            .filter(
                User.reset_password_token == hash_reset_token(token),
                User.reset_password_expire > utcnow(),
                User.is_active.is_(True),
            )
            .first()
        )
        if user is None:
            raise ValidationFailed("Invalid or expired reset token")

        user.hashed_password = get_password_hash(new_password)
        user.reset_password_token = None
        user.reset_password_expire = None
        self.db.commit()
        self.db.refresh(user)
        logger.info("Password reset completed for user %s", user.id)
        return user

    def count_open_tasks(self, user_id: int) -> int:
        """Tasks created by or assigned to the user that are not Completed"""
        return (
            self.db.query(func.count(Task.id))
            .filter(
                or_(Task.creator_id == user_id, Task.assignee_id == user_id),
                Task.status != TaskStatus.COMPLETED,
            )
            .scalar()
        )

    def _ensure_can_deactivate(self, actor: User, user: User) -> None:
        if user.id == actor.id:
            raise ValidationFailed("You cannot deactivate your own account")
        if self.count_open_tasks(user.id) > 0:
            raise ValidationFailed(
                "Cannot deactivate user with active tasks. Please reassign or complete tasks first."
            )

    def deactivate_user(self, actor: User, user_id: int) -> User:
        """Soft delete: the row is kept and only is_active flips to False"""
        if not actor.is_admin:
            raise NotAuthorized("Admin access required")
        user = self.get_user(user_id)
        self._ensure_can_deactivate(actor, user)
        user.is_active = False
        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s deactivated by %s", user.id, actor.id)
        return user

    def bulk_set_active(self, actor: User, user_ids: Iterable[int], active: bool) -> Dict[str, list]:
        if not actor.is_admin:
            raise NotAuthorized("Admin access required")
        updated: List[int] = []
        failed: List[dict] = []
        for user_id in dict.fromkeys(user_ids):
            user = self.db.get(User, user_id)
            if user is None:
                failed.append({"id": user_id, "reason": "User not found"})
                continue
            if not active and user.is_active:
                try:
                    self._ensure_can_deactivate(actor, user)
                except ValidationFailed as e:
                    failed.append({"id": user_id, "reason": e.message})
                    continue
            user.is_active = active
            self.db.commit()
            updated.append(user_id)
        return {"updated": updated, "failed": failed}

    def task_counts_by_status(self, *filters) -> Dict[str, int]:
        counts = {status.value: 0 for status in TaskStatus}
        rows = self.db.query(Task.status, func.count(Task.id)).filter(*filters).group_by(Task.status).all()
        for status, count in rows:
            counts[status.value] = count
        return counts

    def get_user_detail(self, actor: User, user_id: int) -> dict:
        user = self.get_user_for(actor, user_id)

        def recent(column):
            return (
                self.db.query(Task)
                .options(joinedload(Task.creator), joinedload(Task.assignee))
                .filter(column == user.id)
                .order_by(Task.created_at.desc(), Task.id.desc())
                .limit(RECENT_TASK_LIMIT)
                .all()
            )

        return {
            "user": user,
            "recent_assigned_tasks": recent(Task.assignee_id),
            "recent_created_tasks": recent(Task.creator_id),
            "task_stats": self.task_counts_by_status(Task.assignee_id == user.id),
        }

    def user_stats(self, actor: User, user_id: int) -> dict:
        user = self.get_user_for(actor, user_id)
        return {
            "tasks_by_status": self.task_counts_by_status(
                or_(Task.creator_id == user.id, Task.assignee_id == user.id)
            ),
            "overdue_tasks": overdue_count(self.db, Task.assignee_id == user.id),
        }

    def user_activity(self, actor: User, user_id: int) -> List[Task]:
        user = self.get_user_for(actor, user_id)
        return (
            self.db.query(Task)
            .options(
                joinedload(Task.creator),
                joinedload(Task.assignee),
                joinedload(Task.logs).joinedload(TaskLog.user),
            )
            .filter(or_(Task.creator_id == user.id, Task.assignee_id == user.id))
            .order_by(Task.created_at.desc(), Task.id.desc())
            .all()
        )

    def analytics(self) -> dict:
        return {
            "total_users": self.db.query(func.count(User.id)).scalar(),
            "active_users": self.db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar(),
            "admins": self.db.query(func.count(User.id)).filter(User.role == UserRole.ADMIN.value).scalar(),
            "employees": self.db.query(func.count(User.id)).filter(User.role == UserRole.EMPLOYEE.value).scalar(),
        }
