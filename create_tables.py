# create_tables.py
import logging
import os

from employee_manager.config import Settings
from employee_manager.database import Base, SessionLocal, engine
from employee_manager.models import User, UserRole
from employee_manager.utils.logger import setup_logging
from employee_manager.utils.security import get_password_hash

logger = logging.getLogger(__name__)


def create_tables():
    """Create all tables (existing tables and rows are left alone)"""
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully")
    create_default_admin()


def create_default_admin():
    """Create a default admin user"""
    email = os.getenv("ADMIN_EMAIL", f"admin@{Settings.ORGANIZATION['email_domain']}")
    password = os.getenv("ADMIN_PASSWORD", "admin123")

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            logger.info("Admin user already exists")
            return
        db.add(User(
            name="System Administrator",
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.ADMIN.value,
            is_active=True,
        ))
        db.commit()
        logger.info("Default admin user created: %s", email)
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    create_tables()
