from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from employee_manager.config import Settings

DATABASE_URL = Settings.DATABASE['url']

connect_args = {}
if DATABASE_URL.startswith("postgresql"):
    # Managed PostgreSQL (Render or similar) requires SSL
    connect_args = {"sslmode": "require"}
elif DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    echo=Settings.DATABASE['echo'],
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Imported wherever a DB session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
