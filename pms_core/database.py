from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from pms_core.core.config import settings

# Support both PostgreSQL and SQLite via centralized settings
DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("postgresql"):
    engine = create_engine(DATABASE_URL)
else:
    # SQLite configuration for local development/testing
    engine = create_engine(
        DATABASE_URL, connect_args={"check_same_thread": False}
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def init_db():
    """
    Registers all domain models and initializes the database schema.
    """
    # Import all models to ensure they are registered with Base.metadata before create_all
    from pms_core.models import (  # noqa: F401
        review_period, objective, work_product, feedback,
        competency, setting, notification
    )
    Base.metadata.create_all(bind=engine)
