import pytest
import os
from datetime import datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing package components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from pms_core.database import Base
import pms_core.models  # noqa: F401  registers every table on Base.metadata

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite defers BEGIN on its own; emit it explicitly so SAVEPOINTs nest
# inside the per-test transaction instead of committing on release.
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, join_transaction_mode="create_savepoint")


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Clean session per test; service commits land in savepoints and are rolled back."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def strategy(db_session):
    from pms_core.models import Strategy

    strategy = Strategy(id="STR-1", name="Growth 2025", status="ApprovedAndActive", is_approved=True)
    db_session.add(strategy)
    db_session.commit()
    return strategy


@pytest.fixture(scope="function")
def categories(db_session):
    """Two objective categories, each with one mapped PMS competency."""
    from pms_core.models import ObjectiveCategory, PmsCompetency

    values = ObjectiveCategory(id="CAT-VAL", name="Living the Values")
    leadership = ObjectiveCategory(id="CAT-LEAD", name="Leadership")
    db_session.add_all([
        values,
        leadership,
        PmsCompetency(id="PC-1", name="Integrity", objective_category_id="CAT-VAL"),
        PmsCompetency(id="PC-2", name="Coaching", objective_category_id="CAT-LEAD"),
    ])
    db_session.commit()
    return {"values": values, "leadership": leadership}


@pytest.fixture(scope="function")
def period(db_session, strategy):
    """An approved Q1 2025 period worth 100 points."""
    from pms_core.models import ReviewPeriod

    period = ReviewPeriod(
        id="RP-Q1",
        name="Q1 2025",
        short_name="Q1",
        year=2025,
        range="Quarterly",
        range_value=1,
        start_date=datetime(2025, 1, 1),
        end_date=datetime(2025, 3, 31, 23, 59, 59),
        max_points=100,
        min_objectives=1,
        max_objectives=5,
        strategy_id=strategy.id,
        status="ApprovedAndActive",
        is_approved=True,
    )
    db_session.add(period)
    db_session.commit()
    return period


@pytest.fixture(scope="function")
def fixed_now():
    return datetime(2025, 3, 15, 12, 0, 0)
