"""Engine and session factory for the signal store."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from watchsignal_recommendation_service.config import get_database_url
from watchsignal_recommendation_service.models.base import Base

# Get database URL
DATABASE_URL = get_database_url()

# Validate database URL is provided
if DATABASE_URL is None:
    raise ValueError("DATABASE_URL is not configured. Set the DATABASE_URL environment variable.")

# Create engine
engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    pool_recycle=3600,
    echo=False  # Set to True for SQL debugging
)

# Create session factory. Services open one session per call, so the
# hybrid fan-out threads never share a session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Create all signal store tables that do not exist yet."""
    # Import models so they register with Base.metadata
    import watchsignal_recommendation_service.models  # noqa: F401

    Base.metadata.create_all(bind or engine)


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
