"""
Database connection and session management.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from yieldlens.core.config import DATABASE_URL

logger = logging.getLogger(__name__)


def make_engine(url: str):
    """Create an engine with pool settings suited to the backend."""
    if url.startswith("sqlite"):
        # SQLite connections are shared between the event loop and the threadpool
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_size=10,
        max_overflow=20,
        pool_timeout=60,
        echo=False,  # Set to True for SQL debugging
    )


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create missing tables (local/dev databases; production uses alembic)."""
    # Models must be imported so they register on Base.metadata
    import yieldlens.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        try:
            db.close()
        except Exception as e:
            # Connection may already be gone; nothing left to release
            logger.warning(f"Error closing database session (connection may be lost): {str(e)}")
