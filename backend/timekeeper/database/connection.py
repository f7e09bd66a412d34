"""
Database connection management for the timekeeper.

Builds the engine from DATABASE_URL, hands out request sessions and
creates the schema on startup. SQLite (file or in-memory) is the default;
any SQLAlchemy URL works.
"""
import logging
import os
from typing import Generator
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from .models import Base

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./timekeeper.db")
IS_SQLITE = DATABASE_URL.startswith("sqlite")

# One shared connection keeps an in-memory SQLite database alive across sessions.
engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    poolclass=StaticPool if IS_SQLITE else None,
    connect_args={"check_same_thread": False} if IS_SQLITE else {}
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        """Profile deletion cascades to entries only with foreign keys on."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_tables():
    """Create any missing tables."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Schema ready on {engine.url.get_backend_name()}")


def drop_tables():
    Base.metadata.drop_all(bind=engine)


def database_available() -> bool:
    """Run a trivial query to check the database answers."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1")).scalar()
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database check failed: {e}")
        return False


# PUBLIC_INTERFACE
def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
