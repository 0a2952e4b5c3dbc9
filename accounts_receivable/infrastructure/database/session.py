"""Database engine and per-request session management"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from accounts_receivable.config import settings
from accounts_receivable.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """Create an engine; pooled for server databases, thread-shared for SQLite"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_schema(bind: Engine | None = None) -> None:
    """Create receivable tables if missing"""
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Session:
    """Dependency injection for database sessions, one per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
