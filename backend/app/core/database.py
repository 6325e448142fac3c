"""
Database engine and session management.

A single engine owns the connection pool. Request handlers receive a
session through ``get_db`` and services take that session as a constructor
argument, so every unit of work is bound to one scoped connection.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from app.config import get_settings

settings = get_settings()


def build_engine(database_url: str):
    """Create an engine, applying pool limits for server databases."""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
        echo=settings.debug,
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a session for one request and always release it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
