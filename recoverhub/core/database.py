"""Database handle shared by the API process and the worker.

A ``Database`` is constructed once at process start (the app factory or the
worker's ``on_startup`` hook) and handed to everything that needs a session.
"""

from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base: Any = declarative_base()


class Database:
    """Owns the engine and session factory for one DSN."""

    def __init__(self, dsn: str, **engine_kwargs: Any):
        connect_args = {"check_same_thread": False} if "sqlite" in dsn else {}
        self.engine: Engine = create_engine(dsn, connect_args=connect_args, **engine_kwargs)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        """Create all tables (development and tests; production uses Alembic)."""
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
