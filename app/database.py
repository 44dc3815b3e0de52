"""
Database handle for the CareXchange record stores
One Database is built by the application entry point and shared by all requests
"""

import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base class which all database models inherit from
Base = declarative_base()


class Database:
    """Owns the engine (connection pool) and the session factory"""

    def __init__(self, url: str):
        self.url = url
        engine_kwargs = {}
        if url.startswith("sqlite"):
            # SQLite connections are used from the threadpool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # Keep a single connection so the in-memory database survives
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        """Create tables for every imported model"""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections closed")


def get_db(request: Request) -> Iterator[Session]:
    """Dependency yielding a session bound to the application's database"""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
