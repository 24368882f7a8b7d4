"""
Database connection and session management.

A `Database` object owns one SQLAlchemy engine and its session factory. The
app factory builds one per process and keeps it on `app.state`; routes get a
session through the `get_db` dependency in `student_records.dependencies`.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from student_records.logging_config import get_logger, log_with_context

logger = get_logger("db")


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class Database:
    """Engine plus session factory for a single database URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            # Route handlers run in a thread pool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self.engine = create_engine(url, **engine_kwargs)

        if url.startswith("sqlite"):
            @event.listens_for(self.engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def session(self):
        """
        Yield a session and close it when the caller is done.

        Used as the body of the `get_db` FastAPI dependency.
        """
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def create_tables(self):
        """Create `users` and `students` directly (SQLite local runs)."""
        # Registers the models on Base.metadata
        from student_records import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        for table in Base.metadata.sorted_tables:
            log_with_context(logger, "INFO", "{} table ready".format(table.name.capitalize()))

    def dispose(self):
        self.engine.dispose()
        log_with_context(logger, "INFO", "Database connection closed")
