"""Engine, session factory and session helpers for the notification database."""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from lumen_flow.utils.config import DatabaseConfig, get_config

Base = declarative_base()

# Created on first use from the global config
_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def build_connect_args(config: DatabaseConfig) -> dict[str, Any]:
    """Driver-specific connection arguments, including the per-query timeout."""
    if config.url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": config.statement_timeout_seconds}
    if config.url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={config.statement_timeout_seconds * 1000}"}
    return {}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(config: DatabaseConfig) -> Engine:
    """Create an engine for the configured database URL."""
    engine = create_engine(
        config.url,
        echo=config.echo,
        connect_args=build_connect_args(config),
    )
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_engine() -> Engine:
    """Get or create the application engine."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(get_config().database)
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the application session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def init_db() -> None:
    """Create any missing tables. Schema changes go through alembic."""
    # Every model module must be imported so its table is registered on Base
    from lumen_flow.models import daily_focus, document, notification, notification_settings, nudge_run, project, task  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """Yield a session for FastAPI dependency injection. Routes commit themselves."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session scope for CLI commands: commit on success, roll back on error."""
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def reset_engine() -> None:
    """Drop the cached engine and session factory (tests and config reloads)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
