"""Pytest configuration and fixtures."""

from datetime import UTC, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lumen_flow.models.database import Base, get_db, reset_engine
from lumen_flow.utils.config import Config, reset_config

# Wednesday 10 June 2025, 12:00 in Melbourne (AEST, UTC+10): outside the default
# quiet hours (21:00-08:00) and outside the daily focus window (14:00-15:00).
NOW = datetime(2025, 6, 10, 2, 0, tzinfo=UTC)
NAIVE_NOW = NOW.replace(tzinfo=None)

# 14:30 in Melbourne on the same day
FOCUS_NOW = datetime(2025, 6, 10, 4, 30, tzinfo=UTC)

# 23:00 in Melbourne on the same day
QUIET_NOW = datetime(2025, 6, 10, 13, 0, tzinfo=UTC)


@pytest.fixture
def now():
    """Frozen evaluation instant (aware UTC)."""
    return NOW


@pytest.fixture
def naive_now():
    """Frozen evaluation instant as stored (naive UTC)."""
    return NAIVE_NOW


@pytest.fixture
def focus_now():
    """Instant inside the daily focus window."""
    return FOCUS_NOW


@pytest.fixture
def quiet_now():
    """Instant inside the default quiet hours."""
    return QUIET_NOW


@pytest.fixture(scope="function")
def test_config():
    """Create a test configuration."""
    return Config(
        database={"url": "sqlite:///:memory:", "echo": False},
        nudges={"timezone": "Australia/Melbourne"},
    )


@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite engine for testing.

    Uses StaticPool to ensure the same connection is used throughout,
    which is required for in-memory SQLite databases.
    """
    # Import models to ensure they're registered with Base
    from lumen_flow.models import daily_focus, document, notification, notification_settings, nudge_run, project, task  # noqa: F401

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_db_engine):
    """Session factory bound to the test engine.

    Every session shares the single in-memory connection, so data committed
    by one session is visible to the others (the evaluator opens several).
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def evaluator(test_config, session_factory):
    """Nudge evaluator bound to the test database."""
    from lumen_flow.nudges.evaluator import NudgeEvaluator

    return NudgeEvaluator(test_config, session_factory=session_factory)


@pytest.fixture(scope="function")
def client(session_factory, test_config, evaluator, monkeypatch):
    """Create a test client with dependency overrides."""
    from lumen_flow.api.dependencies import get_app_config, get_evaluator
    from lumen_flow.api.main import create_app

    # Reset global state
    reset_config()
    reset_engine()

    app = create_app(use_lifespan=False)

    # Override get_db dependency to use the test database
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_app_config] = lambda: test_config
    app.dependency_overrides[get_evaluator] = lambda: evaluator

    # Override get_config
    def override_get_config():
        return test_config

    monkeypatch.setattr("lumen_flow.models.database.get_config", override_get_config)
    monkeypatch.setattr("lumen_flow.utils.config.get_config", override_get_config)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# --- Data builders ---


@pytest.fixture
def make_settings(test_db_session):
    """Create a notification settings row."""
    from lumen_flow.models.notification_settings import NotificationSettings

    def _make(user_id="user-1", **fields):
        values = {
            "quiet_hours_start": time(21, 0),
            "quiet_hours_end": time(8, 0),
            "muted_entities": [],
        }
        values.update(fields)
        settings = NotificationSettings(user_id=user_id, **values)
        test_db_session.add(settings)
        test_db_session.commit()
        return settings

    return _make


@pytest.fixture
def make_project(test_db_session):
    """Create a project, optionally with open tasks."""
    from lumen_flow.models.project import Project, ProjectStatus
    from lumen_flow.models.task import Task, TaskStatus

    def _make(user_id="user-1", name="Launch", open_tasks=0, completed_tasks=0, **fields):
        fields.setdefault("status", ProjectStatus.ACTIVE)
        project = Project(user_id=user_id, name=name, **fields)
        for i in range(open_tasks):
            project.tasks.append(Task(title=f"Open {i + 1}", status=TaskStatus.IN_PROGRESS))
        for i in range(completed_tasks):
            project.tasks.append(
                Task(title=f"Done {i + 1}", status=TaskStatus.COMPLETED, completed_at=NAIVE_NOW)
            )
        test_db_session.add(project)
        test_db_session.commit()
        return project

    return _make


@pytest.fixture
def make_task(test_db_session):
    """Create a task inside a project."""
    from lumen_flow.models.task import Task, TaskStatus

    def _make(project, title="Write report", **fields):
        fields.setdefault("status", TaskStatus.PENDING)
        task = Task(project_id=project.id, title=title, **fields)
        test_db_session.add(task)
        test_db_session.commit()
        return task

    return _make


@pytest.fixture
def make_document(test_db_session):
    """Create a scored document (created an hour before NOW unless given)."""
    from lumen_flow.models.document import Document

    def _make(user_id="user-1", title="Notes", score=40, **fields):
        fields.setdefault("created_at", NAIVE_NOW - timedelta(hours=1))
        document = Document(
            user_id=user_id, title=title, principle_alignment_score=score, **fields
        )
        test_db_session.add(document)
        test_db_session.commit()
        return document

    return _make


@pytest.fixture
def make_notification(test_db_session):
    """Insert a notification directly."""
    from lumen_flow.models.notification import Notification
    from lumen_flow.nudges.kinds import NotificationSeverity, RuleKind

    def _make(
        user_id="user-1",
        rule=RuleKind.PROJECT_STALE,
        entity_id="1",
        created_at=NAIVE_NOW,
        severity=NotificationSeverity.INFO,
        **fields,
    ):
        notification = Notification(
            user_id=user_id,
            type=rule.value,
            title=fields.pop("title", f"{rule.value} {entity_id}"),
            body=fields.pop("body", "body"),
            severity=severity,
            entity_type=fields.pop("entity_type", "project"),
            entity_id=entity_id,
            created_at=created_at,
            **fields,
        )
        test_db_session.add(notification)
        test_db_session.commit()
        return notification

    return _make
