"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Callable, Iterator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = os.environ.get("DATABASE_URL") or "sqlite://"
os.environ["MAIL_FROM"] = os.environ.get("MAIL_FROM") or "tasks@example.com"
os.environ["DEFAULT_TIME_ZONE"] = os.environ.get("DEFAULT_TIME_ZONE") or "UTC"

from app.logging_config import configure_logging

configure_logging()

from app.database import Base, get_db
from app.main import app
from app.models.database_models import Task, User
from app.routers.notifications import get_notification_service
from app.services.mailer import OutgoingEmail
from app.services.notification_service import NotificationService

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingMailer:
    """Mailer double that keeps every message instead of talking to SMTP."""

    def __init__(self) -> None:
        self.sent: List[OutgoingEmail] = []
        self.error: Exception | None = None

    def send(self, email: OutgoingEmail) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(email)


@pytest.fixture
def session_factory() -> Iterator[sessionmaker]:
    """In-memory SQLite database shared across threads for a single test."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory persisting a user with optional tasks given as (title, status) pairs."""

    def _make_user(
        user_id: int | None = None,
        email: str = "a@example.com",
        name: str | None = "Ada",
        time_zone: str | None = "UTC",
        tasks: list[tuple[str, str]] | None = None,
    ) -> User:
        user = User(id=user_id, email=email, name=name, time_zone=time_zone)
        for title, status in tasks or []:
            user.tasks.append(Task(title=title, status=status))
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def test_client(session_factory: sessionmaker, mailer: RecordingMailer) -> Iterator[TestClient]:
    """Provide a FastAPI test client bound to the test database and mailer."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def override_service():
        db = session_factory()
        try:
            yield NotificationService(db, mailer=mailer, clock=lambda: FIXED_NOW)
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = override_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
