"""Tests for the one-off pending tasks CLI."""
from __future__ import annotations

import pytest

from app.models.database_models import TASK_STATUS_PENDING
from app.services.mailer import MailDeliveryError
from scripts import send_pending_tasks


@pytest.fixture
def cli_env(monkeypatch, session_factory, mailer):
    monkeypatch.setattr(send_pending_tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(send_pending_tasks, "run_migrations", lambda: pytest.fail("migrations should be skipped"))
    monkeypatch.setattr("app.services.notification_service.Mailer", lambda: mailer)
    return mailer


def test_cli_sends_for_existing_user(cli_env, make_user):
    make_user(user_id=42, tasks=[("Plan sprint", TASK_STATUS_PENDING)])

    code = send_pending_tasks.main(["--user-id", "42", "--skip-migrations"])

    assert code == send_pending_tasks.EXIT_SENT
    assert len(cli_env.sent) == 1


def test_cli_reports_missing_user(cli_env):
    code = send_pending_tasks.main(["--user-id", "999", "--skip-migrations"])

    assert code == send_pending_tasks.EXIT_USER_NOT_FOUND
    assert cli_env.sent == []


def test_cli_reports_delivery_failure(cli_env, make_user):
    make_user(user_id=3)
    cli_env.error = MailDeliveryError("a@example.com", "refused")

    code = send_pending_tasks.main(["--user-id", "3", "--skip-migrations"])

    assert code == send_pending_tasks.EXIT_DELIVERY_FAILED


def test_cli_requires_user_id():
    with pytest.raises(SystemExit):
        send_pending_tasks.parse_args([])


def test_cli_reports_dispatch_failure_when_record_cannot_be_saved(cli_env, monkeypatch, session_factory, make_user):
    make_user(user_id=42, tasks=[("Plan sprint", TASK_STATUS_PENDING)])

    def failing_session():
        session = session_factory()

        def failing_commit():
            raise RuntimeError("database is locked")

        session.commit = failing_commit
        return session

    monkeypatch.setattr(send_pending_tasks, "SessionLocal", failing_session)

    code = send_pending_tasks.main(["--user-id", "42", "--skip-migrations"])

    # The email went out but no record was written; must not look like "user not found".
    assert code == send_pending_tasks.EXIT_DISPATCH_FAILED
    assert code != send_pending_tasks.EXIT_USER_NOT_FOUND
    assert len(cli_env.sent) == 1
