"""Tests for the daily notification scheduler job."""
from __future__ import annotations

from typing import Dict, List

import pytest

from app.models.database_models import TASK_STATUS_COMPLETED, TASK_STATUS_PENDING
from scripts import run_scheduler


@pytest.mark.asyncio
async def test_run_daily_job_invokes_dispatch(monkeypatch):
    recorded: Dict[str, bool] = {}

    def fake_dispatch() -> Dict[str, int]:
        recorded["dispatch_called"] = True
        return {"sent": 2, "skipped": 0, "failed": 0}

    monkeypatch.setattr(run_scheduler, "perform_daily_dispatch", fake_dispatch)

    await run_scheduler.run_daily_job()

    assert recorded["dispatch_called"] is True


@pytest.mark.asyncio
async def test_run_daily_job_survives_dispatch_failure(monkeypatch):
    def fake_dispatch_failure() -> Dict[str, int]:
        raise RuntimeError("boom")

    monkeypatch.setattr(run_scheduler, "perform_daily_dispatch", fake_dispatch_failure)

    # Logged, not raised
    await run_scheduler.run_daily_job()


def test_perform_daily_dispatch_continues_after_failure(monkeypatch):
    attempted: List[int] = []

    def fake_dispatch_one(receiver_id: int) -> bool:
        attempted.append(receiver_id)
        if receiver_id == 2:
            raise RuntimeError("smtp down")
        return receiver_id != 3

    monkeypatch.setattr(run_scheduler, "find_receivers_with_pending_tasks", lambda: [1, 2, 3, 4])
    monkeypatch.setattr(run_scheduler, "dispatch_one", fake_dispatch_one)

    summary = run_scheduler.perform_daily_dispatch()

    assert attempted == [1, 2, 3, 4]
    assert summary == {"sent": 2, "skipped": 1, "failed": 1}


def test_receivers_are_users_with_pending_tasks(monkeypatch, session_factory, make_user):
    make_user(user_id=1, email="one@example.com", tasks=[("a", TASK_STATUS_PENDING), ("b", TASK_STATUS_PENDING)])
    make_user(user_id=2, email="two@example.com", tasks=[("c", TASK_STATUS_COMPLETED)])
    make_user(user_id=3, email="three@example.com", tasks=[("d", TASK_STATUS_PENDING)])
    monkeypatch.setattr(run_scheduler, "SessionLocal", session_factory)

    assert run_scheduler.find_receivers_with_pending_tasks() == [1, 3]


def test_dispatch_one_sends_through_service(monkeypatch, session_factory, make_user, mailer):
    make_user(user_id=5, tasks=[("e", TASK_STATUS_PENDING)])
    monkeypatch.setattr(run_scheduler, "SessionLocal", session_factory)
    monkeypatch.setattr("app.services.notification_service.Mailer", lambda: mailer)

    assert run_scheduler.dispatch_one(5) is True
    assert run_scheduler.dispatch_one(6) is False
    assert len(mailer.sent) == 1
