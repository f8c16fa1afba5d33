"""Standalone scheduler process that emails users their pending tasks daily."""
from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from filelock import FileLock
from sqlalchemy import select

from app.config import get_settings
from app.logging_config import configure_logging
from app.database import SessionLocal, run_migrations
from app.models.database_models import TASK_STATUS_PENDING, Task
from app.services.notification_service import NotificationService


logger = logging.getLogger("scheduler")


def acquire_lock(lock_path: Path) -> FileLock:
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path))
    lock.acquire(timeout=0)
    return lock


def find_receivers_with_pending_tasks() -> List[int]:
    """Return ids of users that currently own at least one pending task."""
    db = SessionLocal()
    try:
        stmt = (
            select(Task.user_id)
            .where(Task.status == TASK_STATUS_PENDING)
            .distinct()
            .order_by(Task.user_id)
        )
        return list(db.scalars(stmt))
    finally:
        db.close()


def dispatch_one(receiver_id: int) -> bool:
    """
    Send the pending tasks email for a single user in its own session.

    Returns:
        bool: True if an email went out, False if the user vanished meanwhile
    """
    db = SessionLocal()
    try:
        notification = NotificationService(db).send_pending_tasks_email(receiver_id)
        return notification is not None
    finally:
        db.close()


def perform_daily_dispatch() -> Dict[str, int]:
    """
    Email every user with pending tasks, one message per user.

    A failure for one user is logged and does not stop the others.

    Returns:
        dict: counts of users that were sent, skipped and failed
    """
    summary = {"sent": 0, "skipped": 0, "failed": 0}

    for receiver_id in find_receivers_with_pending_tasks():
        try:
            sent = dispatch_one(receiver_id)
        except Exception:
            summary["failed"] += 1
            logger.exception("Pending tasks email failed for user %s", receiver_id)
            continue
        summary["sent" if sent else "skipped"] += 1

    return summary


async def run_daily_job() -> None:
    start = datetime.now(timezone.utc)
    logger.info("Daily notification job started")

    try:
        summary = await asyncio.to_thread(perform_daily_dispatch)
    except Exception:
        logger.exception("Daily notification job failed")
        return

    elapsed = (datetime.now(timezone.utc) - start).total_seconds()
    logger.info(
        "Daily notification job finished in %.2fs | sent=%d | skipped=%d | failed=%d",
        elapsed,
        summary["sent"],
        summary["skipped"],
        summary["failed"],
    )


async def run_once() -> None:
    await run_daily_job()


async def main(run_now: bool) -> None:
    configure_logging()
    settings = get_settings()
    run_migrations()

    scheduler_log = settings.log_dir / "scheduler.log"
    if not any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(scheduler_log) for h in logger.handlers):
        handler = logging.FileHandler(scheduler_log, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(handler)

    lock_path = settings.scheduler_lock_file
    lock = acquire_lock(lock_path)
    logger.info("Acquired scheduler lock at %s", lock_path)
    try:
        if run_now:
            await run_once()
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            run_daily_job,
            "cron",
            hour=settings.scheduler_hour,
            minute=settings.scheduler_minute,
        )
        scheduler.start()

        logger.info(
            "Scheduler running (cron %02d:%02d). Press Ctrl+C to exit.",
            settings.scheduler_hour,
            settings.scheduler_minute,
        )
        await asyncio.Event().wait()
    finally:
        lock.release()
        logger.info("Released scheduler lock at %s", lock_path)
        if lock_path.exists():
            lock_path.unlink()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run pending tasks notification scheduler")
    parser.add_argument("--run-now", action="store_true", help="Execute job immediately and exit")
    args = parser.parse_args()

    try:
        asyncio.run(main(run_now=args.run_now))
    except TimeoutError:
        logger.warning("Scheduler already running; exiting.")
