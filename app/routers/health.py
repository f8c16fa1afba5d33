"""Router exposing basic system endpoints."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.database_models import TASK_STATUS_PENDING, Task, UserNotification


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/status")
async def get_status() -> dict[str, str]:
    """Return a minimal status payload."""
    return {"status": "online"}


@router.get("/notification-status")
def get_notification_status(db: Session = Depends(get_db)) -> dict:
    """
    Report when the last pending tasks email went out.

    A run is considered stale when no notification was recorded within the
    last day while pending tasks exist, which usually means the scheduler
    is not running.

    Returns:
        dict: {
            "last_notification_at": ISO timestamp or None,
            "pending_tasks": int,
            "is_stale": bool,
            "staleness_threshold_hours": int
        }
    """
    staleness_threshold_hours = 24

    try:
        last_sent = db.query(func.max(UserNotification.created_at)).scalar()
        pending_count = (
            db.query(func.count(Task.id))
            .filter(Task.status == TASK_STATUS_PENDING)
            .scalar()
        ) or 0
    except Exception:
        logger.exception("Notification status check failed")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to check notification status")

    if last_sent is None:
        return {
            "last_notification_at": None,
            "pending_tasks": pending_count,
            "is_stale": pending_count > 0,
            "staleness_threshold_hours": staleness_threshold_hours,
        }

    # Stored timestamps are naive UTC
    if last_sent.tzinfo is None:
        last_sent = last_sent.replace(tzinfo=timezone.utc)
    threshold = datetime.now(timezone.utc) - timedelta(hours=staleness_threshold_hours)

    return {
        "last_notification_at": last_sent.isoformat(),
        "pending_tasks": pending_count,
        "is_stale": pending_count > 0 and last_sent < threshold,
        "staleness_threshold_hours": staleness_threshold_hours,
    }
