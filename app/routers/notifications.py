"""Notification trigger and history API endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.database_models import User, UserNotification
from app.models.schemas import NotificationList, NotificationResponse
from app.services.mailer import MailDeliveryError
from app.services.notification_service import NotificationService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency building a dispatcher bound to the request session."""
    return NotificationService(db)


@router.post(
    "/notifications/pending-tasks/{user_id}",
    status_code=202,
    response_model=NotificationResponse,
)
def send_pending_tasks(
    user_id: int,
    service: NotificationService = Depends(get_notification_service),
) -> UserNotification:
    """
    Email a user their pending tasks right away.

    Raises:
        HTTPException: 404 if the user does not exist, 502 if delivery fails
    """
    try:
        notification = service.send_pending_tasks_email(user_id)
    except MailDeliveryError as exc:
        logger.warning("Pending tasks email to user %s failed: %s", user_id, exc.reason)
        raise HTTPException(status_code=502, detail="Email delivery failed")

    if notification is None:
        raise HTTPException(status_code=404, detail="User not found")
    return notification


@router.get("/users/{user_id}/notifications", response_model=NotificationList)
def list_notifications(
    user_id: int,
    db: Session = Depends(get_db),
) -> dict:
    """Return the pending tasks notifications sent to a user, newest first."""
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    notifications = (
        db.query(UserNotification)
        .filter(UserNotification.user_id == user_id)
        .order_by(UserNotification.id.desc())
        .all()
    )
    return {
        "user_id": user_id,
        "count": len(notifications),
        "notifications": notifications,
    }
