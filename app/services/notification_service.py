"""Pending tasks email dispatching."""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable

import pytz
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.database_models import Task, User, UserNotification
from app.services.email_renderer import EmailRenderer
from app.services.mailer import Mailer, OutgoingEmail


logger = logging.getLogger(__name__)

PENDING_TASKS_SUBJECT = "Pending Tasks"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationService:
    """Send a user the list of their pending tasks and record that it was sent."""

    def __init__(
        self,
        session: Session,
        mailer: Mailer | None = None,
        renderer: EmailRenderer | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.session = session
        self.mailer = mailer or Mailer()
        self.renderer = renderer or EmailRenderer()
        self.clock = clock

    def send_pending_tasks_email(self, receiver_id: int) -> UserNotification | None:
        """
        Email a user their pending tasks and store a notification record.

        A missing user is not an error: nothing is sent, nothing is stored and
        ``None`` is returned. Rendering, delivery and database errors are raised
        to the caller; no record is written unless the email was handed off.

        Args:
            receiver_id: primary key of the user to notify

        Returns:
            The stored UserNotification, or None when the user does not exist
        """
        receiver = self.session.get(User, receiver_id)
        if receiver is None:
            logger.info("Skipping pending tasks email: user %s not found", receiver_id)
            return None

        tasks = Task.pending_for(self.session, receiver.id)
        text_body, html_body = self.renderer.render_pending_tasks(receiver, tasks)

        self.mailer.send(
            OutgoingEmail(
                to=receiver.email,
                subject=PENDING_TASKS_SUBJECT,
                text_body=text_body,
                html_body=html_body,
            )
        )

        notification = self._record_notification(receiver)
        logger.info(
            "Pending tasks email sent to user %s (%d pending, stamped %s)",
            receiver.id,
            len(tasks),
            notification.last_notification_sent_date.isoformat(),
        )
        return notification

    def local_today(self, receiver: User) -> date:
        """Current calendar date in the receiver's time zone."""

        zone_name = receiver.time_zone or get_settings().default_time_zone
        try:
            zone = pytz.timezone(zone_name)
        except pytz.UnknownTimeZoneError:
            logger.warning(
                "User %s has unknown time zone %r; using %s",
                receiver.id,
                zone_name,
                get_settings().default_time_zone,
            )
            zone = pytz.timezone(get_settings().default_time_zone)

        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(zone).date()

    def _record_notification(self, receiver: User) -> UserNotification:
        notification = UserNotification(
            user_id=receiver.id,
            last_notification_sent_date=self.local_today(receiver),
        )
        self.session.add(notification)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Failed to store notification record for user %s", receiver.id)
            raise
        self.session.refresh(notification)
        return notification
