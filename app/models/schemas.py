"""Pydantic models describing API payloads."""
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    """Schema for a stored pending tasks notification."""

    id: int
    user_id: int
    last_notification_sent_date: date
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationList(BaseModel):
    """Schema for the notification history of a single user."""

    user_id: int
    count: int
    notifications: list[NotificationResponse] = []
