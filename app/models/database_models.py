"""SQLAlchemy ORM models for users, their tasks and sent notifications."""
from datetime import date, datetime

from sqlalchemy import Integer, Date, DateTime, String, Text, ForeignKey, Index, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from app.database import Base


TASK_STATUS_PENDING = "pending"
TASK_STATUS_IN_PROGRESS = "in_progress"
TASK_STATUS_COMPLETED = "completed"
TASK_STATUSES = (TASK_STATUS_PENDING, TASK_STATUS_IN_PROGRESS, TASK_STATUS_COMPLETED)


class User(Base):
    """A person who owns tasks and receives pending task reminders."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    time_zone: Mapped[str | None] = mapped_column(String(64), nullable=True)  # IANA name, e.g. Europe/Berlin

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tasks: Mapped[list["Task"]] = relationship("Task", back_populates="owner", cascade="all, delete-orphan")
    notifications: Mapped[list["UserNotification"]] = relationship(
        "UserNotification",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserNotification.id",
    )


class Task(Base):
    """A unit of work assigned to a user."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=TASK_STATUS_PENDING, nullable=False)  # pending, in_progress, completed
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        # Pending lookups always filter on owner and status together
        Index("ix_tasks_user_status", "user_id", "status"),
    )

    owner: Mapped["User"] = relationship("User", back_populates="tasks")

    @classmethod
    def pending_for(cls, session: Session, user_id: int) -> list["Task"]:
        """Return the user's pending tasks, earliest due date first, undated last."""

        return cls.list_by_status(session, user_id, TASK_STATUS_PENDING)

    @classmethod
    def list_by_status(cls, session: Session, user_id: int, status: str) -> list["Task"]:
        stmt = (
            select(cls)
            .where(cls.user_id == user_id, cls.status == status)
            .order_by(cls.due_date.is_(None), cls.due_date, cls.id)
        )
        return list(session.scalars(stmt))


class UserNotification(Base):
    """Marker written each time a pending tasks email is sent to a user."""

    __tablename__ = "user_notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    last_notification_sent_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    user: Mapped["User"] = relationship("User", back_populates="notifications")
