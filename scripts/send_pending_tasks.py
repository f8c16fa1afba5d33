"""One-off script - emails a single user their pending tasks."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.database import SessionLocal, run_migrations
from app.logging_config import configure_logging
from app.services.mailer import MailDeliveryError
from app.services.notification_service import NotificationService


logger = logging.getLogger("scripts.send_pending_tasks")

EXIT_SENT = 0
EXIT_USER_NOT_FOUND = 1
EXIT_DELIVERY_FAILED = 2
EXIT_DISPATCH_FAILED = 3


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send the pending tasks email to one user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Email user 42 their pending tasks
  python scripts/send_pending_tasks.py --user-id 42

  # Skip the migration step (schema already up to date)
  python scripts/send_pending_tasks.py --user-id 42 --skip-migrations
        """
    )
    parser.add_argument(
        "--user-id",
        type=int,
        required=True,
        help="Primary key of the user to notify"
    )
    parser.add_argument(
        "--skip-migrations",
        action="store_true",
        help="Do not run database migrations before sending"
    )
    return parser.parse_args(argv)


def send(user_id: int) -> int:
    """Dispatch the email and translate the outcome to an exit code."""
    db = SessionLocal()
    try:
        notification = NotificationService(db).send_pending_tasks_email(user_id)
    except MailDeliveryError as e:
        logger.error("Delivery failed: %s", e)
        return EXIT_DELIVERY_FAILED
    except Exception:
        # Rendering or database error; the email may already have gone out.
        logger.exception("Dispatch failed for user %s", user_id)
        return EXIT_DISPATCH_FAILED
    finally:
        db.close()

    if notification is None:
        logger.warning("User %s not found; nothing sent", user_id)
        return EXIT_USER_NOT_FOUND

    logger.info("Pending tasks email sent to user %s", user_id)
    return EXIT_SENT


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    configure_logging()
    # Validate configuration early so bad SMTP settings surface before any work.
    get_settings()

    if not args.skip_migrations:
        run_migrations()

    return send(args.user_id)


if __name__ == "__main__":
    sys.exit(main())
