"""Notification dispatch for contact request lifecycle events.

The lifecycle services emit an event after each committed transition. Delivery
is best effort: a dispatcher failure is logged and never undoes the transition.
"""
import logging
from typing import Iterable

from sqlalchemy.orm import Session

from farmconnect.models.contact_request import ContactRequest
from farmconnect.models.notification import Notification

logger = logging.getLogger(__name__)

EVENT_MESSAGES = {
    "created": "You received a new contact request.",
    "accepted": "Your contact request was accepted. Contact details are now shared.",
    "rejected": "Your contact request was rejected.",
    "confirmed": "The other party submitted their confirmation. Please submit yours.",
    "resolved": "The contact request was resolved as {status}.",
    "expired": "The contact request expired without confirmation from both parties.",
}


class NotificationDispatcher:
    """Interface — deliver one lifecycle event to a set of users."""

    def dispatch(self, db: Session, event: str, request: ContactRequest, recipients: Iterable[str]) -> None:
        raise NotImplementedError


class DatabaseNotificationDispatcher(NotificationDispatcher):
    """Store in-app notifications in the ``notifications`` table.

    Rows are added to the caller's session after the transition commit and
    committed as a transaction of their own.
    """

    def dispatch(self, db: Session, event: str, request: ContactRequest, recipients: Iterable[str]) -> None:
        message = EVENT_MESSAGES[event].format(status=request.status.value)
        for user_id in recipients:
            db.add(Notification(
                user_id=user_id,
                request_id=request.request_id,
                event=event,
                message=message,
            ))
        db.commit()


default_dispatcher = DatabaseNotificationDispatcher()


def get_notifier() -> NotificationDispatcher:
    """FastAPI dependency — overridable in tests."""
    return default_dispatcher


def notify(
    db: Session,
    notifier: NotificationDispatcher,
    event: str,
    request: ContactRequest,
    recipients: Iterable[str],
) -> None:
    """Dispatch and swallow delivery failures after logging them."""
    recipients = list(recipients)
    try:
        notifier.dispatch(db, event, request, recipients)
    except Exception:
        db.rollback()
        logger.exception(
            "Failed to dispatch '%s' notification for contact request %s to %s",
            event, request.request_id, recipients,
        )
