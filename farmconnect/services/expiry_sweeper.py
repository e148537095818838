"""Expiry sweeper — moves stale accepted requests to ``expired``.

A request accepted more than CONFIRMATION_WINDOW_HOURS ago that is still
``accepted`` never got both confirmations. Each candidate is expired with a
conditional update on its current status, so overlapping sweeps and
concurrent confirmations cannot double-transition a record. Re-running a
sweep with nothing eligible is a no-op. Celery beat drives it through
``farmconnect.tasks.sweeper``.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from farmconnect.config import settings
from farmconnect.models.activity import ContactRequestActivity, ActivityAction
from farmconnect.models.contact_request import ContactRequest, RequestStatus, ConfirmationStatus
from farmconnect.services.notifications import NotificationDispatcher, default_dispatcher, notify
from farmconnect.services.state_machine import Transition, sources_for

logger = logging.getLogger(__name__)


def sweep_expired(
    db: Session,
    now: Optional[datetime] = None,
    notifier: NotificationDispatcher = default_dispatcher,
) -> int:
    """Expire every stale accepted request. Returns the number of records expired."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=settings.CONFIRMATION_WINDOW_HOURS)
    expirable = sources_for(Transition.expire, RequestStatus.expired)
    candidates = (
        db.query(ContactRequest.request_id, ContactRequest.status)
        .filter(
            ContactRequest.status.in_(expirable),
            ContactRequest.accepted_at < cutoff,
        )
        .all()
    )

    expired = 0
    for request_id, source in candidates:
        try:
            updated = (
                db.query(ContactRequest)
                .filter(
                    ContactRequest.request_id == request_id,
                    ContactRequest.status == source,
                )
                .update(
                    {
                        ContactRequest.status: RequestStatus.expired,
                        ContactRequest.confirmation_status: ConfirmationStatus.expired,
                        ContactRequest.resolved_at: now,
                    },
                    synchronize_session=False,
                )
            )
            if not updated:
                # Confirmed or swept elsewhere since the candidate scan
                db.rollback()
                continue
            db.add(ContactRequestActivity(
                request_id=request_id,
                actor_user_id=None,
                action=ActivityAction.expired,
                from_status=RequestStatus(source).value,
                to_status=RequestStatus.expired.value,
            ))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to expire contact request %s; continuing sweep", request_id)
            continue

        expired += 1
        cr = db.get(ContactRequest, request_id)
        notify(db, notifier, "expired", cr, [cr.requester_id, cr.farmer_id])

    if expired:
        logger.info("Expired %d stale accepted contact requests", expired)
    return expired


def make_sweep_job(session_factory: Callable[[], Session]) -> Callable[[], int]:
    """Bind ``sweep_expired`` to a session factory, one session per run."""

    def _job() -> int:
        db = session_factory()
        try:
            return sweep_expired(db)
        finally:
            db.close()

    return _job
