"""Duplicate and rate guards applied before a contact request is created."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from farmconnect.config import settings
from farmconnect.errors import DuplicateRequestError, RateLimitError
from farmconnect.models.contact_request import (
    ContactRequest,
    RequestStatus,
    ConfirmationStatus,
    RequesterRole,
    ACTIVE_STATUSES,
)

logger = logging.getLogger(__name__)


def daily_limit_for(role: RequesterRole) -> int:
    if role == RequesterRole.vendor:
        return settings.MAX_DAILY_REQUESTS_VENDOR
    return settings.MAX_DAILY_REQUESTS_USER


def find_active_request(
    db: Session,
    requester_id: str,
    farmer_id: str,
    product_id: str,
) -> Optional[ContactRequest]:
    """Return the pending/accepted request for this triple, if one exists."""
    return (
        db.query(ContactRequest)
        .filter(
            ContactRequest.requester_id == requester_id,
            ContactRequest.farmer_id == farmer_id,
            ContactRequest.product_id == product_id,
            ContactRequest.status.in_(ACTIVE_STATUSES),
        )
        .first()
    )


def check_duplicate(db: Session, requester_id: str, farmer_id: str, product_id: str) -> None:
    existing = find_active_request(db, requester_id, farmer_id, product_id)
    if existing:
        logger.info(
            "Duplicate contact request by %s for product %s (existing %s)",
            requester_id, product_id, existing.request_id,
        )
        raise DuplicateRequestError(existing.request_id)


def check_rate_limit(db: Session, requester_id: str, role: RequesterRole, now: datetime) -> None:
    """Cap the number of requests a requester may create per rolling window."""
    window_start = now - timedelta(hours=settings.RATE_LIMIT_WINDOW_HOURS)
    limit = daily_limit_for(role)
    count = (
        db.query(ContactRequest)
        .filter(
            ContactRequest.requester_id == requester_id,
            ContactRequest.requested_at >= window_start,
        )
        .count()
    )
    if count >= limit:
        logger.warning("Requester %s hit the contact request limit (%d)", requester_id, limit)
        raise RateLimitError(
            f"You have reached your daily contact request limit ({limit} requests). Please try again tomorrow."
        )


def has_stale_accepted_requests(db: Session, now: datetime, requester_id=None, farmer_id=None) -> bool:
    """True if the party has accepted requests past the confirmation window still unconfirmed."""
    cutoff = now - timedelta(hours=settings.CONFIRMATION_WINDOW_HOURS)
    query = db.query(ContactRequest).filter(
        ContactRequest.status == RequestStatus.accepted,
        ContactRequest.accepted_at < cutoff,
        ContactRequest.confirmation_status == ConfirmationStatus.pending,
    )
    if requester_id is not None:
        query = query.filter(ContactRequest.requester_id == requester_id)
    if farmer_id is not None:
        query = query.filter(ContactRequest.farmer_id == farmer_id)
    return query.count() > 0


def check_unresolved_requests(db: Session, requester_id: str, now: datetime) -> None:
    if has_stale_accepted_requests(db, now, requester_id=requester_id):
        raise RateLimitError(
            "You have unresolved accepted requests older than the confirmation window. "
            "Complete them before making new requests."
        )
