"""Contact request lifecycle service — every transition goes through here.

Responsibilities:
- Guards: role and ownership checks, the transition table, duplicate and rate caps
- Per-record serialization: each transition loads its row with SELECT ... FOR UPDATE
- Dual confirmation and reconciliation into completed / not_completed / disputed
- Admin dispute resolution
- Activity ledger row for every write, notification after every commit

All guard violations raise before the session is touched, so a failed call
leaves the store unchanged.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from farmconnect.errors import ForbiddenError, NotFoundError, ConflictError, ValidationError
from farmconnect.models.activity import ContactRequestActivity, ActivityAction
from farmconnect.models.contact_request import (
    ContactRequest,
    RequestStatus,
    ConfirmationStatus,
    RequesterRole,
    ACTIVE_STATUSES,
)
from farmconnect.models.user import User, UserRole
from farmconnect.services import catalog, rate_guard
from farmconnect.services.notifications import NotificationDispatcher, default_dispatcher, notify
from farmconnect.services.reconciliation import Confirmation, reconcile
from farmconnect.services.state_machine import Transition, ensure_transition

logger = logging.getLogger(__name__)

RESOLUTIONS = (RequestStatus.completed, RequestStatus.not_completed)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_id(value: str, label: str = "ID") -> str:
    try:
        uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {label} format")
    return str(value)


def _get_request(db: Session, request_id: str, lock: bool = False) -> ContactRequest:
    _validate_id(request_id, "request ID")
    query = db.query(ContactRequest).filter(ContactRequest.request_id == str(request_id))
    if lock:
        query = query.with_for_update()
    cr = query.first()
    if not cr:
        raise NotFoundError("Request not found")
    return cr


def _require_admin(caller: User) -> None:
    if caller.role != UserRole.admin:
        raise ForbiddenError("Admin access required")


def _record(
    db: Session,
    cr: ContactRequest,
    action: ActivityAction,
    actor_user_id: Optional[str],
    from_status: Optional[RequestStatus],
    meta: Optional[dict[str, Any]] = None,
) -> None:
    db.add(ContactRequestActivity(
        request_id=cr.request_id,
        actor_user_id=actor_user_id,
        action=action,
        from_status=from_status.value if from_status else None,
        to_status=cr.status.value,
        meta=meta,
    ))


def _user_confirmation(cr: ContactRequest) -> Confirmation:
    return Confirmation(
        transacted=bool(cr.user_did_buy),
        quantity=cr.final_quantity,
        price=cr.final_price,
        feedback=cr.user_feedback,
    )


def _farmer_confirmation(cr: ContactRequest) -> Confirmation:
    return Confirmation(
        transacted=bool(cr.farmer_did_sell),
        quantity=cr.farmer_final_quantity,
        price=cr.farmer_final_price,
        feedback=cr.farmer_feedback,
    )


def create_request(
    db: Session,
    requester: User,
    product_id: str,
    requested_quantity: float,
    notifier: NotificationDispatcher = default_dispatcher,
    now: Optional[datetime] = None,
) -> ContactRequest:
    """Open a pending contact request from a user or vendor to a product's farmer."""
    now = now or _utcnow()
    if requester.role not in (UserRole.user, UserRole.vendor):
        raise ForbiddenError("Only users and vendors can send contact requests")
    if requested_quantity is None or requested_quantity <= 0:
        raise ValidationError("Invalid requested quantity")
    _validate_id(product_id, "product ID")

    # Serialize creations per requester so the duplicate check cannot race
    db.query(User).filter(User.user_id == requester.user_id).with_for_update().first()

    rate_guard.check_unresolved_requests(db, requester.user_id, now)

    product = catalog.get_product(db, str(product_id))
    minimum = product.minimum_order_quantity or 1
    if requested_quantity < minimum:
        raise ValidationError(
            f"Requested quantity must be at least the minimum order quantity ({minimum:g})"
        )
    if product.farmer_id == requester.user_id:
        raise ValidationError("Cannot request your own contact")

    rate_guard.check_duplicate(db, requester.user_id, product.farmer_id, product.product_id)
    role = RequesterRole(requester.role.value)
    rate_guard.check_rate_limit(db, requester.user_id, role, now)

    cr = ContactRequest(
        product_id=product.product_id,
        farmer_id=product.farmer_id,
        requester_id=requester.user_id,
        requester_role=role,
        requested_quantity=requested_quantity,
        status=RequestStatus.pending,
        confirmation_status=ConfirmationStatus.pending,
        requested_at=now,
    )
    db.add(cr)
    db.flush()
    _record(db, cr, ActivityAction.created, requester.user_id, None, {"requested_quantity": requested_quantity})
    db.commit()
    db.refresh(cr)
    logger.info(
        "Contact request %s created by %s for product %s (farmer %s)",
        cr.request_id, requester.user_id, product.product_id, product.farmer_id,
    )
    notify(db, notifier, "created", cr, [cr.farmer_id])
    return cr


def _farmer_decision(
    db: Session,
    request_id: str,
    caller: User,
    transition: Transition,
    notifier: NotificationDispatcher,
    now: Optional[datetime],
) -> ContactRequest:
    now = now or _utcnow()
    cr = _get_request(db, request_id, lock=True)
    if cr.farmer_id != caller.user_id:
        raise ForbiddenError("Not authorized")

    if transition == Transition.accept:
        target, action, event = RequestStatus.accepted, ActivityAction.accepted, "accepted"
    else:
        target, action, event = RequestStatus.rejected, ActivityAction.rejected, "rejected"
    ensure_transition(cr.status, transition, target)

    if transition == Transition.accept and rate_guard.has_stale_accepted_requests(db, now, farmer_id=caller.user_id):
        raise ConflictError(
            "You have unresolved accepted requests older than the confirmation window. "
            "Complete them before accepting new requests."
        )

    previous = cr.status
    cr.status = target
    if target == RequestStatus.accepted:
        cr.accepted_at = now
    else:
        cr.rejected_at = now
    _record(db, cr, action, caller.user_id, previous)
    db.commit()
    db.refresh(cr)
    logger.info("Contact request %s %s by farmer %s", cr.request_id, event, caller.user_id)
    notify(db, notifier, event, cr, [cr.requester_id])
    return cr


def accept_request(
    db: Session,
    request_id: str,
    caller: User,
    notifier: NotificationDispatcher = default_dispatcher,
    now: Optional[datetime] = None,
) -> ContactRequest:
    """Farmer accepts a pending request; contact details become shared."""
    return _farmer_decision(db, request_id, caller, Transition.accept, notifier, now)


def reject_request(
    db: Session,
    request_id: str,
    caller: User,
    notifier: NotificationDispatcher = default_dispatcher,
    now: Optional[datetime] = None,
) -> ContactRequest:
    """Farmer rejects a pending request."""
    return _farmer_decision(db, request_id, caller, Transition.reject, notifier, now)


def _submit_confirmation(
    db: Session,
    request_id: str,
    caller: User,
    confirmation: Confirmation,
    side: str,
    notifier: NotificationDispatcher,
    now: Optional[datetime],
) -> ContactRequest:
    now = now or _utcnow()
    cr = _get_request(db, request_id, lock=True)

    owner = cr.requester_id if side == "user" else cr.farmer_id
    if owner != caller.user_id:
        raise ForbiddenError("Not authorized")
    ensure_transition(cr.status, Transition.confirm, RequestStatus.accepted)
    already = cr.user_confirmed if side == "user" else cr.farmer_confirmed
    if already:
        raise ConflictError("Already confirmed")

    if side == "user":
        cr.final_quantity = confirmation.quantity
        cr.final_price = confirmation.price
        cr.user_did_buy = confirmation.transacted
        cr.user_feedback = confirmation.feedback
        cr.user_confirmed = True
        cr.user_confirmation_at = now
        action, counterpart = ActivityAction.user_confirmed, cr.farmer_id
    else:
        cr.farmer_final_quantity = confirmation.quantity
        cr.farmer_final_price = confirmation.price
        cr.farmer_did_sell = confirmation.transacted
        cr.farmer_feedback = confirmation.feedback
        cr.farmer_confirmed = True
        cr.farmer_confirmation_at = now
        action, counterpart = ActivityAction.farmer_confirmed, cr.requester_id
    _record(db, cr, action, caller.user_id, RequestStatus.accepted, {
        "transacted": confirmation.transacted,
        "quantity": confirmation.quantity,
        "price": confirmation.price,
    })

    reconciled = False
    if cr.user_confirmed and cr.farmer_confirmed:
        outcome = reconcile(_user_confirmation(cr), _farmer_confirmation(cr))
        ensure_transition(cr.status, Transition.reconcile, outcome)
        cr.status = outcome
        cr.confirmation_status = ConfirmationStatus(outcome.value)
        cr.resolved_at = now
        _record(db, cr, ActivityAction.reconciled, None, RequestStatus.accepted)
        reconciled = True

    db.commit()
    db.refresh(cr)
    if reconciled:
        logger.info("Contact request %s reconciled as %s", cr.request_id, cr.status.value)
        notify(db, notifier, "resolved", cr, [cr.requester_id, cr.farmer_id])
    else:
        logger.info("Contact request %s confirmed by %s side", cr.request_id, side)
        notify(db, notifier, "confirmed", cr, [counterpart])
    return cr


def submit_user_confirmation(
    db: Session,
    request_id: str,
    caller: User,
    confirmation: Confirmation,
    notifier: NotificationDispatcher = default_dispatcher,
    now: Optional[datetime] = None,
) -> ContactRequest:
    """Requester reports whether they bought, and at what quantity and price."""
    return _submit_confirmation(db, request_id, caller, confirmation, "user", notifier, now)


def submit_farmer_confirmation(
    db: Session,
    request_id: str,
    caller: User,
    confirmation: Confirmation,
    notifier: NotificationDispatcher = default_dispatcher,
    now: Optional[datetime] = None,
) -> ContactRequest:
    """Farmer reports whether they sold, and at what quantity and price."""
    return _submit_confirmation(db, request_id, caller, confirmation, "farmer", notifier, now)


def resolve_dispute(
    db: Session,
    request_id: str,
    caller: User,
    resolution: RequestStatus,
    admin_note: Optional[str] = None,
    notifier: NotificationDispatcher = default_dispatcher,
    now: Optional[datetime] = None,
) -> ContactRequest:
    """Admin settles a disputed request as completed or not_completed."""
    now = now or _utcnow()
    _require_admin(caller)
    if resolution not in RESOLUTIONS:
        raise ValidationError("Resolution must be 'completed' or 'not_completed'")

    cr = _get_request(db, request_id, lock=True)
    ensure_transition(cr.status, Transition.resolve, resolution)

    cr.status = resolution
    cr.confirmation_status = ConfirmationStatus(resolution.value)
    cr.admin_note = admin_note
    cr.resolved_at = now
    _record(db, cr, ActivityAction.dispute_resolved, caller.user_id, RequestStatus.disputed, {
        "resolution": resolution.value,
        "admin_note": admin_note,
    })
    db.commit()
    db.refresh(cr)
    logger.info("Dispute %s resolved as %s by admin %s", cr.request_id, resolution.value, caller.user_id)
    notify(db, notifier, "resolved", cr, [cr.requester_id, cr.farmer_id])
    return cr


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def get_request(db: Session, request_id: str, caller: User) -> ContactRequest:
    """Fetch one request; visible to its two parties and to admins."""
    cr = _get_request(db, request_id)
    if caller.role != UserRole.admin and caller.user_id not in (cr.requester_id, cr.farmer_id):
        raise ForbiddenError("Not authorized")
    return cr


def check_request_status(db: Session, requester_id: str, farmer_id: str, product_id: str) -> Optional[ContactRequest]:
    """Return the active request for (requester, farmer, product), if any."""
    _validate_id(farmer_id, "farmer ID")
    _validate_id(product_id, "product ID")
    return rate_guard.find_active_request(db, requester_id, farmer_id, product_id)


def list_my_requests(db: Session, user_id: str) -> dict[str, Any]:
    """Requests the user sent, requests they received, and farmers they are already talking to."""
    sent = (
        db.query(ContactRequest)
        .filter(ContactRequest.requester_id == user_id)
        .order_by(ContactRequest.requested_at.desc())
        .all()
    )
    received = (
        db.query(ContactRequest)
        .filter(ContactRequest.farmer_id == user_id)
        .order_by(ContactRequest.requested_at.desc())
        .all()
    )
    pending_farmer_ids = sorted({cr.farmer_id for cr in sent if cr.status in ACTIVE_STATUSES})
    return {"sent": sent, "received": received, "pending_farmer_ids": pending_farmer_ids}


def list_disputes(db: Session, caller: User) -> list[ContactRequest]:
    _require_admin(caller)
    return (
        db.query(ContactRequest)
        .filter(ContactRequest.status == RequestStatus.disputed)
        .order_by(ContactRequest.requested_at.desc())
        .all()
    )


def list_all_requests(
    db: Session,
    caller: User,
    status_filter: Optional[RequestStatus] = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """Admin listing with optional status filter and pagination."""
    _require_admin(caller)
    page = max(1, page)
    limit = max(1, min(100, limit))
    query = db.query(ContactRequest)
    if status_filter:
        query = query.filter(ContactRequest.status == status_filter)
    total = query.count()
    requests = (
        query.order_by(ContactRequest.requested_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {"requests": requests, "total": total, "page": page, "limit": limit}


def list_activity(db: Session, request_id: str, caller: User) -> list[ContactRequestActivity]:
    cr = get_request(db, request_id, caller)
    return (
        db.query(ContactRequestActivity)
        .filter(ContactRequestActivity.request_id == cr.request_id)
        .order_by(ContactRequestActivity.created_at)
        .all()
    )
