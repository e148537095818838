"""ContactRequest API routes — thin HTTP bindings over contact_request_service."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from farmconnect.database import get_db
from farmconnect.dependencies import get_current_user
from farmconnect.errors import ForbiddenError
from farmconnect.models.contact_request import ContactRequest, RequestStatus
from farmconnect.models.user import User, UserRole
from farmconnect.schemas.contact_request import (
    ActivityOut,
    ContactRequestCreate,
    ContactRequestOut,
    ContactRequestPage,
    DisputeResolutionIn,
    FarmerConfirmationIn,
    MyContactRequestsOut,
    RequestStatusOut,
    SweepResultOut,
    UserConfirmationIn,
)
from farmconnect.services import contact_request_service, expiry_sweeper
from farmconnect.services.notifications import NotificationDispatcher, get_notifier
from farmconnect.services.reconciliation import Confirmation

logger = logging.getLogger(__name__)
router = APIRouter()


def _viewer_id(viewer: User) -> Optional[str]:
    return None if viewer.role == UserRole.admin else viewer.user_id


def _out(cr: ContactRequest, viewer: User) -> ContactRequestOut:
    return ContactRequestOut.for_viewer(cr, _viewer_id(viewer))


@router.post("/", response_model=ContactRequestOut, status_code=status.HTTP_201_CREATED)
def create_contact_request(
    payload: ContactRequestCreate,
    current_user: User = Depends(get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Send a contact request to the farmer who owns the product."""
    cr = contact_request_service.create_request(
        db=db,
        requester=current_user,
        product_id=payload.product_id,
        requested_quantity=payload.requested_quantity,
        notifier=notifier,
    )
    return _out(cr, current_user)


@router.get("/", response_model=ContactRequestPage)
def list_contact_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Admin — list every request, optionally filtered by status."""
    result = contact_request_service.list_all_requests(
        db=db, caller=current_user, status_filter=status_filter, page=page, limit=limit,
    )
    result["requests"] = [_out(cr, current_user) for cr in result["requests"]]
    return result


@router.get("/my", response_model=MyContactRequestsOut)
def my_contact_requests(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Requests the caller sent and received, plus farmers already contacted."""
    result = contact_request_service.list_my_requests(db, current_user.user_id)
    return MyContactRequestsOut(
        sent=[_out(cr, current_user) for cr in result["sent"]],
        received=[_out(cr, current_user) for cr in result["received"]],
        pending_farmer_ids=result["pending_farmer_ids"],
    )


@router.get("/disputes", response_model=list[ContactRequestOut])
def list_disputes(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Admin — every request currently in dispute."""
    return [_out(cr, current_user) for cr in contact_request_service.list_disputes(db, current_user)]


@router.get("/status/{farmer_id}/{product_id}", response_model=RequestStatusOut)
def check_request_status(
    farmer_id: str,
    product_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Whether the caller already has an active request for this farmer and product."""
    cr = contact_request_service.check_request_status(db, current_user.user_id, farmer_id, product_id)
    return RequestStatusOut(exists=cr is not None, request_id=cr.request_id if cr else None)


@router.post("/sweep", response_model=SweepResultOut)
def sweep_expired_requests(
    current_user: User = Depends(get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Admin — run the expiry sweep now instead of waiting for celery beat."""
    if current_user.role != UserRole.admin:
        raise ForbiddenError("Admin access required")
    expired = expiry_sweeper.sweep_expired(db, notifier=notifier)
    logger.info("Manual expiry sweep by admin %s expired %d requests", current_user.user_id, expired)
    return SweepResultOut(expired_count=expired)


@router.get("/{request_id}", response_model=ContactRequestOut)
def get_contact_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    cr = contact_request_service.get_request(db, request_id, current_user)
    return _out(cr, current_user)


@router.get("/{request_id}/activity", response_model=list[ActivityOut])
def get_contact_request_activity(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Audit trail of every transition of one request."""
    cr = contact_request_service.get_request(db, request_id, current_user)
    entries = contact_request_service.list_activity(db, request_id, current_user)
    return [ActivityOut.for_viewer(entry, cr, _viewer_id(current_user)) for entry in entries]


@router.put("/{request_id}/accept", response_model=ContactRequestOut)
def accept_contact_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Farmer accepts a pending request."""
    cr = contact_request_service.accept_request(db, request_id, current_user, notifier=notifier)
    return _out(cr, current_user)


@router.put("/{request_id}/reject", response_model=ContactRequestOut)
def reject_contact_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Farmer rejects a pending request."""
    cr = contact_request_service.reject_request(db, request_id, current_user, notifier=notifier)
    return _out(cr, current_user)


@router.post("/{request_id}/user-confirm", response_model=ContactRequestOut)
def user_confirm(
    request_id: str,
    payload: UserConfirmationIn,
    current_user: User = Depends(get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Requester reports the outcome; reconciled once the farmer has reported too."""
    confirmation = Confirmation(
        transacted=payload.did_buy,
        quantity=payload.final_quantity,
        price=payload.final_price,
        feedback=payload.feedback,
    )
    cr = contact_request_service.submit_user_confirmation(
        db, request_id, current_user, confirmation, notifier=notifier,
    )
    return _out(cr, current_user)


@router.post("/{request_id}/farmer-confirm", response_model=ContactRequestOut)
def farmer_confirm(
    request_id: str,
    payload: FarmerConfirmationIn,
    current_user: User = Depends(get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Farmer reports the outcome; reconciled once the requester has reported too."""
    confirmation = Confirmation(
        transacted=payload.did_sell,
        quantity=payload.final_quantity,
        price=payload.final_price,
        feedback=payload.feedback,
    )
    cr = contact_request_service.submit_farmer_confirmation(
        db, request_id, current_user, confirmation, notifier=notifier,
    )
    return _out(cr, current_user)


@router.post("/{request_id}/admin-resolve", response_model=ContactRequestOut)
def admin_resolve(
    request_id: str,
    payload: DisputeResolutionIn,
    current_user: User = Depends(get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Admin settles a disputed request."""
    cr = contact_request_service.resolve_dispute(
        db,
        request_id,
        current_user,
        resolution=RequestStatus(payload.resolution),
        admin_note=payload.admin_note,
        notifier=notifier,
    )
    return _out(cr, current_user)
