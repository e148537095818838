"""Pydantic schemas for ContactRequests."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field, model_validator

from farmconnect.models.contact_request import ContactRequest, RequestStatus

# Fields one party must not see from the other until the request is reconciled
_USER_CONFIRMATION_FIELDS = (
    "final_quantity", "final_price", "user_did_buy", "user_feedback", "user_confirmation_at",
)
_FARMER_CONFIRMATION_FIELDS = (
    "farmer_final_quantity", "farmer_final_price", "farmer_did_sell", "farmer_feedback", "farmer_confirmation_at",
)
_CONFIRMATION_ACTIONS = ("user_confirmed", "farmer_confirmed")


class ContactRequestCreate(BaseModel):
    product_id: str
    requested_quantity: float = Field(..., gt=0)


class _ConfirmationIn(BaseModel):
    final_quantity: Optional[float] = Field(None, gt=0)
    final_price: Optional[float] = Field(None, ge=0)
    feedback: Optional[str] = Field(None, max_length=1000)


class UserConfirmationIn(_ConfirmationIn):
    did_buy: bool

    @model_validator(mode="after")
    def _require_terms(self):
        if self.did_buy and (self.final_quantity is None or self.final_price is None):
            raise ValueError("final_quantity and final_price are required when did_buy is true")
        return self


class FarmerConfirmationIn(_ConfirmationIn):
    did_sell: bool

    @model_validator(mode="after")
    def _require_terms(self):
        if self.did_sell and (self.final_quantity is None or self.final_price is None):
            raise ValueError("final_quantity and final_price are required when did_sell is true")
        return self


class DisputeResolutionIn(BaseModel):
    resolution: Literal["completed", "not_completed"]
    admin_note: Optional[str] = Field(None, max_length=2000)


class ContactRequestOut(BaseModel):
    request_id: str
    product_id: str
    farmer_id: str
    requester_id: str
    requester_role: str
    requested_quantity: float
    status: str
    confirmation_status: str
    requested_at: datetime
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    final_quantity: Optional[float] = None
    final_price: Optional[float] = None
    user_did_buy: Optional[bool] = None
    user_feedback: Optional[str] = None
    user_confirmed: bool = False
    user_confirmation_at: Optional[datetime] = None

    farmer_final_quantity: Optional[float] = None
    farmer_final_price: Optional[float] = None
    farmer_did_sell: Optional[bool] = None
    farmer_feedback: Optional[str] = None
    farmer_confirmed: bool = False
    farmer_confirmation_at: Optional[datetime] = None

    admin_note: Optional[str] = None

    model_config = {"from_attributes": True}

    @classmethod
    def for_viewer(cls, cr: ContactRequest, viewer_id: Optional[str]) -> "ContactRequestOut":
        """Serialize ``cr`` hiding the counterpart's confirmation while it is unreconciled.

        ``viewer_id=None`` means an admin view with nothing hidden.
        """
        out = cls.model_validate(cr)
        if viewer_id is None or cr.status != RequestStatus.accepted:
            return out
        hidden: tuple[str, ...] = ()
        if viewer_id == cr.requester_id:
            hidden = _FARMER_CONFIRMATION_FIELDS
        elif viewer_id == cr.farmer_id:
            hidden = _USER_CONFIRMATION_FIELDS
        return out.model_copy(update={name: None for name in hidden})


class MyContactRequestsOut(BaseModel):
    sent: list[ContactRequestOut]
    received: list[ContactRequestOut]
    pending_farmer_ids: list[str]


class ContactRequestPage(BaseModel):
    requests: list[ContactRequestOut]
    total: int
    page: int
    limit: int


class RequestStatusOut(BaseModel):
    exists: bool
    request_id: Optional[str] = None


class SweepResultOut(BaseModel):
    expired_count: int


class ActivityOut(BaseModel):
    activity_id: str
    request_id: str
    actor_user_id: Optional[str] = None
    action: str
    from_status: Optional[str] = None
    to_status: str
    meta: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def for_viewer(cls, entry, cr: ContactRequest, viewer_id: Optional[str]) -> "ActivityOut":
        """Serialize one ledger row, dropping the counterpart's submitted terms while unreconciled."""
        out = cls.model_validate(entry)
        if viewer_id is None or cr.status != RequestStatus.accepted:
            return out
        if out.action in _CONFIRMATION_ACTIONS and out.actor_user_id != viewer_id:
            return out.model_copy(update={"meta": None})
        return out
