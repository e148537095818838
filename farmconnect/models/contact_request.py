"""ContactRequest ORM model — the negotiation between a requester and a farmer."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Float, Boolean, Text, ForeignKey, Index, Enum as SAEnum
from farmconnect.database import Base


class RequesterRole(str, enum.Enum):
    user = "user"
    vendor = "vendor"


class RequestStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    completed = "completed"
    not_completed = "not_completed"
    disputed = "disputed"
    expired = "expired"


class ConfirmationStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    not_completed = "not_completed"
    disputed = "disputed"
    expired = "expired"


ACTIVE_STATUSES = (RequestStatus.pending, RequestStatus.accepted)


class ContactRequest(Base):
    __tablename__ = "contact_requests"
    __table_args__ = (
        Index("ix_contact_requests_status_farmer", "status", "farmer_id"),
        Index("ix_contact_requests_requester_status", "requester_id", "status"),
    )

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = Column(String(36), ForeignKey("products.product_id"), nullable=False)
    farmer_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    requester_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    requester_role = Column(SAEnum(RequesterRole, native_enum=False, length=20), nullable=False)
    requested_quantity = Column(Float, nullable=False)

    status = Column(SAEnum(RequestStatus, native_enum=False, length=20), nullable=False, default=RequestStatus.pending)
    confirmation_status = Column(SAEnum(ConfirmationStatus, native_enum=False, length=20), nullable=False, default=ConfirmationStatus.pending)

    requested_at = Column(DateTime(timezone=True), nullable=False, index=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    # Requester side of the confirmation
    final_quantity = Column(Float, nullable=True)
    final_price = Column(Float, nullable=True)
    user_did_buy = Column(Boolean, nullable=True)
    user_feedback = Column(Text, nullable=True)
    user_confirmed = Column(Boolean, nullable=False, default=False)
    user_confirmation_at = Column(DateTime(timezone=True), nullable=True)

    # Farmer side, never shared with the requester columns
    farmer_final_quantity = Column(Float, nullable=True)
    farmer_final_price = Column(Float, nullable=True)
    farmer_did_sell = Column(Boolean, nullable=True)
    farmer_feedback = Column(Text, nullable=True)
    farmer_confirmed = Column(Boolean, nullable=False, default=False)
    farmer_confirmation_at = Column(DateTime(timezone=True), nullable=True)

    admin_note = Column(Text, nullable=True)
