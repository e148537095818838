"""ContactRequestActivity ORM model — append-only audit ledger of transitions."""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Enum as SAEnum
from farmconnect.database import Base


class ActivityAction(str, enum.Enum):
    created = "created"
    accepted = "accepted"
    rejected = "rejected"
    user_confirmed = "user_confirmed"
    farmer_confirmed = "farmer_confirmed"
    reconciled = "reconciled"
    expired = "expired"
    dispute_resolved = "dispute_resolved"


class ContactRequestActivity(Base):
    __tablename__ = "contact_request_activity"

    activity_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    request_id = Column(String(36), ForeignKey("contact_requests.request_id"), nullable=False, index=True)
    actor_user_id = Column(String(36), ForeignKey("users.user_id"), nullable=True)  # null for the sweeper
    action = Column(SAEnum(ActivityAction, native_enum=False, length=20), nullable=False)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
