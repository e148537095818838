"""User ORM model — local stand-in for the identity provider."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from farmconnect.database import Base


class UserRole(str, enum.Enum):
    user = "user"
    vendor = "vendor"
    farmer = "farmer"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_name = Column(String(100), nullable=False, unique=True)
    role = Column(SAEnum(UserRole, native_enum=False, length=20), nullable=False, default=UserRole.user)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
