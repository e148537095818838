"""Product ORM model — the slice of the catalog contact requests depend on."""
import uuid
from sqlalchemy import Column, String, DateTime, Float, ForeignKey
from sqlalchemy.sql import func
from farmconnect.database import Base


class Product(Base):
    __tablename__ = "products"

    product_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    farmer_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    minimum_order_quantity = Column(Float, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
