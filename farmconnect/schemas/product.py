"""Pydantic schemas for Products."""
from datetime import datetime
from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    minimum_order_quantity: float = Field(1, gt=0)


class ProductOut(BaseModel):
    product_id: str
    farmer_id: str
    name: str
    minimum_order_quantity: float
    created_at: datetime

    model_config = {"from_attributes": True}
