"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100)
    role: Literal["user", "vendor", "farmer", "admin"] = "user"


class UserOut(BaseModel):
    user_id: str
    display_name: str
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}
