"""Pydantic schemas for Notifications."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class NotificationOut(BaseModel):
    notification_id: str
    request_id: Optional[str] = None
    event: str
    message: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
