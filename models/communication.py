from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator


class CommunicationRead(BaseModel):
    """One row per recipient, written by the send-email function."""
    id: str
    org_id: str
    subject: Optional[str] = None
    message_body: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    sender_email: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "org_id", mode="before")
    def to_str(cls, v):
        return str(v)
