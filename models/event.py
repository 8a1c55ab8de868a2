from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from .enums import EventType


# -------------------------------------------------
# Shared Fields
# -------------------------------------------------
class EventBase(BaseModel):
    title: str
    start_time: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    event_type: Optional[EventType] = EventType.meeting
    card_color: Optional[str] = None

    # -------------------------------------------------
    # Normalize timestamps like "2025-01-01T00:00:00Z"
    # -------------------------------------------------
    @field_validator("start_time", mode="before")
    def parse_start_time(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v

    @field_validator("title")
    def title_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()


class EventCreate(EventBase):
    pass


# -------------------------------------------------
# Update Event (partial)
# -------------------------------------------------
class EventUpdate(BaseModel):
    title: Optional[str] = None
    start_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    card_color: Optional[str] = None

    @field_validator("start_time", mode="before")
    def parse_update_start_time(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v


# -------------------------------------------------
# Read Event (ALWAYS STRING SAFE)
# -------------------------------------------------
class EventRead(BaseModel):
    id: str
    organization_id: str
    title: str
    start_time: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    event_type: Optional[str] = None
    card_color: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "organization_id", mode="before")
    def to_str(cls, v):
        return str(v)
