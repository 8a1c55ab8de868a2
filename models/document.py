from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator


# ======================================================
# Documents are links to files stored elsewhere
# (Google Drive etc.); only metadata lives here.
# ======================================================
class DocumentCreate(BaseModel):
    name: str
    url: str
    type: Optional[str] = None
    size: Optional[str] = None
    source: Optional[str] = None

    @field_validator("name", "url")
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Name and URL are required")
        return v.strip()


class DocumentUpdate(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None
    size: Optional[str] = None
    source: Optional[str] = None


class DocumentRead(BaseModel):
    id: str
    org_id: str
    name: str
    url: Optional[str] = None
    type: Optional[str] = None
    size: Optional[str] = None
    source: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "org_id", mode="before")
    def to_str(cls, v):
        return str(v)
