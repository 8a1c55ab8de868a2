from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from .enums import ComplianceStatus


class ComplianceCreate(BaseModel):
    title: str
    due_date: date
    description: Optional[str] = None
    status: ComplianceStatus = ComplianceStatus.pending

    @field_validator("title")
    def title_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()


class ComplianceUpdate(BaseModel):
    title: Optional[str] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    status: Optional[ComplianceStatus] = None


class ComplianceRead(BaseModel):
    id: str
    organization_id: str
    title: str
    due_date: Optional[date] = None
    description: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "organization_id", mode="before")
    def to_str(cls, v):
        return str(v)
