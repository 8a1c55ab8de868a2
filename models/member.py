from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from .enums import MemberStatus


# -------------------------------------------------
# Shared Fields
# -------------------------------------------------
class MemberBase(BaseModel):
    full_name: Optional[str] = None
    email: EmailStr
    phone: Optional[str] = None
    major: Optional[str] = None
    gpa: Optional[str] = None
    joined_date: Optional[date] = None

    # GPA is free text ("3.5", "3.50"); numbers from JSON are kept as typed
    @field_validator("gpa", mode="before")
    def gpa_to_str(cls, v):
        if v is None or v == "":
            return None
        return str(v)


# -------------------------------------------------
# Create Member
# -------------------------------------------------
class MemberCreate(MemberBase):
    """
    New roster entries always start as role "Member", status "Pending".
    Set `send_invite` to email the first-login link right away.
    """
    send_invite: bool = True


# -------------------------------------------------
# Update Member (partial)
# -------------------------------------------------
class MemberUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    status: Optional[MemberStatus] = None
    major: Optional[str] = None
    gpa: Optional[str] = None
    joined_date: Optional[date] = None

    @field_validator("gpa", mode="before")
    def gpa_to_str(cls, v):
        if v is None or v == "":
            return None
        return str(v)


# -------------------------------------------------
# Read Member
# -------------------------------------------------
class MemberRead(BaseModel):
    id: str
    org_id: str
    full_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    major: Optional[str] = None
    gpa: Optional[str] = None
    joined_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "org_id", mode="before")
    def to_str(cls, v):
        return str(v)

    @field_validator("gpa", mode="before")
    def gpa_to_str(cls, v):
        return None if v is None else str(v)


# -------------------------------------------------
# Bulk email
# -------------------------------------------------
class MemberEmailRequest(BaseModel):
    member_ids: List[str] = Field(..., min_length=1)
    subject: str
    message: str


# -------------------------------------------------
# Permission matrix editor
# -------------------------------------------------
class PermissionToggleRequest(BaseModel):
    page: str
    action: str


class PermissionToggleAllRequest(BaseModel):
    page: str


class MemberPermissions(BaseModel):
    member_id: str
    full_name: Optional[str] = None
    email: str
    role: Optional[str] = None
    is_privileged: bool = False
    permissions: Dict[str, Dict[str, bool]]
