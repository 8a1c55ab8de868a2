from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


# -------------------------------------------------
# Tenant settings (admin / president)
# -------------------------------------------------
class OrganizationSettingsUpdate(BaseModel):
    name: Optional[str] = None
    chapter: Optional[str] = None
    brand_color: Optional[str] = None
    admin_email: Optional[EmailStr] = None
    phone: Optional[str] = None
    monthly_fee: Optional[float] = Field(None, ge=0)


# -------------------------------------------------
# Tenant admin portal (super admins)
# -------------------------------------------------
class OrganizationCreate(BaseModel):
    name: str
    chapter: Optional[str] = None
    brand_color: Optional[str] = None
    admin_name: Optional[str] = None
    admin_email: Optional[EmailStr] = None
    phone: Optional[str] = None
    monthly_fee: Optional[float] = Field(None, ge=0)

    @field_validator("name")
    def name_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Organization Name is required")
        return v.strip()


class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    chapter: Optional[str] = None
    brand_color: Optional[str] = None
    admin_name: Optional[str] = None
    admin_email: Optional[EmailStr] = None
    phone: Optional[str] = None
    monthly_fee: Optional[float] = Field(None, ge=0)


class OrganizationRead(BaseModel):
    id: str
    name: str
    chapter: Optional[str] = None
    brand_color: Optional[str] = None
    admin_name: Optional[str] = None
    admin_email: Optional[str] = None
    phone: Optional[str] = None
    monthly_fee: Optional[float] = None
    slug: Optional[str] = None
    owner_id: Optional[str] = None
    is_suspended: bool = False
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    def id_to_str(cls, v):
        return str(v)

    @field_validator("is_suspended", mode="before")
    def none_is_false(cls, v):
        return bool(v)


# -------------------------------------------------
# Profile + security forms
# -------------------------------------------------
class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    major: Optional[str] = None
    gpa: Optional[str] = None

    @field_validator("gpa", mode="before")
    def gpa_to_str(cls, v):
        if v is None or v == "":
            return None
        return str(v)


class PasswordChangeRequest(BaseModel):
    password: str
    confirm_password: str
