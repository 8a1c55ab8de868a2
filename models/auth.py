from typing import Any, Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field


# -----------------------------------------------------
# IDENTITY (validated Supabase Auth user)
# -----------------------------------------------------
class Identity(BaseModel):
    id: str
    email: str
    user_metadata: Dict[str, Any] = Field(default_factory=dict)


# -----------------------------------------------------
# LOGIN REQUEST (using Supabase email/password)
# -----------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    identity: Identity


# -----------------------------------------------------
# ORG PICKER (one entry per roster row for the email)
# -----------------------------------------------------
class Membership(BaseModel):
    member_id: str
    organization_id: str
    organization_name: str
    chapter: Optional[str] = None
    role: Optional[str] = None
    is_suspended: bool = False


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    is_super_admin: bool = False
    organizations: List[Membership] = Field(default_factory=list)
    selected_organization_id: Optional[str] = None
    redirect_to: Optional[str] = None


class SelectOrganizationRequest(BaseModel):
    organization_id: str


class AccessRequest(BaseModel):
    email: EmailStr


class RecoveryVerifyRequest(BaseModel):
    email: EmailStr
    token_hash: str


# -----------------------------------------------------
# ACCOUNT ACTIVATION
# -----------------------------------------------------
class InviteActivationRequest(BaseModel):
    password: str
    full_name: str


class RecoveryResetRequest(BaseModel):
    password: str


class SetupRequest(BaseModel):
    password: str
    confirm_password: str


class ActivationStatus(BaseModel):
    state: str
    organization_id: Optional[str] = None
    member_status: Optional[str] = None
    is_setup_complete: Optional[bool] = None


class ActivationResult(BaseModel):
    state: str
    message: str
    replace_history: bool = False
    redirect_to: Optional[str] = None
