from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from pharmatrack.domain.auth.models import UserRole, PrincipalKind


class LoginRequest(BaseModel):
    """Schema for username/password login"""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)


class WalletLoginRequest(BaseModel):
    address: str = Field(..., description="0x followed by 40 hex characters")


class RegisterRequest(BaseModel):
    """Schema for self registration; administrators cannot register"""
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    organization: Optional[str] = Field(None, max_length=200)
    role: UserRole = UserRole.CUSTOMER


class PrincipalResponse(BaseModel):
    """The caller as the API sees it, whichever way they logged in"""
    kind: PrincipalKind
    subject: str
    username: str
    email: str
    role: UserRole
    name: str
    organization: str = ""
    permissions: List[str] = []


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: PrincipalResponse


class UserResponse(BaseModel):
    """Schema for user response data"""
    id: str
    username: str
    email: str
    name: str
    organization: Optional[str] = None
    role: UserRole
    is_active: bool
    is_demo: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DemoCredential(BaseModel):
    username: str
    password: str
    role: str
    description: str


class SuccessResponse(BaseModel):
    success: bool = True
    message: str
