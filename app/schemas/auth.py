"""
WealthDesk - Authentication Schemas

Pydantic schemas for authentication requests and responses.
"""

from typing import Any, Dict, Optional

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.master import ClientResponse, RoleResponse, UserResponse


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class LoginRequest(CamelModel):
    """Login with an email address or a mobile number."""
    email: str = Field(..., min_length=1, description="Email address or mobile number")
    password: str = Field(..., min_length=1)


class SignupRequest(CamelModel):
    """Self-service account creation."""
    user_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=100)
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=20)
    role_id: int = Field(3, ge=1)
    client_id: Optional[int] = None

    @field_validator("user_name")
    @classmethod
    def strip_user_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("userName is required")
        return v


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=100)


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class LoginResponse(CamelModel):
    user: UserResponse
    client: Optional[ClientResponse] = None
    role: Optional[RoleResponse] = None
    session: Dict[str, Any]
    token: str
    message: str = "Login successful"
    user_type: str = "master"


class SessionResponse(CamelModel):
    user: UserResponse
    client: Optional[ClientResponse] = None
    role: Optional[RoleResponse] = None
    session: Dict[str, Any]


class ForgotPasswordResponse(CamelModel):
    message: str
    reset_token: Optional[str] = None
    reset_url: Optional[str] = None
