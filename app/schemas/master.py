"""
WealthDesk - Master Data Schemas

Pydantic schemas for roles, users, branches, clients and lookups.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel


# ===========================================
# ROLES
# ===========================================

class RoleCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True


class RoleUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None


class RoleResponse(CamelModel):
    role_id: int
    name: str
    is_active: bool


# ===========================================
# USERS
# ===========================================

class UserCreateRequest(CamelModel):
    user_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=100)
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=20)
    role_id: int
    client_id: Optional[int] = None
    is_active: bool = True


class UserUpdateRequest(CamelModel):
    user_name: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=6, max_length=100)
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=20)
    role_id: Optional[int] = None
    client_id: Optional[int] = None
    is_active: Optional[bool] = None


class UserResponse(CamelModel):
    """User without credentials."""
    user_id: int
    user_name: str
    email: Optional[str] = None
    mobile: Optional[str] = None
    role_id: int
    client_id: Optional[int] = None
    is_active: bool
    created_date: Optional[datetime] = None


# ===========================================
# BRANCHES
# ===========================================

class BranchCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=50)
    pincode: Optional[int] = None
    is_active: bool = True


class BranchUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=50)
    pincode: Optional[int] = None
    is_active: Optional[bool] = None


class BranchResponse(CamelModel):
    branch_id: int
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[int] = None
    is_active: bool


# ===========================================
# CLIENTS
# ===========================================

class ClientCreateRequest(CamelModel):
    """Schema for creating a client."""
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    mobile: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    dob: Optional[date] = None

    # KYC
    pan_no: Optional[str] = Field(None, max_length=10)
    aadhaar_no: Optional[str] = Field(None, max_length=15)

    branch: Optional[str] = Field(None, max_length=20)
    branch_id: Optional[int] = None
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=50)
    pincode: Optional[int] = None
    reference_id: Optional[int] = None
    is_active: bool = True

    @field_validator("code", "name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ClientUpdateRequest(CamelModel):
    """Schema for updating a client. The code is immutable."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    mobile: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    dob: Optional[date] = None
    pan_no: Optional[str] = Field(None, max_length=10)
    aadhaar_no: Optional[str] = Field(None, max_length=15)
    branch: Optional[str] = Field(None, max_length=20)
    branch_id: Optional[int] = None
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=50)
    pincode: Optional[int] = None
    reference_id: Optional[int] = None
    is_active: Optional[bool] = None


class ClientResponse(CamelModel):
    client_id: int
    code: str
    name: str
    mobile: Optional[str] = None
    email: Optional[str] = None
    dob: Optional[date] = None
    pan_no: Optional[str] = None
    aadhaar_no: Optional[str] = None
    branch: Optional[str] = None
    branch_id: Optional[int] = None
    address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[int] = None
    reference_id: Optional[int] = None
    is_active: bool
    created_date: Optional[datetime] = None


class ClientListResponse(CamelModel):
    clients: List[ClientResponse]
    total: int


# ===========================================
# LOOKUPS
# ===========================================

class IndicatorResponse(CamelModel):
    indicator_id: int
    name: str
    is_active: bool


class ModuleResponse(CamelModel):
    module_id: int
    name: str
    parent_module_id: Optional[int] = None
    table_name: Optional[str] = None
    icon: Optional[str] = None
    seq_no: Optional[int] = None
    is_active: bool


class RoleRightResponse(CamelModel):
    role_right_id: int
    role_id: int
    module_id: int
    access_read: bool
    access_write: bool
    access_update: bool
    access_delete: bool
    access_export: bool
