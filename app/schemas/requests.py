"""
WealthDesk - Client Request Schemas

Investment, withdrawal and referral requests.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from app.models.requests import RequestStatus
from app.schemas.common import CamelModel


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class InvestmentRequestCreate(CamelModel):
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    investment_remark: Optional[str] = Field(None, max_length=100)
    investment_date: Optional[date] = None
    transaction_id: Optional[str] = Field(None, max_length=100)
    transaction_no: Optional[str] = Field(None, max_length=100)


class WithdrawalRequestCreate(CamelModel):
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    reason: Optional[str] = Field(None, max_length=500)
    withdrawal_date: Optional[date] = None


class ReferralRequestCreate(CamelModel):
    referee_name: str = Field(..., min_length=1, max_length=100)
    referee_phone: str = Field(..., min_length=1, max_length=20)

    @field_validator("referee_name", "referee_phone")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class RequestStatusUpdate(CamelModel):
    status: RequestStatus


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class RequestClient(CamelModel):
    id: int
    name: str
    code: str


class InvestmentRequestResponse(CamelModel):
    client_investment_request_id: int
    client_id: int
    investment_date: date
    investment_amount: float
    investment_remark: Optional[str] = None
    transaction_id: str
    transaction_no: str
    status: str
    created_date: datetime
    client: Optional[RequestClient] = None


class WithdrawalRequestResponse(CamelModel):
    client_withdrawal_request_id: int
    client_id: int
    withdrawal_date: date
    withdrawal_amount: float
    withdrawal_remark: Optional[str] = None
    status: str
    created_date: datetime
    client: Optional[RequestClient] = None


class ReferralRequestResponse(CamelModel):
    client_referral_request_id: int
    client_id: int
    name: str
    mobile: str
    created_date: datetime
    client: Optional[RequestClient] = None
