"""
WealthDesk - Transaction Schemas

Pydantic schemas for ledger entries and their display shape.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class TransactionCreateRequest(CamelModel):
    """Schema for posting a ledger entry."""
    client_id: int
    indicator_id: int = Field(..., ge=1, le=4, description="1 Investment, 2 Payout, 3 Withdrawal, 4 Closure")
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    transaction_date: Optional[date] = None
    remark: Optional[str] = Field(None, max_length=50)


class TransactionClientUser(CamelModel):
    first_name: str
    last_name: str
    email: Optional[str] = None
    mobile: Optional[str] = None


class TransactionClient(CamelModel):
    id: str
    client_code: str
    user: TransactionClientUser


class TransactionView(CamelModel):
    """Ledger entry as presented to the dashboard."""
    id: str
    type: str
    amount: float
    status: str = "completed"
    description: str = ""
    processed_at: date
    created_at: Optional[str] = None
    client: Optional[TransactionClient] = None
