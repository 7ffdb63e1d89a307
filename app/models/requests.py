"""
WealthDesk - Client Request Models

Investment, withdrawal and referral requests raised by clients.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import CreatedAuditMixin


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvestmentRequest(Base, CreatedAuditMixin):
    __tablename__ = "client_investment_request"

    client_investment_request_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_client.client_id"), nullable=False, index=True
    )
    investment_date: Mapped[date] = mapped_column(Date, nullable=False)
    investment_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    investment_remark: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    transaction_id: Mapped[str] = mapped_column(String(100), nullable=False)
    transaction_no: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.PENDING.value, nullable=False, index=True
    )

    @property
    def request_id(self) -> int:
        return self.client_investment_request_id


class WithdrawalRequest(Base, CreatedAuditMixin):
    __tablename__ = "client_withdrawal_request"

    client_withdrawal_request_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_client.client_id"), nullable=False, index=True
    )
    withdrawal_date: Mapped[date] = mapped_column(Date, nullable=False)
    withdrawal_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    withdrawal_remark: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.PENDING.value, nullable=False, index=True
    )

    @property
    def request_id(self) -> int:
        return self.client_withdrawal_request_id


class ReferralRequest(Base, CreatedAuditMixin):
    """A client (the referrer, ``client_id``) introducing a prospective client."""

    __tablename__ = "client_referral_request"

    client_referral_request_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_client.client_id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    mobile: Mapped[str] = mapped_column(String(20), nullable=False)

    @property
    def request_id(self) -> int:
        return self.client_referral_request_id
