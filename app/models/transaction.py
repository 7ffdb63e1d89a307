"""
WealthDesk - Transaction Ledger Model

Append-only ledger entries keyed by client and indicator.
"""

from datetime import date
from decimal import Decimal
from enum import IntEnum
from typing import Optional

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import CreatedAuditMixin


class Indicator(IntEnum):
    """Transaction kinds; values match the ``mst_indicator`` seed rows."""
    INVESTMENT = 1
    PAYOUT = 2
    WITHDRAWAL = 3
    CLOSURE = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["Indicator"]:
        """Map ``investment`` / ``Payout`` / ... to a member; unknown labels give None."""
        if not label:
            return None
        return cls.__members__.get(label.strip().upper())


class Transaction(Base, CreatedAuditMixin):
    """One ledger movement. Never updated after insert."""

    __tablename__ = "transaction"

    transaction_id: Mapped[int] = mapped_column(
        # BIGINT is not autoincrementing on SQLite; INTEGER is used there
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_client.client_id"), nullable=False, index=True
    )
    indicator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_indicator.indicator_id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    remark: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    guiid: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    @property
    def indicator(self) -> Optional[Indicator]:
        try:
            return Indicator(self.indicator_id)
        except ValueError:
            return None

    def __repr__(self) -> str:
        return (
            f"<Transaction(transaction_id={self.transaction_id}, "
            f"client_id={self.client_id}, indicator_id={self.indicator_id})>"
        )
