"""
WealthDesk - Client Model

Client master record. ``reference_id`` names the referring client (the leader).
"""

from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import AuditMixin


class Client(Base, AuditMixin):
    """
    Client identity and KYC record.

    ``reference_id`` is a one-level referral tag, not a hierarchy; writes
    reject self references and references to unknown clients.
    """

    __tablename__ = "mst_client"

    client_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Contact
    mobile: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    dob: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # KYC
    pan_no: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, index=True)
    aadhaar_no: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)

    # Branch
    branch: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    branch_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("mst_branch.branch_id"), nullable=True, index=True
    )

    # Address
    address: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    pincode: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Referral
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def kyc_state(self) -> str:
        """verified (PAN and Aadhaar), pending (one of them) or rejected (neither)."""
        present = sum(1 for value in (self.pan_no, self.aadhaar_no) if value)
        return {2: "verified", 1: "pending"}.get(present, "rejected")

    def __repr__(self) -> str:
        return f"<Client(client_id={self.client_id}, code={self.code!r})>"
