"""
WealthDesk - User Model

Login credentials. A user optionally links to the client record it acts for.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import AuditMixin


class User(Base, AuditMixin):
    """
    Application user.

    ``password`` holds a bcrypt hash. One user per client by convention.
    """

    __tablename__ = "mst_user"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    mobile: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    mobile_verified: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    email_verified: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_role.role_id"), nullable=False
    )
    client_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("mst_client.client_id"), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(user_id={self.user_id}, email={self.email!r})>"
