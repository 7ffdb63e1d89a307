"""
WealthDesk - Master Data Models

Roles, modules, role rights, branches and transaction indicators.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import AuditMixin


class Role(Base, AuditMixin):
    """Named role. Admin, Leader and Client are seeded at startup."""

    __tablename__ = "mst_role"

    role_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Role(role_id={self.role_id}, name={self.name!r})>"


class Module(Base, AuditMixin):
    """Navigable application module that role rights are granted on."""

    __tablename__ = "mst_module"

    module_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent_module_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    table_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    seq_no: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class RoleRight(Base):
    """Per-module access flags for one role."""

    __tablename__ = "mst_role_right"

    role_right_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_role.role_id"), nullable=False, index=True
    )
    module_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mst_module.module_id"), nullable=False
    )
    access_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    access_write: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    access_update: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    access_delete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    access_export: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Branch(Base, AuditMixin):
    """Office that groups clients for branch performance rollups."""

    __tablename__ = "mst_branch"

    branch_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    pincode: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class IndicatorRecord(Base, AuditMixin):
    """Lookup row for a transaction kind (see ``app.models.transaction.Indicator``)."""

    __tablename__ = "mst_indicator"

    indicator_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
