"""
WealthDesk - Base Model

Mixins shared by the master and ledger tables.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class CreatedAuditMixin:
    """Mixin for append-only rows: records who created the row and when."""

    created_by_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_by_user: Mapped[str] = mapped_column(String(50), default="system", nullable=False)
    created_date: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )


class AuditMixin(CreatedAuditMixin):
    """Mixin that adds modification and soft-delete audit fields."""

    modified_by_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    modified_by_user: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    modified_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_by_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    deleted_by_user: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    deleted_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_date is not None

    def mark_modified(self, actor_id: Optional[int], actor_name: Optional[str]) -> None:
        self.modified_by_id = actor_id
        self.modified_by_user = actor_name
        self.modified_date = datetime.utcnow()

    def mark_deleted(self, actor_id: Optional[int], actor_name: Optional[str]) -> None:
        self.deleted_by_id = actor_id
        self.deleted_by_user = actor_name
        self.deleted_date = datetime.utcnow()
