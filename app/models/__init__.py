"""
WealthDesk - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import AuditMixin, CreatedAuditMixin
from app.models.master import Role, Module, RoleRight, Branch, IndicatorRecord
from app.models.client import Client
from app.models.user import User
from app.models.transaction import Transaction, Indicator
from app.models.requests import (
    InvestmentRequest,
    WithdrawalRequest,
    ReferralRequest,
    RequestStatus,
)
from app.models.content import ContentCategory, ContentItem, Offer

__all__ = [
    "AuditMixin",
    "CreatedAuditMixin",
    "Role",
    "Module",
    "RoleRight",
    "Branch",
    "IndicatorRecord",
    "Client",
    "User",
    "Transaction",
    "Indicator",
    "InvestmentRequest",
    "WithdrawalRequest",
    "ReferralRequest",
    "RequestStatus",
    "ContentCategory",
    "ContentItem",
    "Offer",
]
