"""
WealthDesk - Bulk Import and Sync Schemas
"""

from typing import Any, Dict, List

from pydantic import Field

from app.schemas.common import CamelModel, RowError


class FailedEmail(CamelModel):
    email: str
    credentials: str


class EmailResults(CamelModel):
    sent: int = 0
    failed: int = 0
    failed_emails: List[FailedEmail] = Field(default_factory=list)


class ClientImportReport(CamelModel):
    """Outcome of a client batch. Always returned with HTTP 200."""
    success: bool
    message: str
    processed: int
    success_count: int
    skipped_count: int
    errors: List[RowError] = Field(default_factory=list)
    email_results: EmailResults = Field(default_factory=EmailResults)
    timestamp: str


class TransactionImportReport(CamelModel):
    success: bool
    message: str
    processed: int
    errors: List[RowError] = Field(default_factory=list)


class SyncClientsRequest(CamelModel):
    clients: List[Dict[str, Any]]


class SyncTransactionsRequest(CamelModel):
    transactions: List[Dict[str, Any]]


class SyncReport(CamelModel):
    message: str
    success_count: int
    skipped_count: int
    errors: List[RowError] = Field(default_factory=list)
    email_results: EmailResults = Field(default_factory=EmailResults)
    timestamp: str
