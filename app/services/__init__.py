"""
WealthDesk - Services Package

Business logic services.
"""

from app.services.store import EntityStore
from app.services.auth_service import AuthService
from app.services.master_service import MasterService
from app.services.transaction_service import TransactionService
from app.services.request_service import RequestService
from app.services.dashboard_service import DashboardService
from app.services.bulk_import_service import BulkImportService
from app.services.sync_service import SyncService
from app.services.content_service import ContentService
from app.services.email_service import EmailService
from app.services.seed_service import seed_reference_data

__all__ = [
    "EntityStore",
    "AuthService",
    "MasterService",
    "TransactionService",
    "RequestService",
    "DashboardService",
    "BulkImportService",
    "SyncService",
    "ContentService",
    "EmailService",
    "seed_reference_data",
]
