"""
WealthDesk - Routers Package

FastAPI route handlers.

Routers:
- auth: Login, signup, session refresh, password reset
- master: Roles, users, branches, clients and lookups
- requests: Investment, withdrawal and referral requests
- transactions: Ledger queries, entries and uploads
- bulk_operations: Client spreadsheet import
- sync: Token-authenticated machine ingestion
- dashboard: Role-aware dashboard widgets
- reports: Scoped reports and analytics
- content: Content items and offers
"""

from app.routers import (
    auth,
    master,
    requests,
    transactions,
    bulk_operations,
    sync,
    dashboard,
    reports,
    content,
)

__all__ = [
    "auth",
    "master",
    "requests",
    "transactions",
    "bulk_operations",
    "sync",
    "dashboard",
    "reports",
    "content",
]
