"""
WealthDesk - Third-Party Sync Service

Machine-to-machine ingestion of clients and ledger entries. Row semantics
match the bulk importer: skip existing client codes, isolate failing rows.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Transaction
from app.models.transaction import Indicator
from app.schemas.bulk import SyncReport
from app.schemas.common import RowError
from app.services.bulk_import_service import (
    MAPPING_ERRORS,
    ROW_ERRORS,
    BulkImportService,
    excel_date,
    json_safe,
    optional_int,
    positive_amount,
    text,
)
from app.services.email_service import EmailService
from app.services.store import EntityStore
from app.utils.error_handling import AppException, MissingFieldException, ValidationException

logger = logging.getLogger(__name__)

SYNC_SOURCE = "sync-api"


def payload_to_client(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a camelCase sync record to client model fields.

    Raises:
        MissingFieldException: ``code`` is missing
    """
    code = text(item.get("code"))
    if not code:
        raise MissingFieldException("code", "Client code is required")

    return {
        "code": code,
        "name": text(item.get("name")) or "Unknown",
        "mobile": text(item.get("mobile")),
        "email": text(item.get("email")),
        "dob": excel_date(item.get("dob")),
        "pan_no": text(item.get("panNo")),
        "aadhaar_no": text(item.get("aadhaarNo")),
        "branch": text(item.get("branch")),
        "branch_id": optional_int(item.get("branchId")),
        "address": text(item.get("address")),
        "city": text(item.get("city")),
        "pincode": optional_int(item.get("pincode")),
        "reference_id": optional_int(item.get("referenceId")),
    }


def _sync_date(value: Any) -> date:
    if value:
        try:
            return date_parser.isoparse(str(value)).date()
        except (ValueError, OverflowError):
            logger.warning(f"Sync transaction date {value!r} unparseable; using today")
    return date.today()


class SyncService:
    """Service behind the /api/sync endpoints."""

    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.store = EntityStore(db)
        self.importer = BulkImportService(db, email_service)

    async def sync_clients(self, items: List[Dict[str, Any]]) -> SyncReport:
        records = []
        for position, item in enumerate(items, start=1):
            try:
                fields: Any = payload_to_client(item)
            except ValidationException as e:
                fields = e
            except MAPPING_ERRORS as e:
                fields = ValidationException(f"Invalid record: {e}")
            records.append((position, fields, item))

        inserted, skipped, errors, emails = await self.importer.import_client_records(
            records, actor_id=None, source=SYNC_SOURCE
        )
        logger.info(f"Client sync: {inserted} inserted, {skipped} skipped, {len(errors)} errors")
        return SyncReport(
            message="Client sync completed",
            success_count=inserted,
            skipped_count=skipped,
            errors=errors,
            email_results=emails,
            timestamp=datetime.utcnow().isoformat() + "Z",
        )

    async def sync_transactions(self, items: List[Dict[str, Any]]) -> SyncReport:
        inserted = 0
        errors: List[RowError] = []

        for position, item in enumerate(items, start=1):
            try:
                client_code = text(item.get("clientCode"))
                if not client_code:
                    raise MissingFieldException("clientCode", "Client code is required")
                indicator_name = text(item.get("indicatorName"))
                if not indicator_name:
                    raise MissingFieldException("indicatorName", "Indicator name is required")
                amount = positive_amount(item.get("amount"))

                client = await self.store.get_client_by_code(client_code)
                if client is None or client.is_deleted:
                    raise ValidationException(f"Client with code {client_code} not found")

                indicator = Indicator.from_label(indicator_name)
                if indicator is None:
                    raise ValidationException(
                        "Invalid indicator name. Must be one of: "
                        + ", ".join(ind.label.capitalize() for ind in Indicator),
                        field="indicatorName",
                    )

                async with self.db.begin_nested():
                    await self.store.add(Transaction(
                        transaction_date=_sync_date(item.get("transactionDate")),
                        client_id=client.client_id,
                        indicator_id=int(indicator),
                        amount=amount,
                        remark=(text(item.get("remark")) or "")[:50] or None,
                        created_by_user=SYNC_SOURCE,
                    ))
            except ROW_ERRORS as e:
                reason = e.message if isinstance(e, AppException) else str(e)
                errors.append(RowError(row=position, reason=reason, data=json_safe(item)))
                continue

            inserted += 1

        await self.store.commit()
        logger.info(f"Transaction sync: {inserted} inserted, {len(errors)} errors")
        return SyncReport(
            message="Transaction sync completed",
            success_count=inserted,
            skipped_count=0,
            errors=errors,
            timestamp=datetime.utcnow().isoformat() + "Z",
        )

    async def list_clients(self) -> Dict[str, Any]:
        clients = await self.store.list_clients()
        return {
            "clients": [
                {
                    "clientId": c.client_id,
                    "code": c.code,
                    "name": c.name,
                    "mobile": c.mobile,
                    "email": c.email,
                    "createdDate": c.created_date.isoformat() if c.created_date else None,
                }
                for c in clients
            ],
            "total": len(clients),
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }

    async def list_transactions(
        self,
        client_code: Optional[str] = None,
        indicator_name: Optional[str] = None,
        limit: int = 100,
    ) -> Dict[str, Any]:
        """
        Raises:
            ValidationException: ``indicator_name`` names no indicator
        """
        indicator = None
        if indicator_name:
            indicator = Indicator.from_label(indicator_name)
            if indicator is None:
                raise ValidationException(f"Unknown indicator '{indicator_name}'", field="indicatorName")

        client_ids = None
        if client_code:
            client = await self.store.get_client_by_code(client_code)
            client_ids = [client.client_id] if client and not client.is_deleted else []

        transactions = await self.store.list_transactions(
            indicator=indicator,
            client_ids=client_ids,
        )
        transactions = transactions[:limit]

        clients = {c.client_id: c for c in await self.store.list_clients()}
        rows = []
        for txn in transactions:
            client = clients.get(txn.client_id)
            indicator = txn.indicator
            rows.append({
                "transactionId": txn.transaction_id,
                "transactionDate": txn.transaction_date.isoformat(),
                "clientCode": client.code if client else "Unknown",
                "clientName": client.name if client else "Unknown",
                "indicatorName": indicator.label.capitalize() if indicator else "Unknown",
                "amount": float(txn.amount),
                "remark": txn.remark,
                "createdDate": txn.created_date.isoformat() if txn.created_date else None,
            })

        return {
            "transactions": rows,
            "total": len(rows),
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
