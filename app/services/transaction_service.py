"""
WealthDesk - Transaction Service

Scoped reads over the ledger and admin postings.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Client, Transaction
from app.models.transaction import Indicator
from app.schemas.transaction import TransactionClient, TransactionClientUser, TransactionView
from app.services.master_service import actor_name
from app.services.store import EntityStore
from app.utils.error_handling import NotFoundException, ValidationException
from app.utils.scoping import SessionContext, scope

logger = logging.getLogger(__name__)

LEDGER_STATUS = "completed"


def to_view(txn: Transaction, client: Optional[Client]) -> TransactionView:
    """Display shape used by the dashboard tables."""
    indicator = txn.indicator
    view_client = None
    if client is not None:
        first, _, last = (client.name or "").partition(" ")
        view_client = TransactionClient(
            id=str(client.client_id),
            client_code=client.code,
            user=TransactionClientUser(
                first_name=first,
                last_name=last,
                email=client.email,
                mobile=client.mobile,
            ),
        )

    return TransactionView(
        id=str(txn.transaction_id),
        type=indicator.label if indicator else "unknown",
        amount=float(txn.amount),
        status=LEDGER_STATUS,
        description=txn.remark or "",
        processed_at=txn.transaction_date,
        created_at=txn.created_date.isoformat() if txn.created_date else None,
        client=view_client,
    )


class TransactionService:
    """Service for ledger operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)

    async def list_transactions(
        self,
        session: SessionContext,
        client_id: Optional[int] = None,
        transaction_type: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[TransactionView]:
        """
        Scoped ledger entries, newest first.

        Raises:
            ValidationException: unknown transaction type
        """
        indicator = None
        if transaction_type:
            indicator = Indicator.from_label(transaction_type)
            if indicator is None:
                raise ValidationException(f"Unknown transaction type '{transaction_type}'", field="type")

        clients = await self.store.list_clients()
        transactions = scope(
            session,
            await self.store.list_transactions(
                indicator=indicator,
                client_ids=[client_id] if client_id is not None else None,
            ),
            clients=clients,
        )

        if status and status.lower() != LEDGER_STATUS:
            return []
        if start_date:
            transactions = [t for t in transactions if t.transaction_date >= start_date]
        if end_date:
            transactions = [t for t in transactions if t.transaction_date <= end_date]

        by_id: Dict[int, Client] = {c.client_id: c for c in clients}
        return [to_view(t, by_id.get(t.client_id)) for t in transactions]

    async def get_transaction(self, session: SessionContext, transaction_id: int) -> TransactionView:
        """
        Raises:
            NotFoundException: unknown id, or the entry is outside the session's scope
        """
        txn = await self.store.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundException("Transaction", transaction_id)

        clients = await self.store.list_clients()
        if not scope(session, [txn], clients=clients):
            raise NotFoundException("Transaction", transaction_id)

        client = next((c for c in clients if c.client_id == txn.client_id), None)
        return to_view(txn, client)

    async def create_transaction(
        self,
        session: SessionContext,
        client_id: int,
        indicator_id: int,
        amount: Decimal,
        transaction_date: Optional[date] = None,
        remark: Optional[str] = None,
    ) -> TransactionView:
        client = await self.store.get_client(client_id)
        if client is None:
            raise ValidationException(f"Client {client_id} does not exist", field="clientId")

        txn = Transaction(
            transaction_date=transaction_date or date.today(),
            client_id=client_id,
            indicator_id=indicator_id,
            amount=amount,
            remark=remark,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(txn)
        await self.store.commit()
        await self.store.refresh(txn)

        logger.info(f"Ledger entry {txn.transaction_id} posted for client {client.code}")
        return to_view(txn, client)
