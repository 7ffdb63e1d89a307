"""
WealthDesk - Sync API Router

Machine-to-machine ingestion of clients and ledger entries from the
upstream back office. Authenticated with a shared bearer token rather
than a user session.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import verify_sync_token
from app.schemas.bulk import SyncClientsRequest, SyncReport, SyncTransactionsRequest
from app.services.sync_service import SyncService


router = APIRouter(dependencies=[Depends(verify_sync_token)])


@router.post("/clients", response_model=SyncReport, summary="Push clients")
async def sync_clients(
    request: SyncClientsRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """Existing codes are skipped; new clients also get a login."""
    return await SyncService(db).sync_clients(request.clients)


@router.get("/clients", summary="Pull clients")
async def list_sync_clients(
    db: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    return await SyncService(db).list_clients()


@router.post("/transactions", response_model=SyncReport, summary="Push ledger entries")
async def sync_transactions(
    request: SyncTransactionsRequest,
    db: AsyncSession = Depends(get_async_session),
):
    return await SyncService(db).sync_transactions(request.transactions)


@router.get("/transactions", summary="Pull ledger entries")
async def list_sync_transactions(
    client_code: Optional[str] = Query(None, alias="clientCode"),
    indicator_name: Optional[str] = Query(None, alias="indicatorName"),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    return await SyncService(db).list_transactions(client_code, indicator_name, limit)
