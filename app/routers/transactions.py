"""
WealthDesk - Transactions Router

Ledger queries, manual entries and spreadsheet uploads.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_session, require_admin
from app.schemas.bulk import TransactionImportReport
from app.schemas.transaction import TransactionCreateRequest, TransactionView
from app.services.bulk_import_service import BulkImportService
from app.services.master_service import actor_name
from app.services.transaction_service import TransactionService
from app.utils.scoping import SessionContext


router = APIRouter()


@router.get(
    "",
    response_model=List[TransactionView],
    summary="List transactions",
    description="Ledger entries visible to the caller, newest first.",
)
async def list_transactions(
    client_id: Optional[int] = Query(None, alias="clientId"),
    transaction_type: Optional[str] = Query(None, alias="type", description="investment, payout, withdrawal or closure"),
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await TransactionService(db).list_transactions(
        session,
        client_id=client_id,
        transaction_type=transaction_type,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
    )


@router.post(
    "",
    response_model=TransactionView,
    status_code=status.HTTP_201_CREATED,
    summary="Post a ledger entry",
)
async def create_transaction(
    request: TransactionCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await TransactionService(db).create_transaction(
        session,
        client_id=request.client_id,
        indicator_id=request.indicator_id,
        amount=request.amount,
        transaction_date=request.transaction_date,
        remark=request.remark,
    )


@router.post(
    "/upload",
    response_model=TransactionImportReport,
    summary="Upload ledger entries",
    description="Import one transaction type from an Excel, CSV or JSON file. Clients are matched by PAN.",
)
async def upload_transactions(
    file: UploadFile = File(..., description="Spreadsheet of transactions"),
    transaction_type: str = Form(..., alias="type"),
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    content = await file.read()
    return await BulkImportService(db).import_transactions(
        content,
        file.filename,
        transaction_type,
        actor_id=session.user_id,
        actor_label=actor_name(session),
    )


@router.get("/{transaction_id}", response_model=TransactionView, summary="Get transaction")
async def get_transaction(
    transaction_id: int,
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await TransactionService(db).get_transaction(session, transaction_id)
