"""
WealthDesk - Bulk Operations Router

Client onboarding from uploaded spreadsheets.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import require_admin
from app.schemas.bulk import ClientImportReport
from app.services.bulk_import_service import BulkImportService
from app.utils.scoping import SessionContext


router = APIRouter()


@router.post(
    "/bulk-upload",
    response_model=ClientImportReport,
    summary="Bulk import clients",
    description=(
        "Import clients from an .xlsx, .xls, .csv or .json file. Rows whose code "
        "already exists are skipped; failed rows are reported and do not stop the batch."
    ),
)
async def bulk_upload_clients(
    file: UploadFile = File(..., description="Client spreadsheet"),
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    """Import clients and create their logins."""
    content = await file.read()
    return await BulkImportService(db).import_clients(content, file.filename, actor_id=session.user_id)
