"""
WealthDesk - Reports Router
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_session
from app.services.dashboard_service import DashboardService
from app.utils.scoping import SessionContext


router = APIRouter()


@router.get(
    "/role-based",
    summary="Per-client position report",
    description="One row per visible client with invested, paid out, pending requests and net position.",
)
async def get_role_based_report(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    return await DashboardService(db).role_based_report(session)


@router.get("/analytics", summary="Trends, top clients and type distribution")
async def get_analytics(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    return await DashboardService(db).analytics(session)
