"""
WealthDesk - Dashboard API Router

Role-aware dashboard widgets.

Access:
- Admin: every widget, over the whole book
- Leader: scoped widgets for their team, plus top performers
- Client: scoped widgets for their own account
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_session, require_admin, require_roles
from app.services.dashboard_service import DashboardService
from app.utils.scoping import RoleKind, SessionContext


router = APIRouter()


# ===========================================
# SCOPED WIDGETS
# ===========================================

@router.get("/stats", summary="Headline numbers for the caller's role")
async def get_stats(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    """
    Admins see book-wide totals, leaders see their team and commission,
    clients see their own investments, payouts and referrals.
    """
    return await DashboardService(db).stats(session)


@router.get("/portfolio-distribution", summary="Asset split of approved investments")
async def get_portfolio_distribution(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).portfolio_distribution(session)


@router.get("/recent-transactions", summary="Latest requests and ledger entries")
async def get_recent_transactions(
    limit: int = Query(10, ge=1, le=100),
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).recent_activity(session, limit)


@router.get("/monthly-trends", summary="Investments and payouts per month")
async def get_monthly_trends(
    months: int = Query(6, ge=1, le=24),
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).monthly_trends(session, months)


@router.get("/investment-performance", summary="Returns over a trailing period")
async def get_investment_performance(
    period: str = Query("1M", description="1M, 3M, 6M or 1Y"),
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    return await DashboardService(db).investment_performance(session, period)


@router.get("/top-performers", summary="Clients with the highest recent payouts")
async def get_top_performers(
    limit: int = Query(5, ge=1, le=50),
    session: SessionContext = Depends(require_roles(RoleKind.ADMIN, RoleKind.LEADER)),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).top_performers(session, limit)


# ===========================================
# ADMIN WIDGETS
# ===========================================

@router.get("/client-demographics", summary="Clients by age bracket")
async def get_client_demographics(
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).client_demographics()


@router.get("/branch-performance", summary="Assets and clients per branch")
async def get_branch_performance(
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).branch_performance()


@router.get("/kyc-status", summary="KYC completion across clients")
async def get_kyc_status(
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).kyc_status()


@router.get("/revenue-breakdown", summary="Fee income estimate by source")
async def get_revenue_breakdown(
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
) -> List[Dict[str, Any]]:
    return await DashboardService(db).revenue_breakdown()
