"""
WealthDesk - Dashboard Service

Loads collections from the store, scopes them to the session and hands
them to the aggregation functions.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import Client
from app.models.requests import RequestStatus
from app.models.transaction import Indicator
from app.services import aggregation
from app.services.store import EntityStore
from app.utils.error_handling import AuthorizationException
from app.utils.scoping import RoleKind, SessionContext, scope

logger = logging.getLogger(__name__)


class ScopedData:
    """Role-scoped snapshot of the collections one request needs."""

    def __init__(self, session: SessionContext, all_clients: List[Client]):
        self.session = session
        self.all_clients = all_clients
        self.clients = scope(session, all_clients, clients=all_clients)

    def filter(self, collection: List[Any]) -> List[Any]:
        return scope(self.session, collection, clients=self.all_clients)


class DashboardService:
    """Service for dashboard and report aggregation."""

    def __init__(self, db: AsyncSession, today: Optional[date] = None):
        self.db = db
        self.store = EntityStore(db)
        self.today = today or date.today()

    async def _scoped(self, session: SessionContext) -> ScopedData:
        return ScopedData(session, await self.store.list_clients())

    async def _transactions(self, data: ScopedData) -> List[Any]:
        return data.filter(await self.store.list_transactions())

    # ===========================================
    # STATS
    # ===========================================

    async def stats(self, session: SessionContext) -> Dict[str, Any]:
        """
        Role-specific headline numbers.

        Raises:
            AuthorizationException: the session role is not recognised
        """
        role = session.role
        if role is None:
            raise AuthorizationException("Unknown role")

        data = await self._scoped(session)
        transactions = await self._transactions(data)

        if role is RoleKind.ADMIN:
            withdrawals = await self.store.list_withdrawal_requests()
            return aggregation.admin_stats(data.clients, transactions, withdrawals, self.today)

        referrals = data.filter(await self.store.list_referral_requests())
        if role is RoleKind.LEADER:
            # A leader without a client id has an empty scope, so every figure is zero
            return aggregation.leader_stats(
                session.client_id,
                data.clients,
                transactions,
                referrals,
                self.today,
                settings.leader_commission_rate,
            )

        withdrawals = data.filter(await self.store.list_withdrawal_requests())
        return aggregation.client_stats(transactions, referrals, withdrawals)

    # ===========================================
    # CHARTS
    # ===========================================

    async def portfolio_distribution(self, session: SessionContext) -> List[Dict[str, Any]]:
        data = await self._scoped(session)
        approved = [
            i for i in data.filter(await self.store.list_investment_requests())
            if i.status == RequestStatus.APPROVED.value
        ]
        total = aggregation.sum_amounts(approved, lambda i: i.investment_amount)
        return aggregation.portfolio_distribution(total)

    async def client_demographics(self) -> List[Dict[str, Any]]:
        return aggregation.client_demographics(await self.store.list_clients(), self.today)

    async def branch_performance(self) -> List[Dict[str, Any]]:
        return aggregation.branch_performance(
            await self.store.list_branches(),
            await self.store.list_clients(),
            await self.store.list_investment_requests(),
            self.today,
        )

    async def recent_activity(self, session: SessionContext, limit: int = 10) -> List[Dict[str, Any]]:
        data = await self._scoped(session)
        return aggregation.recent_activity(
            data.filter(await self.store.list_investment_requests()),
            data.filter(await self.store.list_withdrawal_requests()),
            await self._transactions(data),
            limit=limit,
            client_names={c.client_id: c.name for c in data.all_clients},
        )

    async def monthly_trends(self, session: SessionContext, months: int = 6) -> List[Dict[str, Any]]:
        data = await self._scoped(session)
        return aggregation.monthly_trends(await self._transactions(data), self.today, months)

    async def investment_performance(self, session: SessionContext, period: str) -> Dict[str, Any]:
        data = await self._scoped(session)
        return aggregation.investment_performance(await self._transactions(data), period, self.today)

    async def kyc_status(self) -> List[Dict[str, Any]]:
        return aggregation.kyc_status(await self.store.list_clients())

    async def revenue_breakdown(self) -> List[Dict[str, Any]]:
        return aggregation.revenue_breakdown(await self.store.list_transactions())

    async def top_performers(self, session: SessionContext, limit: int = 5) -> List[Dict[str, Any]]:
        data = await self._scoped(session)
        payouts = data.filter(await self.store.list_transactions(indicator=Indicator.PAYOUT))
        return aggregation.top_performers(data.clients, payouts, self.today, limit)

    # ===========================================
    # REPORTS
    # ===========================================

    async def role_based_report(self, session: SessionContext) -> Dict[str, Any]:
        data = await self._scoped(session)
        report = aggregation.role_based_report(
            data.clients,
            await self._transactions(data),
            data.filter(await self.store.list_investment_requests()),
            data.filter(await self.store.list_withdrawal_requests()),
        )
        report["role"] = session.role.value if session.role else None
        return report

    async def analytics(self, session: SessionContext) -> Dict[str, Any]:
        data = await self._scoped(session)
        return aggregation.analytics(await self._transactions(data), data.clients, self.today)
