"""
WealthDesk - Entity Store

Data access for every persisted collection. No business rules live here;
services and routers layer scoping and validation on top.

Every query is awaited through ``with_timeout`` so store failures and
timeouts surface as ``DataUnavailable``.
"""

from typing import Any, Iterable, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    Branch,
    Client,
    ContentCategory,
    ContentItem,
    IndicatorRecord,
    InvestmentRequest,
    Module,
    Offer,
    ReferralRequest,
    Role,
    RoleRight,
    Transaction,
    User,
    WithdrawalRequest,
)
from app.models.transaction import Indicator
from app.utils.timeouts import with_timeout

M = TypeVar("M")


class EntityStore:
    """Async accessors over the master, ledger and request tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # PRIMITIVES
    # ===========================================

    async def _all(self, stmt: Select, operation: str) -> List[Any]:
        result = await with_timeout(self.db.execute(stmt), operation)
        return list(result.scalars().all())

    async def _one(self, stmt: Select, operation: str) -> Optional[Any]:
        result = await with_timeout(self.db.execute(stmt), operation)
        return result.scalars().first()

    async def _get(self, model: Type[M], pk: Any, operation: str) -> Optional[M]:
        return await with_timeout(self.db.get(model, pk), operation)

    async def add(self, instance: M) -> M:
        """Stage ``instance`` and flush so generated keys are populated."""
        self.db.add(instance)
        await with_timeout(self.db.flush(), f"insert {type(instance).__name__}")
        return instance

    async def flush(self) -> None:
        await with_timeout(self.db.flush(), "flush")

    async def commit(self) -> None:
        await with_timeout(self.db.commit(), "commit")

    async def refresh(self, instance: Any) -> None:
        await with_timeout(self.db.refresh(instance), f"refresh {type(instance).__name__}")

    # ===========================================
    # ROLES / MODULES / RIGHTS
    # ===========================================

    async def list_roles(self) -> List[Role]:
        stmt = select(Role).where(Role.deleted_date.is_(None)).order_by(Role.role_id)
        return await self._all(stmt, "list roles")

    async def get_role(self, role_id: int) -> Optional[Role]:
        role = await self._get(Role, role_id, "get role")
        return role if role is not None and not role.is_deleted else None

    async def list_modules(self) -> List[Module]:
        stmt = select(Module).where(Module.deleted_date.is_(None)).order_by(Module.seq_no, Module.module_id)
        return await self._all(stmt, "list modules")

    async def list_role_rights(self, role_id: int) -> List[RoleRight]:
        stmt = select(RoleRight).where(RoleRight.role_id == role_id)
        return await self._all(stmt, "list role rights")

    async def list_indicators(self) -> List[IndicatorRecord]:
        stmt = select(IndicatorRecord).order_by(IndicatorRecord.indicator_id)
        return await self._all(stmt, "list indicators")

    # ===========================================
    # USERS
    # ===========================================

    async def list_users(self) -> List[User]:
        stmt = select(User).where(User.deleted_date.is_(None)).order_by(User.user_id)
        return await self._all(stmt, "list users")

    async def get_user(self, user_id: int) -> Optional[User]:
        user = await self._get(User, user_id, "get user")
        return user if user is not None and not user.is_deleted else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email, User.deleted_date.is_(None))
        return await self._one(stmt, "get user by email")

    async def get_user_by_mobile(self, mobile: str) -> Optional[User]:
        stmt = select(User).where(User.mobile == mobile, User.deleted_date.is_(None))
        return await self._one(stmt, "get user by mobile")

    async def list_users_for_clients(self, client_ids: Iterable[int]) -> List[User]:
        ids = list(client_ids)
        if not ids:
            return []
        stmt = select(User).where(User.client_id.in_(ids), User.deleted_date.is_(None))
        return await self._all(stmt, "list users for clients")

    # ===========================================
    # BRANCHES
    # ===========================================

    async def list_branches(self) -> List[Branch]:
        stmt = select(Branch).where(Branch.deleted_date.is_(None)).order_by(Branch.branch_id)
        return await self._all(stmt, "list branches")

    async def get_branch(self, branch_id: int) -> Optional[Branch]:
        branch = await self._get(Branch, branch_id, "get branch")
        return branch if branch is not None and not branch.is_deleted else None

    # ===========================================
    # CLIENTS
    # ===========================================

    async def list_clients(self) -> List[Client]:
        stmt = select(Client).where(Client.deleted_date.is_(None)).order_by(Client.client_id)
        return await self._all(stmt, "list clients")

    async def get_client(self, client_id: int) -> Optional[Client]:
        client = await self._get(Client, client_id, "get client")
        return client if client is not None and not client.is_deleted else None

    async def get_client_by_code(self, code: str) -> Optional[Client]:
        # Soft-deleted rows still own their code (unique constraint)
        stmt = select(Client).where(Client.code == code)
        return await self._one(stmt, "get client by code")

    async def get_client_by_pan(self, pan_no: str) -> Optional[Client]:
        stmt = select(Client).where(Client.pan_no == pan_no, Client.deleted_date.is_(None))
        return await self._one(stmt, "get client by PAN")

    # ===========================================
    # LEDGER
    # ===========================================

    async def list_transactions(
        self,
        indicator: Optional[Indicator] = None,
        client_ids: Optional[Sequence[int]] = None,
    ) -> List[Transaction]:
        stmt = select(Transaction)
        if indicator is not None:
            stmt = stmt.where(Transaction.indicator_id == int(indicator))
        if client_ids is not None:
            stmt = stmt.where(Transaction.client_id.in_(list(client_ids)))
        stmt = stmt.order_by(Transaction.transaction_date.desc(), Transaction.transaction_id.desc())
        return await self._all(stmt, "list transactions")

    async def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return await self._get(Transaction, transaction_id, "get transaction")

    # ===========================================
    # REQUESTS
    # ===========================================

    async def list_investment_requests(self) -> List[InvestmentRequest]:
        stmt = select(InvestmentRequest).order_by(InvestmentRequest.created_date.desc())
        return await self._all(stmt, "list investment requests")

    async def list_withdrawal_requests(self) -> List[WithdrawalRequest]:
        stmt = select(WithdrawalRequest).order_by(WithdrawalRequest.created_date.desc())
        return await self._all(stmt, "list withdrawal requests")

    async def list_referral_requests(self) -> List[ReferralRequest]:
        stmt = select(ReferralRequest).order_by(ReferralRequest.created_date.desc())
        return await self._all(stmt, "list referral requests")

    async def get_request(self, model: Type[M], request_id: int) -> Optional[M]:
        return await self._get(model, request_id, f"get {model.__name__}")

    # ===========================================
    # CONTENT
    # ===========================================

    async def delete(self, instance: Any) -> None:
        await with_timeout(self.db.delete(instance), f"delete {type(instance).__name__}")

    async def list_content_categories(self) -> List[ContentCategory]:
        stmt = select(ContentCategory).order_by(ContentCategory.name)
        return await self._all(stmt, "list content categories")

    async def get_content_category(self, category_id: str) -> Optional[ContentCategory]:
        return await self._get(ContentCategory, category_id, "get content category")

    async def list_content_items(self, published_only: bool = False) -> List[ContentItem]:
        stmt = select(ContentItem)
        if published_only:
            stmt = stmt.where(ContentItem.is_active.is_(True), ContentItem.is_published.is_(True))
            stmt = stmt.order_by(ContentItem.display_order, ContentItem.published_at.desc())
        else:
            stmt = stmt.order_by(ContentItem.display_order, ContentItem.created_at.desc())
        return await self._all(stmt, "list content items")

    async def get_content_item(self, content_id: str) -> Optional[ContentItem]:
        return await self._get(ContentItem, content_id, "get content item")

    async def list_offers(self, active_only: bool = False) -> List[Offer]:
        stmt = select(Offer)
        if active_only:
            stmt = stmt.where(Offer.is_active.is_(True))
        stmt = stmt.order_by(Offer.display_order, Offer.created_at.desc())
        return await self._all(stmt, "list offers")

    async def get_offer(self, offer_id: str) -> Optional[Offer]:
        return await self._get(Offer, offer_id, "get offer")
