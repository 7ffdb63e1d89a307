"""
WealthDesk - Client Request Service

Investment, withdrawal and referral requests raised by clients.
"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Type, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Client, InvestmentRequest, ReferralRequest, WithdrawalRequest
from app.models.requests import RequestStatus
from app.schemas.common import CamelModel
from app.schemas.requests import (
    InvestmentRequestResponse,
    ReferralRequestResponse,
    RequestClient,
    WithdrawalRequestResponse,
)
from app.services.email_service import EmailService
from app.services.master_service import actor_name
from app.services.store import EntityStore
from app.utils.error_handling import NotFoundException, ValidationException
from app.utils.scoping import RoleKind, SessionContext, scope

logger = logging.getLogger(__name__)

ADMIN_CLIENT_CODE = "ADMIN_001"

StatusRequest = Union[InvestmentRequest, WithdrawalRequest]

STATUS_MODELS: Dict[str, Type[StatusRequest]] = {
    "investment": InvestmentRequest,
    "withdrawal": WithdrawalRequest,
}


def _present(schema: Type[CamelModel], record, clients: Dict[int, Client]):
    client = clients.get(record.client_id)
    summary = RequestClient(id=client.client_id, name=client.name, code=client.code) if client else None
    return schema.model_validate(record).model_copy(update={"client": summary})


class RequestService:
    """Service for client-initiated requests."""

    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.store = EntityStore(db)
        self.email_service = email_service or EmailService()

    async def _client_for(self, session: SessionContext) -> Client:
        """
        Resolve the client a new request is raised for.

        Admins without a client record act through a shared admin client,
        created on first use.

        Raises:
            ValidationException: a non-admin session has no client
        """
        if session.client_id is not None:
            client = await self.store.get_client(session.client_id)
            if client is None:
                raise ValidationException("Client associated with this user no longer exists")
            return client

        if session.role is not RoleKind.ADMIN:
            raise ValidationException("No client associated with this user")

        client = await self.store.get_client_by_code(ADMIN_CLIENT_CODE)
        if client is None:
            client = Client(
                code=ADMIN_CLIENT_CODE,
                name="Admin User",
                email=session.email,
                is_active=True,
                created_by_id=session.user_id,
                created_by_user=actor_name(session),
            )
            await self.store.add(client)
            logger.info(f"Created shared admin client {ADMIN_CLIENT_CODE}")
        return client

    async def _clients_by_id(self) -> Dict[int, Client]:
        return {c.client_id: c for c in await self.store.list_clients()}

    # ===========================================
    # INVESTMENT
    # ===========================================

    async def list_investment_requests(self, session: SessionContext) -> List[InvestmentRequestResponse]:
        clients = await self._clients_by_id()
        visible = scope(session, await self.store.list_investment_requests(), clients=clients.values())
        return [_present(InvestmentRequestResponse, r, clients) for r in visible]

    async def create_investment_request(
        self,
        session: SessionContext,
        amount: Decimal,
        remark: Optional[str] = None,
        investment_date: Optional[date] = None,
        transaction_id: Optional[str] = None,
        transaction_no: Optional[str] = None,
    ) -> InvestmentRequestResponse:
        """Record an investment request and email a provisional receipt."""
        client = await self._client_for(session)
        stamp = int(time.time() * 1000)

        request = InvestmentRequest(
            client_id=client.client_id,
            investment_date=investment_date or date.today(),
            investment_amount=amount,
            investment_remark=remark,
            transaction_id=transaction_id or f"TXN{stamp}",
            transaction_no=transaction_no or f"INV{stamp}",
            status=RequestStatus.PENDING.value,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(request)
        await self.store.commit()
        await self.store.refresh(request)

        if client.email:
            sent = await self.email_service.send_investment_receipt(
                to_email=client.email,
                name=client.name,
                amount=amount,
                remark=remark,
                transaction_no=request.transaction_no,
            )
            if not sent:
                logger.warning(f"Receipt for {request.transaction_no} was not delivered")

        return _present(InvestmentRequestResponse, request, {client.client_id: client})

    # ===========================================
    # WITHDRAWAL
    # ===========================================

    async def list_withdrawal_requests(self, session: SessionContext) -> List[WithdrawalRequestResponse]:
        clients = await self._clients_by_id()
        visible = scope(session, await self.store.list_withdrawal_requests(), clients=clients.values())
        return [_present(WithdrawalRequestResponse, r, clients) for r in visible]

    async def create_withdrawal_request(
        self,
        session: SessionContext,
        amount: Decimal,
        reason: Optional[str] = None,
        withdrawal_date: Optional[date] = None,
    ) -> WithdrawalRequestResponse:
        client = await self._client_for(session)
        request = WithdrawalRequest(
            client_id=client.client_id,
            withdrawal_date=withdrawal_date or date.today(),
            withdrawal_amount=amount,
            withdrawal_remark=reason,
            status=RequestStatus.PENDING.value,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(request)
        await self.store.commit()
        await self.store.refresh(request)
        return _present(WithdrawalRequestResponse, request, {client.client_id: client})

    # ===========================================
    # REFERRAL
    # ===========================================

    async def list_referral_requests(self, session: SessionContext) -> List[ReferralRequestResponse]:
        clients = await self._clients_by_id()
        visible = scope(session, await self.store.list_referral_requests(), clients=clients.values())
        return [_present(ReferralRequestResponse, r, clients) for r in visible]

    async def create_referral_request(
        self,
        session: SessionContext,
        referee_name: str,
        referee_phone: str,
    ) -> ReferralRequestResponse:
        client = await self._client_for(session)
        request = ReferralRequest(
            client_id=client.client_id,
            name=referee_name,
            mobile=referee_phone,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(request)
        await self.store.commit()
        await self.store.refresh(request)
        return _present(ReferralRequestResponse, request, {client.client_id: client})

    # ===========================================
    # REVIEW
    # ===========================================

    async def update_status(
        self,
        session: SessionContext,
        kind: str,
        request_id: int,
        status: RequestStatus,
    ) -> Union[InvestmentRequestResponse, WithdrawalRequestResponse]:
        """
        Move an investment or withdrawal request between review states.

        Raises:
            ValidationException: ``kind`` has no review state
            NotFoundException: unknown request id
        """
        model = STATUS_MODELS.get(kind)
        if model is None:
            raise ValidationException(
                f"Requests of kind '{kind}' have no status. Use one of: {', '.join(STATUS_MODELS)}",
                field="kind",
            )

        request = await self.store.get_request(model, request_id)
        if request is None:
            raise NotFoundException(f"{kind.capitalize()} request", request_id)

        request.status = status.value
        await self.store.commit()
        await self.store.refresh(request)
        logger.info(f"{kind} request {request_id} set to {status.value} by {session.user_id}")

        schema = InvestmentRequestResponse if model is InvestmentRequest else WithdrawalRequestResponse
        return _present(schema, request, await self._clients_by_id())
