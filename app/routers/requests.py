"""
WealthDesk - Client Requests Router

Investment, withdrawal and referral requests, plus admin review.
"""

from typing import List, Literal, Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_session, require_admin
from app.schemas.requests import (
    InvestmentRequestCreate,
    InvestmentRequestResponse,
    ReferralRequestCreate,
    ReferralRequestResponse,
    RequestStatusUpdate,
    WithdrawalRequestCreate,
    WithdrawalRequestResponse,
)
from app.services.request_service import RequestService
from app.utils.scoping import SessionContext


router = APIRouter()


@router.get("/investment", response_model=List[InvestmentRequestResponse], summary="List investment requests")
async def list_investment_requests(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await RequestService(db).list_investment_requests(session)


@router.post(
    "/investment",
    response_model=InvestmentRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Raise an investment request",
    description="A receipt is emailed to the client when mail is configured.",
)
async def create_investment_request(
    request: InvestmentRequestCreate,
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await RequestService(db).create_investment_request(
        session,
        amount=request.amount,
        remark=request.investment_remark,
        investment_date=request.investment_date,
        transaction_id=request.transaction_id,
        transaction_no=request.transaction_no,
    )


@router.get("/withdrawal", response_model=List[WithdrawalRequestResponse], summary="List withdrawal requests")
async def list_withdrawal_requests(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await RequestService(db).list_withdrawal_requests(session)


@router.post(
    "/withdrawal",
    response_model=WithdrawalRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Raise a withdrawal request",
)
async def create_withdrawal_request(
    request: WithdrawalRequestCreate,
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await RequestService(db).create_withdrawal_request(
        session,
        amount=request.amount,
        reason=request.reason,
        withdrawal_date=request.withdrawal_date,
    )


@router.get("/referral", response_model=List[ReferralRequestResponse], summary="List referrals")
async def list_referral_requests(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await RequestService(db).list_referral_requests(session)


@router.post(
    "/referral",
    response_model=ReferralRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Refer a prospect",
)
async def create_referral_request(
    request: ReferralRequestCreate,
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await RequestService(db).create_referral_request(
        session,
        referee_name=request.referee_name,
        referee_phone=request.referee_phone,
    )


@router.patch(
    "/{kind}/{request_id}/status",
    response_model=Union[InvestmentRequestResponse, WithdrawalRequestResponse],
    summary="Approve or reject a request",
)
async def update_request_status(
    kind: Literal["investment", "withdrawal"],
    request_id: int,
    request: RequestStatusUpdate,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await RequestService(db).update_status(session, kind, request_id, request.status)
