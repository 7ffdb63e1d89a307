"""
WealthDesk - Authentication Router

API endpoints for login, signup, session refresh and password reset.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_async_session
from app.dependencies import get_current_session
from app.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SessionResponse,
    SignupRequest,
)
from app.schemas.common import MessageResponse
from app.schemas.master import ClientResponse, RoleResponse, UserResponse
from app.services.auth_service import AccountView, AuthService
from app.utils.scoping import SessionContext


router = APIRouter()


def _account_fields(account: AccountView) -> dict:
    return {
        "user": UserResponse.model_validate(account.user),
        "client": ClientResponse.model_validate(account.client) if account.client else None,
        "role": RoleResponse.model_validate(account.role) if account.role else None,
        "session": account.session,
    }


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Authenticate with an email address or mobile number and password.",
)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
):
    """Login and receive a session token (also set as the access_token cookie)."""
    result = await AuthService(db).login(request.email, request.password)

    response.set_cookie(
        key="access_token",
        value=result.token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    return LoginResponse(**_account_fields(result), token=result.token)


@router.post("/logout", response_model=MessageResponse, summary="Logout")
async def logout(response: Response):
    """Clear the session cookie. Bearer tokens simply expire."""
    response.delete_cookie("access_token")
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_async_session),
):
    user = await AuthService(db).signup(
        user_name=request.user_name,
        password=request.password,
        email=request.email,
        mobile=request.mobile,
        role_id=request.role_id,
        client_id=request.client_id,
    )
    return UserResponse.model_validate(user)


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current session",
    description="Reload the session user with fresh client, role and module access.",
)
async def get_session(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    account = await AuthService(db).current_account(session)
    return SessionResponse(**_account_fields(account))


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    summary="Request password reset",
)
async def forgot_password(
    request: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_async_session),
):
    result = await AuthService(db).forgot_password(request.email)
    return ForgotPasswordResponse(**result)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password",
)
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_async_session),
):
    await AuthService(db).reset_password(request.token, request.password)
    return MessageResponse(message="Password has been reset successfully")
