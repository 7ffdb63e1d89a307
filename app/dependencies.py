"""
WealthDesk - FastAPI Dependencies

Shared dependencies for authentication, role checks and the sync API.

This module provides dependency injection for:
1. Session resolution from the bearer token (or the access_token cookie)
2. Role-based access control
3. Machine-to-machine sync token verification
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.utils.error_handling import (
    AuthenticationException,
    AuthorizationException,
    TokenExpiredException,
    TokenInvalidException,
)
from app.utils.scoping import RoleKind, SessionContext
from app.utils.security import access_token_expired, verify_access_token

logger = logging.getLogger(__name__)


# HTTP Bearer token security
security = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    # Try Bearer header first
    if credentials:
        return credentials.credentials

    # Fallback to cookie
    token = request.cookies.get("access_token")
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token or None


async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionContext:
    """
    Resolve the session attached to the request.

    Token can be provided via:
    1. Authorization: Bearer <token> header
    2. access_token cookie

    Raises:
        AuthenticationException: no token was presented
        TokenExpiredException: the session token is past its expiry
        TokenInvalidException: the token failed signature or type checks
    """
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationException("Not authenticated")

    payload = verify_access_token(token)
    if not payload or "userId" not in payload:
        if access_token_expired(token):
            raise TokenExpiredException()
        logger.warning(f"Rejected session token on {request.url.path}")
        raise TokenInvalidException()

    return SessionContext.from_payload(payload)


def require_roles(*allowed_roles: RoleKind):
    """
    Require the session role to be one of ``allowed_roles``.

    Usage:
        @router.get("/admin-only")
        async def admin_endpoint(
            session: SessionContext = Depends(require_roles(RoleKind.ADMIN))
        ):
            ...
    """
    async def role_checker(
        session: SessionContext = Depends(get_current_session),
    ) -> SessionContext:
        if session.role not in allowed_roles:
            raise AuthorizationException(
                message="Access denied",
                required_role=", ".join(r.value for r in allowed_roles),
            )
        return session

    return role_checker


def require_admin():
    """Shortcut for admin-only routes."""
    return require_roles(RoleKind.ADMIN)


async def verify_sync_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """
    Check the shared bearer token used by the third-party sync API.

    Raises:
        AuthenticationException: header missing, or token does not match
    """
    if credentials is None:
        raise AuthenticationException("Missing or invalid authorization header")

    expected = settings.sync_api_token
    if not expected or not hmac.compare_digest(credentials.credentials, expected):
        logger.warning("Sync API called with an invalid token")
        raise TokenInvalidException("Invalid API token")
