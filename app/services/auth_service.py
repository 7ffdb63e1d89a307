"""
WealthDesk - Authentication Service

Business logic for login, signup, session refresh and password reset.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import Client, Role, User
from app.services.email_service import EmailService
from app.services.store import EntityStore
from app.utils.error_handling import (
    AccountDisabledException,
    InvalidCredentialsException,
    NotFoundException,
    ValidationException,
)
from app.utils.scoping import SessionContext
from app.utils.security import (
    create_access_token,
    create_password_reset_token,
    get_password_hash,
    verify_password,
    verify_password_reset_token,
)

logger = logging.getLogger(__name__)


@dataclass
class AccountView:
    """User with its linked client and role, as loaded for a session."""
    user: User
    client: Optional[Client]
    role: Optional[Role]
    session: Dict[str, Any]


@dataclass
class LoginResult(AccountView):
    token: str = ""


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)

    async def build_module_access(self, role_id: int) -> Dict[str, Dict[str, Any]]:
        """
        Join the role's rights to the module table.

        Returns:
            Map of module id (as a string key) to its access flags
        """
        rights = await self.store.list_role_rights(role_id)
        modules = {m.module_id: m for m in await self.store.list_modules()}

        access: Dict[str, Dict[str, Any]] = {}
        for right in rights:
            module = modules.get(right.module_id)
            if module is None:
                continue
            access[str(module.module_id)] = {
                "moduleId": module.module_id,
                "moduleName": module.name,
                "accessRead": right.access_read,
                "accessWrite": right.access_write,
                "accessUpdate": right.access_update,
                "accessDelete": right.access_delete,
                "accessExport": right.access_export,
            }
        return access

    async def _load_account(self, user: User) -> tuple:
        client = await self.store.get_client(user.client_id) if user.client_id else None
        role = await self.store.get_role(user.role_id)
        return client, role

    async def authenticate(self, identifier: str, password: str) -> User:
        """
        Authenticate with an email address or mobile number.

        Raises:
            InvalidCredentialsException: unknown identifier or wrong password
            AccountDisabledException: the user has been deactivated
        """
        identifier = identifier.strip()
        user = await self.store.get_user_by_email(identifier)
        if user is None:
            user = await self.store.get_user_by_mobile(identifier)

        if user is None or not verify_password(password, user.password):
            logger.warning("Failed login attempt")
            raise InvalidCredentialsException()

        if not user.is_active:
            raise AccountDisabledException()

        return user

    async def login(self, identifier: str, password: str) -> LoginResult:
        """Authenticate and issue a session token."""
        user = await self.authenticate(identifier, password)
        client, role = await self._load_account(user)

        session = SessionContext(
            user_id=user.user_id,
            email=user.email,
            role_id=user.role_id,
            role_name=role.name if role else "",
            client_id=user.client_id,
            login_time=datetime.utcnow().isoformat() + "Z",
            module_access=await self.build_module_access(user.role_id),
        )
        payload = session.to_payload()
        token = create_access_token(payload)

        logger.info(f"User {user.user_id} logged in as {payload['roleName'] or 'unknown role'}")
        return LoginResult(user=user, client=client, role=role, session=payload, token=token)

    async def current_account(self, session: SessionContext) -> AccountView:
        """
        Reload the session user with fresh client, role and module access.

        Raises:
            NotFoundException: the user no longer exists
        """
        user = await self.store.get_user(session.user_id)
        if user is None:
            raise NotFoundException("User", session.user_id)

        client, role = await self._load_account(user)
        payload = session.to_payload()
        payload["moduleAccess"] = await self.build_module_access(user.role_id)
        payload["lastAccessed"] = datetime.utcnow().isoformat() + "Z"
        return AccountView(user=user, client=client, role=role, session=payload)

    async def signup(
        self,
        user_name: str,
        password: str,
        email: Optional[str] = None,
        mobile: Optional[str] = None,
        role_id: Optional[int] = None,
        client_id: Optional[int] = None,
    ) -> User:
        """
        Create a user account.

        Raises:
            ValidationException: email or mobile is already registered
        """
        if email and await self.store.get_user_by_email(email):
            raise ValidationException("User with this email already exists", field="email")
        if mobile and await self.store.get_user_by_mobile(mobile):
            raise ValidationException("User with this mobile already exists", field="mobile")

        role_id = role_id or settings.default_client_role_id
        if await self.store.get_role(role_id) is None:
            raise ValidationException(f"Role {role_id} does not exist", field="roleId")

        user = User(
            user_name=user_name,
            password=get_password_hash(password),
            email=email,
            mobile=mobile,
            role_id=role_id,
            client_id=client_id,
            is_active=True,
            created_by_user="signup",
        )
        await self.store.add(user)
        await self.store.commit()
        await self.store.refresh(user)

        logger.info(f"Created user {user.user_id} via signup")
        return user

    async def forgot_password(self, email: str) -> Dict[str, Optional[str]]:
        """
        Issue a password reset token and email it.

        When mail delivery is unavailable the token and link are returned
        to the caller instead.

        Raises:
            NotFoundException: no user has this email
        """
        user = await self.store.get_user_by_email(email)
        if user is None:
            raise NotFoundException("User", message="User with this email not found")

        token = create_password_reset_token(email)
        reset_url = f"{settings.client_url}/reset-password?token={token}"

        sent = await EmailService().send_password_reset(
            to_email=email,
            name=user.user_name,
            reset_url=reset_url,
        )
        if sent:
            return {"message": "Password reset link has been sent to your email"}

        logger.warning(f"Password reset email not delivered for user {user.user_id}")
        return {
            "message": "Email delivery is unavailable; use the reset link below",
            "reset_token": token,
            "reset_url": reset_url,
        }

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password using a reset token.

        Raises:
            ValidationException: token invalid, expired or of the wrong type
            NotFoundException: the token's user no longer exists
        """
        payload = verify_password_reset_token(token)
        if payload is None:
            raise ValidationException("Invalid or expired reset token", field="token")

        user = await self.store.get_user_by_email(payload["email"])
        if user is None:
            raise NotFoundException("User", message="User not found")

        user.password = get_password_hash(new_password)
        user.mark_modified(user.user_id, user.user_name)
        await self.store.commit()
        logger.info(f"Password reset for user {user.user_id}")
