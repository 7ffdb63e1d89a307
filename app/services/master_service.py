"""
WealthDesk - Master Data Service

Business logic for roles, users, branches and clients.
Client reads are scoped to the session; writes are admin-only at the router.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Branch, Client, Role, User
from app.services.store import EntityStore
from app.utils.error_handling import (
    DuplicateEntryException,
    NotFoundException,
    ValidationException,
)
from app.utils.scoping import SessionContext, scope, visible_client_ids
from app.utils.security import get_password_hash

logger = logging.getLogger(__name__)


def actor_name(session: SessionContext) -> str:
    """Audit label for the acting user."""
    return session.email or f"user:{session.user_id}"


def _apply(instance: Any, changes: Dict[str, Any]) -> None:
    for key, value in changes.items():
        if hasattr(instance, key):
            setattr(instance, key, value)


class MasterService:
    """Service for master data operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)

    # ===========================================
    # ROLES
    # ===========================================

    async def list_roles(self) -> List[Role]:
        return await self.store.list_roles()

    async def get_role(self, role_id: int) -> Role:
        role = await self.store.get_role(role_id)
        if role is None:
            raise NotFoundException("Role", role_id)
        return role

    async def create_role(self, session: SessionContext, name: str, is_active: bool = True) -> Role:
        role = Role(
            name=name.strip(),
            is_active=is_active,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(role)
        await self.store.commit()
        await self.store.refresh(role)
        return role

    async def update_role(self, session: SessionContext, role_id: int, changes: Dict[str, Any]) -> Role:
        role = await self.get_role(role_id)
        _apply(role, changes)
        role.mark_modified(session.user_id, actor_name(session))
        await self.store.commit()
        await self.store.refresh(role)
        return role

    async def delete_role(self, session: SessionContext, role_id: int) -> None:
        role = await self.get_role(role_id)
        role.mark_deleted(session.user_id, actor_name(session))
        await self.store.commit()

    # ===========================================
    # USERS
    # ===========================================

    async def list_users(self) -> List[User]:
        return await self.store.list_users()

    async def get_user(self, user_id: int) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    async def _check_user_links(self, role_id: Optional[int], client_id: Optional[int]) -> None:
        if role_id is not None and await self.store.get_role(role_id) is None:
            raise ValidationException(f"Role {role_id} does not exist", field="roleId")
        if client_id is not None and await self.store.get_client(client_id) is None:
            raise ValidationException(f"Client {client_id} does not exist", field="clientId")

    async def _check_user_unique(
        self,
        email: Optional[str],
        mobile: Optional[str],
        exclude_user_id: Optional[int] = None,
    ) -> None:
        if email:
            existing = await self.store.get_user_by_email(email)
            if existing and existing.user_id != exclude_user_id:
                raise DuplicateEntryException("User", "email", email)
        if mobile:
            existing = await self.store.get_user_by_mobile(mobile)
            if existing and existing.user_id != exclude_user_id:
                raise DuplicateEntryException("User", "mobile", mobile)

    async def create_user(self, session: SessionContext, data: Dict[str, Any]) -> User:
        await self._check_user_links(data.get("role_id"), data.get("client_id"))
        await self._check_user_unique(data.get("email"), data.get("mobile"))

        data = dict(data)
        data["password"] = get_password_hash(data["password"])
        user = User(
            **data,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(user)
        await self.store.commit()
        await self.store.refresh(user)
        logger.info(f"User {user.user_id} created by {session.user_id}")
        return user

    async def update_user(self, session: SessionContext, user_id: int, changes: Dict[str, Any]) -> User:
        user = await self.get_user(user_id)
        await self._check_user_links(changes.get("role_id"), changes.get("client_id"))
        await self._check_user_unique(changes.get("email"), changes.get("mobile"), exclude_user_id=user_id)

        changes = dict(changes)
        if changes.get("password"):
            changes["password"] = get_password_hash(changes["password"])
        else:
            changes.pop("password", None)

        _apply(user, changes)
        user.mark_modified(session.user_id, actor_name(session))
        await self.store.commit()
        await self.store.refresh(user)
        return user

    async def delete_user(self, session: SessionContext, user_id: int) -> None:
        user = await self.get_user(user_id)
        user.mark_deleted(session.user_id, actor_name(session))
        user.is_active = False
        await self.store.commit()

    # ===========================================
    # BRANCHES
    # ===========================================

    async def list_branches(self) -> List[Branch]:
        return await self.store.list_branches()

    async def get_branch(self, branch_id: int) -> Branch:
        branch = await self.store.get_branch(branch_id)
        if branch is None:
            raise NotFoundException("Branch", branch_id)
        return branch

    async def create_branch(self, session: SessionContext, data: Dict[str, Any]) -> Branch:
        branch = Branch(
            **data,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(branch)
        await self.store.commit()
        await self.store.refresh(branch)
        return branch

    async def update_branch(self, session: SessionContext, branch_id: int, changes: Dict[str, Any]) -> Branch:
        branch = await self.get_branch(branch_id)
        _apply(branch, changes)
        branch.mark_modified(session.user_id, actor_name(session))
        await self.store.commit()
        await self.store.refresh(branch)
        return branch

    async def delete_branch(self, session: SessionContext, branch_id: int) -> None:
        branch = await self.get_branch(branch_id)
        branch.mark_deleted(session.user_id, actor_name(session))
        await self.store.commit()

    # ===========================================
    # CLIENTS
    # ===========================================

    async def list_clients(self, session: SessionContext) -> List[Client]:
        """Clients visible to the session."""
        clients = await self.store.list_clients()
        return scope(session, clients, clients=clients)

    async def get_client(self, session: SessionContext, client_id: int) -> Client:
        """
        Get one client the session may see.

        Raises:
            NotFoundException: unknown, deleted or outside the session's scope
        """
        client = await self.store.get_client(client_id)
        if client is None:
            raise NotFoundException("Client", client_id)

        allowed = visible_client_ids(session, await self.store.list_clients())
        if allowed is not None and client.client_id not in allowed:
            raise NotFoundException("Client", client_id)
        return client

    async def _check_reference(self, reference_id: Optional[int], client_id: Optional[int] = None) -> None:
        """The referral tag must name another existing client."""
        if reference_id is None:
            return
        if client_id is not None and reference_id == client_id:
            raise ValidationException("A client cannot reference itself", field="referenceId")
        if await self.store.get_client(reference_id) is None:
            raise ValidationException(
                f"Referenced client {reference_id} does not exist",
                field="referenceId",
            )

    async def _check_branch(self, branch_id: Optional[int]) -> None:
        if branch_id is not None and await self.store.get_branch(branch_id) is None:
            raise ValidationException(f"Branch {branch_id} does not exist", field="branchId")

    async def create_client(self, session: SessionContext, data: Dict[str, Any]) -> Client:
        """
        Create a client.

        Raises:
            DuplicateEntryException: the code is already taken
            ValidationException: bad referral tag or branch
        """
        if await self.store.get_client_by_code(data["code"]):
            raise DuplicateEntryException("Client", "code", data["code"])
        await self._check_reference(data.get("reference_id"))
        await self._check_branch(data.get("branch_id"))

        client = Client(
            **data,
            created_by_id=session.user_id,
            created_by_user=actor_name(session),
        )
        await self.store.add(client)
        await self.store.commit()
        await self.store.refresh(client)
        logger.info(f"Client {client.code} created by {session.user_id}")
        return client

    async def update_client(self, session: SessionContext, client_id: int, changes: Dict[str, Any]) -> Client:
        client = await self.store.get_client(client_id)
        if client is None:
            raise NotFoundException("Client", client_id)
        if "reference_id" in changes:
            await self._check_reference(changes["reference_id"], client_id)
        await self._check_branch(changes.get("branch_id"))

        _apply(client, changes)
        client.mark_modified(session.user_id, actor_name(session))
        await self.store.commit()
        await self.store.refresh(client)
        return client

    async def delete_client(self, session: SessionContext, client_id: int) -> None:
        """Soft delete; the row keeps its code."""
        client = await self.store.get_client(client_id)
        if client is None:
            raise NotFoundException("Client", client_id)
        client.mark_deleted(session.user_id, actor_name(session))
        client.is_active = False
        await self.store.commit()
        logger.info(f"Client {client.code} deleted by {session.user_id}")
