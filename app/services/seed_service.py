"""
WealthDesk - Reference Data Seeding

Creates the fixed roles, transaction indicators, modules and role rights
the application depends on. Safe to run on every startup: each table is
only seeded while it is empty.
"""

import logging
from typing import Dict, Iterable, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import IndicatorRecord, Module, Role, RoleRight, User
from app.models.transaction import Indicator
from app.utils.security import get_password_hash

logger = logging.getLogger(__name__)

SEED_ACTOR = "system"

# Inserted in this order so a fresh database numbers them 1, 2, 3;
# the client role id is also settings.default_client_role_id
DEFAULT_ROLES: Tuple[str, ...] = ("Admin", "Leader", "Client")

# (name, table_name, icon)
DEFAULT_MODULES: Tuple[Tuple[str, str, str], ...] = (
    ("Dashboard", "", "dashboard"),
    ("Users", "mst_user", "users"),
    ("Clients", "mst_client", "clients"),
    ("Transactions", "transaction", "transactions"),
    ("Requests", "client_investment_request", "requests"),
    ("Reports", "", "reports"),
    ("Content", "content_items", "content"),
)

# Per-role rights: module name -> (read, write, update, delete, export)
FULL = (True, True, True, True, True)
READ_EXPORT = (True, False, False, False, True)
READ_WRITE = (True, True, False, False, False)
READ_ONLY = (True, False, False, False, False)

ROLE_RIGHTS: Dict[str, Dict[str, Tuple[bool, ...]]] = {
    "Admin": {name: FULL for name, _, _ in DEFAULT_MODULES},
    "Leader": {
        "Dashboard": READ_ONLY,
        "Clients": READ_EXPORT,
        "Transactions": READ_EXPORT,
        "Requests": READ_WRITE,
        "Reports": READ_EXPORT,
    },
    "Client": {
        "Dashboard": READ_ONLY,
        "Transactions": READ_ONLY,
        "Requests": READ_WRITE,
    },
}


async def _is_empty(db: AsyncSession, model) -> bool:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one() == 0


def _rights_rows(role_ids: Dict[str, int], module_ids: Dict[str, int]) -> Iterable[RoleRight]:
    for role_name, grants in ROLE_RIGHTS.items():
        if role_name not in role_ids:
            continue
        for module_name, (read, write, update, delete, export) in grants.items():
            yield RoleRight(
                role_id=role_ids[role_name],
                module_id=module_ids[module_name],
                access_read=read,
                access_write=write,
                access_update=update,
                access_delete=delete,
                access_export=export,
            )


async def seed_reference_data(db: AsyncSession) -> None:
    """Insert any missing reference data and commit."""
    if await _is_empty(db, Role):
        for name in DEFAULT_ROLES:
            db.add(Role(name=name, is_active=True, created_by_user=SEED_ACTOR))
            await db.flush()
        logger.info("Seeded roles")

    if await _is_empty(db, IndicatorRecord):
        db.add_all(
            IndicatorRecord(
                indicator_id=int(ind),
                name=ind.label.capitalize(),
                is_active=True,
                created_by_user=SEED_ACTOR,
            )
            for ind in Indicator
        )
        logger.info("Seeded transaction indicators")

    if await _is_empty(db, Module):
        db.add_all(
            Module(
                name=name,
                table_name=table or None,
                icon=icon,
                seq_no=seq,
                is_active=True,
                created_by_user=SEED_ACTOR,
            )
            for seq, (name, table, icon) in enumerate(DEFAULT_MODULES, start=1)
        )
        await db.flush()

        modules = (await db.execute(select(Module))).scalars().all()
        roles = (await db.execute(select(Role))).scalars().all()
        db.add_all(_rights_rows(
            {r.name: r.role_id for r in roles},
            {m.name: m.module_id for m in modules},
        ))
        logger.info("Seeded modules and role rights")

    if settings.seed_admin_email and settings.seed_admin_password:
        existing = await db.execute(select(User).where(User.email == settings.seed_admin_email))
        admin_role = (await db.execute(select(Role).where(Role.name == DEFAULT_ROLES[0]))).scalars().first()
        if existing.scalars().first() is None and admin_role is not None:
            db.add(User(
                user_name="admin",
                password=get_password_hash(settings.seed_admin_password),
                email=settings.seed_admin_email,
                role_id=admin_role.role_id,
                is_active=True,
                created_by_user=SEED_ACTOR,
            ))
            logger.info("Created initial admin user")

    await db.commit()
