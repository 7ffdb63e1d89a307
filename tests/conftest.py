"""
WealthDesk - Test Configuration

Pytest fixtures and configuration.
"""

import os

# Settings are read at import time, so the test environment goes first
os.environ["DATABASE_URL_ASYNC"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_ENV"] = "testing"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["SYNC_API_TOKEN"] = "test-sync-token"
os.environ["MAIL_SERVER"] = ""
os.environ["SEED_ADMIN_EMAIL"] = ""

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_async_session, _enable_sqlite_savepoints
from app.models import Client, Transaction, User
from app.models.transaction import Indicator
from app.services.seed_service import seed_reference_data
from app.utils.scoping import SessionContext
from app.utils.security import create_access_token, get_password_hash
from main import app


ADMIN_ROLE_ID = 1
LEADER_ROLE_ID = 2
CLIENT_ROLE_ID = 3
PASSWORD = "Secret123!"

# One shared in-memory database per engine
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    echo=False,
    poolclass=StaticPool,
)
_enable_sqlite_savepoints(test_engine)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema with reference data for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        await seed_reference_data(session)
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# BUILDERS
# ===========================================

async def make_client(
    db: AsyncSession,
    code: str,
    name: Optional[str] = None,
    reference_id: Optional[int] = None,
    **fields,
) -> Client:
    record = Client(
        code=code,
        name=name or f"Client {code}",
        reference_id=reference_id,
        is_active=True,
        created_by_user="test",
        **fields,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def make_user(
    db: AsyncSession,
    email: str,
    role_id: int,
    client_id: Optional[int] = None,
    mobile: Optional[str] = None,
    is_active: bool = True,
) -> User:
    user = User(
        user_name=email.split("@")[0],
        password=get_password_hash(PASSWORD),
        email=email,
        mobile=mobile,
        role_id=role_id,
        client_id=client_id,
        is_active=is_active,
        created_by_user="test",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_transaction(
    db: AsyncSession,
    client_id: int,
    indicator: Indicator,
    amount: str,
    on: Optional[date] = None,
) -> Transaction:
    txn = Transaction(
        transaction_date=on or date.today(),
        client_id=client_id,
        indicator_id=int(indicator),
        amount=Decimal(amount),
        created_by_user="test",
    )
    db.add(txn)
    await db.commit()
    await db.refresh(txn)
    return txn


def session_for(user: User, role_name: str) -> SessionContext:
    return SessionContext(
        user_id=user.user_id,
        role_name=role_name,
        client_id=user.client_id,
        email=user.email,
        role_id=user.role_id,
    )


def auth_headers(user: User, role_name: str) -> dict:
    token = create_access_token(session_for(user, role_name).to_payload())
    return {"Authorization": f"Bearer {token}"}


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "admin@example.com", ADMIN_ROLE_ID)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return auth_headers(admin_user, "Admin")


@pytest_asyncio.fixture
async def team(db_session: AsyncSession) -> dict:
    """
    A leader L1 with one referred client C1, plus an unrelated client C2.
    C1 has a 50000 investment and a 2000 payout this month.
    """
    leader_client = await make_client(db_session, "L1", "Leader One")
    member = await make_client(db_session, "C1", "Client One", reference_id=leader_client.client_id)
    outsider = await make_client(db_session, "C2", "Client Two")

    leader = await make_user(db_session, "leader@example.com", LEADER_ROLE_ID, leader_client.client_id)
    member_user = await make_user(db_session, "c1@example.com", CLIENT_ROLE_ID, member.client_id)
    outsider_user = await make_user(db_session, "c2@example.com", CLIENT_ROLE_ID, outsider.client_id)

    await make_transaction(db_session, member.client_id, Indicator.INVESTMENT, "50000")
    await make_transaction(db_session, member.client_id, Indicator.PAYOUT, "2000")
    await make_transaction(db_session, outsider.client_id, Indicator.INVESTMENT, "7000")

    return {
        "leader_client": leader_client,
        "member": member,
        "outsider": outsider,
        "leader": leader,
        "member_user": member_user,
        "outsider_user": outsider_user,
        "leader_headers": auth_headers(leader, "Leader"),
        "member_headers": auth_headers(member_user, "Client"),
        "outsider_headers": auth_headers(outsider_user, "Client"),
    }


@pytest.fixture
def mail_outbox(monkeypatch) -> list:
    """Capture outgoing mail instead of talking to SMTP."""
    from app.services.email_service import EmailService

    sent = []

    async def fake_send(self, message):
        sent.append(message)
        return True

    monkeypatch.setattr(EmailService, "send_email", fake_send)
    return sent
