"""
WealthDesk - Master Data Router

CRUD endpoints for roles, users, branches and clients, plus lookups.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_session, require_admin
from app.schemas.common import MessageResponse
from app.schemas.master import (
    BranchCreateRequest,
    BranchResponse,
    BranchUpdateRequest,
    ClientCreateRequest,
    ClientListResponse,
    ClientResponse,
    ClientUpdateRequest,
    IndicatorResponse,
    ModuleResponse,
    RoleCreateRequest,
    RoleResponse,
    RoleRightResponse,
    RoleUpdateRequest,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from app.services.master_service import MasterService
from app.services.store import EntityStore
from app.utils.scoping import SessionContext


router = APIRouter()


# ===========================================
# ROLES
# ===========================================

@router.get("/roles", response_model=List[RoleResponse], summary="List roles")
async def list_roles(
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).list_roles()


@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED, summary="Create role")
async def create_role(
    request: RoleCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).create_role(session, request.name, request.is_active)


@router.get("/roles/{role_id}", response_model=RoleResponse, summary="Get role")
async def get_role(
    role_id: int,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).get_role(role_id)


@router.put("/roles/{role_id}", response_model=RoleResponse, summary="Update role")
async def update_role(
    role_id: int,
    request: RoleUpdateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).update_role(session, role_id, request.model_dump(exclude_unset=True))


@router.delete("/roles/{role_id}", response_model=MessageResponse, summary="Delete role")
async def delete_role(
    role_id: int,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    await MasterService(db).delete_role(session, role_id)
    return MessageResponse(message="Role deleted successfully")


# ===========================================
# USERS
# ===========================================

@router.get("/users", response_model=List[UserResponse], summary="List users")
async def list_users(
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).list_users()


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="Create user")
async def create_user(
    request: UserCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).create_user(session, request.model_dump())


@router.get("/users/{user_id}", response_model=UserResponse, summary="Get user")
async def get_user(
    user_id: int,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).get_user(user_id)


@router.put("/users/{user_id}", response_model=UserResponse, summary="Update user")
async def update_user(
    user_id: int,
    request: UserUpdateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).update_user(session, user_id, request.model_dump(exclude_unset=True))


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Delete user")
async def delete_user(
    user_id: int,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    await MasterService(db).delete_user(session, user_id)
    return MessageResponse(message="User deleted successfully")


# ===========================================
# BRANCHES
# ===========================================

@router.get("/branches", response_model=List[BranchResponse], summary="List branches")
async def list_branches(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).list_branches()


@router.post("/branches", response_model=BranchResponse, status_code=status.HTTP_201_CREATED, summary="Create branch")
async def create_branch(
    request: BranchCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).create_branch(session, request.model_dump())


@router.get("/branches/{branch_id}", response_model=BranchResponse, summary="Get branch")
async def get_branch(
    branch_id: int,
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).get_branch(branch_id)


@router.put("/branches/{branch_id}", response_model=BranchResponse, summary="Update branch")
async def update_branch(
    branch_id: int,
    request: BranchUpdateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).update_branch(session, branch_id, request.model_dump(exclude_unset=True))


@router.delete("/branches/{branch_id}", response_model=MessageResponse, summary="Delete branch")
async def delete_branch(
    branch_id: int,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    await MasterService(db).delete_branch(session, branch_id)
    return MessageResponse(message="Branch deleted successfully")


# ===========================================
# CLIENTS
# ===========================================

@router.get(
    "/clients",
    response_model=ClientListResponse,
    summary="List clients",
    description="Clients visible to the caller: all for admins, the team for leaders, self for clients.",
)
async def list_clients(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    clients = await MasterService(db).list_clients(session)
    return ClientListResponse(
        clients=[ClientResponse.model_validate(c) for c in clients],
        total=len(clients),
    )


@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED, summary="Create client")
async def create_client(
    request: ClientCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).create_client(session, request.model_dump())


@router.get("/clients/{client_id}", response_model=ClientResponse, summary="Get client")
async def get_client(
    client_id: int,
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).get_client(session, client_id)


@router.put("/clients/{client_id}", response_model=ClientResponse, summary="Update client")
async def update_client(
    client_id: int,
    request: ClientUpdateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await MasterService(db).update_client(session, client_id, request.model_dump(exclude_unset=True))


@router.delete("/clients/{client_id}", response_model=MessageResponse, summary="Delete client")
async def delete_client(
    client_id: int,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    await MasterService(db).delete_client(session, client_id)
    return MessageResponse(message="Client deleted successfully")


# ===========================================
# LOOKUPS
# ===========================================

@router.get("/indicators", response_model=List[IndicatorResponse], summary="Transaction indicators")
async def list_indicators(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await EntityStore(db).list_indicators()


@router.get("/modules", response_model=List[ModuleResponse], summary="Application modules")
async def list_modules(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await EntityStore(db).list_modules()


@router.get("/role-rights/{role_id}", response_model=List[RoleRightResponse], summary="Rights of one role")
async def list_role_rights(
    role_id: int,
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_async_session),
):
    return await EntityStore(db).list_role_rights(role_id)
