"""
WealthDesk - Content Router

Admin management of categories, content items and offers, and the
public feeds the client app reads without logging in.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import require_admin
from app.schemas.common import MessageResponse
from app.schemas.content import (
    CategoryCreateRequest,
    CategoryResponse,
    ContentCreateRequest,
    ContentResponse,
    ContentUpdateRequest,
    OfferCreateRequest,
    OfferResponse,
    OfferUpdateRequest,
)
from app.services.content_service import ContentService
from app.utils.scoping import SessionContext


router = APIRouter()


# ===========================================
# PUBLIC FEEDS
# ===========================================

@router.get("/public/content", response_model=List[ContentResponse], summary="Published content")
async def public_content(db: AsyncSession = Depends(get_async_session)):
    return await ContentService(db).list_content(published_only=True)


@router.get("/public/offers", response_model=List[OfferResponse], summary="Active offers")
async def public_offers(db: AsyncSession = Depends(get_async_session)):
    return await ContentService(db).list_offers(active_only=True)


# ===========================================
# CATEGORIES
# ===========================================

@router.get("/categories", response_model=List[CategoryResponse], summary="List categories")
async def list_categories(db: AsyncSession = Depends(get_async_session)):
    return await ContentService(db).list_categories()


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
async def create_category(
    request: CategoryCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await ContentService(db).create_category(request.name, request.description)


# ===========================================
# OFFERS
# ===========================================

@router.get("/offers", response_model=List[OfferResponse], summary="List offers")
async def list_offers(db: AsyncSession = Depends(get_async_session)):
    return await ContentService(db).list_offers()


@router.post("/offers", response_model=OfferResponse, status_code=status.HTTP_201_CREATED, summary="Create offer")
async def create_offer(
    request: OfferCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await ContentService(db).create_offer(session, request.model_dump())


@router.put("/offers/{offer_id}", response_model=OfferResponse, summary="Update offer")
async def update_offer(
    offer_id: str,
    request: OfferUpdateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await ContentService(db).update_offer(offer_id, request.model_dump(exclude_unset=True))


@router.delete("/offers/{offer_id}", response_model=MessageResponse, summary="Delete offer")
async def delete_offer(
    offer_id: str,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    await ContentService(db).delete_offer(offer_id)
    return MessageResponse(message="Offer deleted successfully")


# ===========================================
# CONTENT ITEMS
# ===========================================

@router.get("", response_model=List[ContentResponse], summary="List content")
async def list_content(db: AsyncSession = Depends(get_async_session)):
    return await ContentService(db).list_content()


@router.post("", response_model=ContentResponse, status_code=status.HTTP_201_CREATED, summary="Create content")
async def create_content(
    request: ContentCreateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await ContentService(db).create_content(session, request.model_dump())


@router.put("/{content_id}", response_model=ContentResponse, summary="Update content")
async def update_content(
    content_id: str,
    request: ContentUpdateRequest,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    return await ContentService(db).update_content(content_id, request.model_dump(exclude_unset=True))


@router.delete("/{content_id}", response_model=MessageResponse, summary="Delete content")
async def delete_content(
    content_id: str,
    session: SessionContext = Depends(require_admin()),
    db: AsyncSession = Depends(get_async_session),
):
    await ContentService(db).delete_content(content_id)
    return MessageResponse(message="Content deleted successfully")
