"""
WealthDesk - Content Service

Categories, content items and offers shown in the client app.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ContentCategory, ContentItem, Offer
from app.services.store import EntityStore
from app.utils.error_handling import NotFoundException, ValidationException
from app.utils.scoping import SessionContext

logger = logging.getLogger(__name__)


class ContentService:
    """Service for content management."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)

    async def _check_category(self, category_id: Optional[str]) -> None:
        if category_id and await self.store.get_content_category(category_id) is None:
            raise ValidationException(f"Category {category_id} does not exist", field="categoryId")

    # ===========================================
    # CATEGORIES
    # ===========================================

    async def list_categories(self) -> List[ContentCategory]:
        return await self.store.list_content_categories()

    async def create_category(self, name: str, description: Optional[str] = None) -> ContentCategory:
        category = ContentCategory(name=name, description=description, is_active=True)
        await self.store.add(category)
        await self.store.commit()
        await self.store.refresh(category)
        return category

    # ===========================================
    # CONTENT ITEMS
    # ===========================================

    async def list_content(self, published_only: bool = False) -> List[ContentItem]:
        return await self.store.list_content_items(published_only=published_only)

    async def create_content(self, session: SessionContext, data: Dict[str, Any]) -> ContentItem:
        await self._check_category(data.get("category_id"))
        item = ContentItem(**data, created_by=session.user_id)
        if item.is_published:
            item.published_at = datetime.utcnow()
        await self.store.add(item)
        await self.store.commit()
        await self.store.refresh(item)
        logger.info(f"Content '{item.title}' created by {session.user_id}")
        return item

    async def update_content(self, content_id: str, changes: Dict[str, Any]) -> ContentItem:
        item = await self.store.get_content_item(content_id)
        if item is None:
            raise NotFoundException("Content", content_id)
        if "category_id" in changes:
            await self._check_category(changes["category_id"])

        was_published = item.is_published
        for key, value in changes.items():
            setattr(item, key, value)

        # Publishing stamps the time; unpublishing clears it
        if item.is_published and not was_published:
            item.published_at = datetime.utcnow()
        elif not item.is_published:
            item.published_at = None

        await self.store.commit()
        await self.store.refresh(item)
        return item

    async def delete_content(self, content_id: str) -> None:
        item = await self.store.get_content_item(content_id)
        if item is None:
            raise NotFoundException("Content", content_id)
        await self.store.delete(item)
        await self.store.commit()

    # ===========================================
    # OFFERS
    # ===========================================

    async def list_offers(self, active_only: bool = False) -> List[Offer]:
        return await self.store.list_offers(active_only=active_only)

    async def create_offer(self, session: SessionContext, data: Dict[str, Any]) -> Offer:
        if data.get("valid_from") and data.get("valid_to") and data["valid_to"] < data["valid_from"]:
            raise ValidationException("validTo must not be before validFrom", field="validTo")
        offer = Offer(**data, created_by=session.user_id)
        await self.store.add(offer)
        await self.store.commit()
        await self.store.refresh(offer)
        return offer

    async def update_offer(self, offer_id: str, changes: Dict[str, Any]) -> Offer:
        offer = await self.store.get_offer(offer_id)
        if offer is None:
            raise NotFoundException("Offer", offer_id)
        for key, value in changes.items():
            setattr(offer, key, value)
        if offer.valid_from and offer.valid_to and offer.valid_to < offer.valid_from:
            raise ValidationException("validTo must not be before validFrom", field="validTo")
        await self.store.commit()
        await self.store.refresh(offer)
        return offer

    async def delete_offer(self, offer_id: str) -> None:
        offer = await self.store.get_offer(offer_id)
        if offer is None:
            raise NotFoundException("Offer", offer_id)
        await self.store.delete(offer)
        await self.store.commit()
