"""
WealthDesk - Content Management Schemas
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from app.schemas.common import CamelModel

MediaType = Literal["image", "video", "text"]


class CategoryCreateRequest(CamelModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name is required")
        return v


class CategoryResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime


class ContentCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    category_id: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    media_type: MediaType = "text"
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    is_published: bool = False


class ContentUpdateRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    category_id: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    media_type: Optional[MediaType] = None
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    is_published: Optional[bool] = None


class ContentResponse(CamelModel):
    id: str
    category_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    media_type: str
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    display_order: int
    is_active: bool
    is_published: bool
    published_at: Optional[datetime] = None
    created_at: datetime


class OfferCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = None
    media_type: MediaType = "image"
    media_url: Optional[str] = None
    link_url: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    display_order: int = 0
    is_active: bool = True


class OfferUpdateRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = None
    media_type: Optional[MediaType] = None
    media_url: Optional[str] = None
    link_url: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class OfferResponse(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    media_type: str
    media_url: Optional[str] = None
    link_url: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    display_order: int
    is_active: bool
    created_at: datetime
