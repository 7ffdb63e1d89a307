"""
WealthDesk - Shared Schema Base

API payloads use camelCase keys; Python attributes stay snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that reads and writes camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Schema for simple message responses."""
    message: str
    success: bool = True


class RowError(CamelModel):
    """One failed row of a batch; ``row`` is the spreadsheet row or array position."""
    row: int
    reason: str
    data: Optional[dict] = Field(None, description="Offending row as parsed")
