"""
WealthDesk - Pydantic Schemas Package
"""

from app.schemas.common import CamelModel, MessageResponse, RowError
