"""
Item Models

Request and response models for the items API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ItemCreate(BaseModel):
    """Request body for POST /api/items."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10_000)


class Item(BaseModel):
    """A stored item row."""

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
