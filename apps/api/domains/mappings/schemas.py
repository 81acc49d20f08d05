"""Pydantic schemas for the mappings domain."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MappingOut(BaseModel):
    member_id: Optional[str] = None
    reference_id: Optional[str] = None
    customer_name: Optional[str] = None
    account_number: Optional[str] = None
    product_label: Optional[str] = None
    national_id: Optional[str] = None


class MappingListResponse(BaseModel):
    mappings: list[MappingOut]
    count: int
    fetched_at: Optional[datetime] = None


class MappingImportRequest(BaseModel):
    """A pasted sheet with a header row (tab- or comma-separated)."""

    text: str = Field(..., min_length=1)
    delimiter: Optional[str] = Field(default=None, max_length=1)


class MappingImportResponse(BaseModel):
    imported: int
