"""Pydantic schemas for the batches domain."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class BatchOut(BaseModel):
    """One saved statement batch."""

    id: str
    batch_name: str
    bank_format: str
    total_lines: int = 0
    success_count: int = 0
    fail_count: int = 0
    total_amount: float = 0.0
    duplicates_skipped: int = 0
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def success_rate(self) -> float:
        if not self.total_lines:
            return 0.0
        return round(self.success_count / self.total_lines * 100, 2)


class BatchListResponse(BaseModel):
    batches: list[BatchOut]
    count: int


class BatchRename(BaseModel):
    batch_name: str = Field(..., min_length=1, max_length=200)


class StoredTransactionsResponse(BaseModel):
    batch_id: str
    transactions: list[dict]
    count: int
