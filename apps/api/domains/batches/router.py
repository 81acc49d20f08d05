"""Batches router: history of saved statement batches."""

from datetime import datetime
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response

from apps.api.core.auth import get_current_user_id
from apps.api.core.errors import NotFoundError
from apps.api.domains.batches.repository import get_record_store
from apps.api.domains.batches.schemas import (
    BatchListResponse,
    BatchOut,
    BatchRename,
    StoredTransactionsResponse,
)
from apps.api.domains.statements.service import ExportFormat, build_export
from packages.statement_engine.store import BatchFilter, RecordStore, row_to_transaction

router = APIRouter(prefix="/batches", tags=["batches"])
logger = structlog.get_logger()


async def _require_batch(store: RecordStore, batch_id: str) -> dict:
    batch = await store.get_batch(batch_id)
    if batch is None:
        raise NotFoundError(f"Batch {batch_id} not found")
    return batch


@router.get("", response_model=BatchListResponse)
async def list_batches(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    min_success_rate: Optional[float] = Query(None, ge=0, le=100),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_record_store),
):
    """List the caller's batches, newest first."""
    filters = BatchFilter(
        start_date=start_date, end_date=end_date, min_success_rate=min_success_rate
    )
    rows = await store.list_batches(user_id, filters)
    batches = [BatchOut.model_validate(row) for row in rows]
    return BatchListResponse(batches=batches, count=len(batches))


@router.get("/{batch_id}/transactions", response_model=StoredTransactionsResponse)
async def get_batch_transactions(
    batch_id: str,
    only_valid: bool = Query(False),
    store: RecordStore = Depends(get_record_store),
):
    await _require_batch(store, batch_id)
    rows = await store.get_batch_transactions(batch_id, only_valid=only_valid)
    return StoredTransactionsResponse(batch_id=batch_id, transactions=rows, count=len(rows))


@router.get("/{batch_id}/export")
async def export_batch(
    batch_id: str,
    format: ExportFormat = Query(ExportFormat.CSV),
    store: RecordStore = Depends(get_record_store),
):
    """Re-export the valid rows of a saved batch."""
    batch = await _require_batch(store, batch_id)
    rows = await store.get_batch_transactions(batch_id, only_valid=True)
    transactions = [row_to_transaction(row) for row in rows]

    export = build_export(transactions, format, stem=batch.get("batch_name") or batch_id)
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.patch("/{batch_id}", response_model=BatchOut)
async def rename_batch(
    batch_id: str,
    body: BatchRename,
    store: RecordStore = Depends(get_record_store),
):
    batch = await _require_batch(store, batch_id)
    await store.rename_batch(batch_id, body.batch_name)
    logger.info("batch_renamed", batch_id=batch_id)
    return BatchOut.model_validate({**batch, "batch_name": body.batch_name})


@router.delete("/{batch_id}", status_code=204)
async def delete_batch(
    batch_id: str,
    store: RecordStore = Depends(get_record_store),
):
    """Delete a batch; its transactions go with it."""
    await _require_batch(store, batch_id)
    await store.delete_batch(batch_id)
    return Response(status_code=204)
