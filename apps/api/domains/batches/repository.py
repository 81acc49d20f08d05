"""Supabase-backed record store for statement batches.

Tables: ``transaction_batches`` (one row per save) and
``parsed_transactions`` (one row per written line, cascading on batch
delete). RLS scopes both to the calling user.
"""

from typing import Any, Dict, List, Optional, Set

import structlog
from fastapi import Depends
from supabase import Client

from apps.api.core.auth import get_user_client
from apps.api.supabase_client import run_query
from packages.statement_engine.store import (
    KEY_COLUMNS,
    BatchFilter,
    BatchMetadata,
    RecordStore,
    StoreError,
)

logger = structlog.get_logger()

BATCHES_TABLE = "transaction_batches"
TRANSACTIONS_TABLE = "parsed_transactions"


class SupabaseRecordStore(RecordStore):
    def __init__(self, client: Client):
        self.client = client

    async def insert_batch(self, metadata: BatchMetadata) -> str:
        rows = await run_query(
            "insert_batch", self.client.table(BATCHES_TABLE).insert(metadata.to_row())
        )
        if not rows:
            raise StoreError("insert_batch failed: no row returned")
        batch_id = str(rows[0]["id"])
        logger.info("batch_created", batch_id=batch_id, batch_name=metadata.batch_name)
        return batch_id

    async def insert_transactions(self, batch_id: str, rows: List[Dict[str, Any]]) -> None:
        await run_query(
            "insert_transactions", self.client.table(TRANSACTIONS_TABLE).insert(rows)
        )

    async def query_existing_by_key(
        self, key_field: str, keys: List[str], session_id: Optional[str] = None
    ) -> Set[str]:
        column = KEY_COLUMNS[key_field]
        if session_id:
            # Only rows filed under this session's batches
            query = (
                self.client.table(TRANSACTIONS_TABLE)
                .select(f"{column}, {BATCHES_TABLE}!inner(session_id)")
                .in_(column, keys)
                .eq("is_valid", True)
                .eq(f"{BATCHES_TABLE}.session_id", session_id)
            )
        else:
            query = (
                self.client.table(TRANSACTIONS_TABLE)
                .select(column)
                .in_(column, keys)
                .eq("is_valid", True)
            )
        rows = await run_query("query_existing_by_key", query)
        return {str(row[column]) for row in rows if row.get(column)}

    async def list_batches(self, session_id: str, filters: BatchFilter) -> List[Dict[str, Any]]:
        query = self.client.table(BATCHES_TABLE).select("*").eq("session_id", session_id)
        if filters.start_date:
            query = query.gte("created_at", filters.start_date.isoformat())
        if filters.end_date:
            query = query.lte("created_at", filters.end_date.isoformat())
        query = query.order("created_at", desc=True)

        rows = await run_query("list_batches", query)
        return [row for row in rows if filters.accepts(row)]

    async def get_batch(self, batch_id: str) -> Dict[str, Any] | None:
        rows = await run_query(
            "get_batch",
            self.client.table(BATCHES_TABLE).select("*").eq("id", batch_id).limit(1),
        )
        return rows[0] if rows else None

    async def get_batch_transactions(
        self, batch_id: str, only_valid: bool = False
    ) -> List[Dict[str, Any]]:
        query = self.client.table(TRANSACTIONS_TABLE).select("*").eq("batch_id", batch_id)
        if only_valid:
            query = query.eq("is_valid", True)
        return await run_query("get_batch_transactions", query.order("created_at"))

    async def delete_batch(self, batch_id: str) -> None:
        await run_query(
            "delete_batch", self.client.table(BATCHES_TABLE).delete().eq("id", batch_id)
        )
        logger.info("batch_deleted", batch_id=batch_id)

    async def rename_batch(self, batch_id: str, name: str) -> None:
        await run_query(
            "rename_batch",
            self.client.table(BATCHES_TABLE).update({"batch_name": name}).eq("id", batch_id),
        )


def get_record_store(client: Client = Depends(get_user_client)) -> SupabaseRecordStore:
    return SupabaseRecordStore(client)
