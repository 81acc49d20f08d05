"""Shared sample lines and an in-memory RecordStore for engine tests."""

from typing import Any, Dict, List, Optional, Set

from packages.statement_engine.store import (
    KEY_COLUMNS,
    BatchFilter,
    BatchMetadata,
    RecordStore,
    StoreError,
)

NMB_SPACED_LINE = (
    "20  Jan 2026  20  Jan 2026    101 - NMB Head Office - Cash Deposit Agency banking - "
    "2001 12 17 35 agency @22410063786@TPS900 Trx ID PS2085594242  Ter ID 2245105627   "
    "Description 963330000141!! From SAVCOM LIMITED COLLECTION ACC => VITUS VICENT ITABA  "
    "101AGD126020A4OE  12500.00    TZS 3826000.00"
)

NMB_TAB_LINE = (
    "20 Jan 2026\t20 Jan 2026\t\t101 - NMB Head Office - Cash Deposit Agency banking - "
    "2001 12 17 35 agency @22410063786@TPS900 Trx ID PS2085594242 Ter ID 2245105627 "
    "Description 963330000141!! From SAVCOM LIMITED COLLECTION ACC => VITUS VICENT ITABA"
    "\t101AGD126020A4OE\t12500.00\t\tTZS 3826000.00"
)

CRDB_LINE = (
    "20.01.2026 13:59:00  REF:19bdb0f42ad57818 AGENCY FT FROM FANUEL JALISON MKUPALA TO "
    "FRANKAB17689067684357947257:HASSAN SAIDI NGUNDE:963330000396 N/A  20.01.2026 00:00:00  "
    "0.00  12,500.00  437,129,784.78"
)


class InMemoryStore(RecordStore):
    """RecordStore double that keeps rows in lists and can inject failures."""

    def __init__(self, fail_query_on_call=None, fail_insert_chunks=()):
        self.batches: Dict[str, Dict[str, Any]] = {}
        self.rows: List[Dict[str, Any]] = []
        self.query_calls: List[List[str]] = []
        self.insert_calls = 0
        self.fail_query_on_call = fail_query_on_call
        self.fail_insert_chunks = set(fail_insert_chunks)

    async def insert_batch(self, metadata: BatchMetadata) -> str:
        batch_id = f"batch-{len(self.batches) + 1}"
        self.batches[batch_id] = {"id": batch_id, **metadata.to_row()}
        return batch_id

    async def insert_transactions(self, batch_id: str, rows: List[Dict[str, Any]]) -> None:
        call = self.insert_calls
        self.insert_calls += 1
        if call in self.fail_insert_chunks:
            raise StoreError("payload too large")
        self.rows.extend(rows)

    async def query_existing_by_key(
        self, key_field: str, keys: List[str], session_id: Optional[str] = None
    ) -> Set[str]:
        self.query_calls.append(list(keys))
        if self.fail_query_on_call == len(self.query_calls) - 1:
            raise StoreError("connection reset")
        column = KEY_COLUMNS[key_field]
        rows = [row for row in self.rows if row["is_valid"]]
        if session_id:
            rows = [
                row for row in rows
                if self.batches.get(row["batch_id"], {}).get("session_id") == session_id
            ]
        stored = {row[column] for row in rows}
        return {key for key in keys if key in stored}

    async def list_batches(self, session_id: str, filters: BatchFilter) -> List[Dict[str, Any]]:
        batches = [b for b in self.batches.values() if b["session_id"] == session_id]
        return [b for b in batches if filters.accepts(b)]

    async def get_batch(self, batch_id: str):
        return self.batches.get(batch_id)

    async def get_batch_transactions(self, batch_id: str, only_valid: bool = False):
        rows = [r for r in self.rows if r["batch_id"] == batch_id]
        if only_valid:
            rows = [r for r in rows if r["is_valid"]]
        return rows

    async def delete_batch(self, batch_id: str) -> None:
        self.batches.pop(batch_id, None)
        self.rows = [r for r in self.rows if r["batch_id"] != batch_id]

    async def rename_batch(self, batch_id: str, name: str) -> None:
        self.batches[batch_id]["batch_name"] = name

