"""
Statement save pipeline.

raw text -> StatementParser -> IdentityResolver -> Duplicate Filter
-> Batch Aggregator -> RecordStore

Failure policy differs by stage:
- the duplicate check is read-before-write, so any failure aborts the save
  (DuplicateCheckError) before anything is written;
- the write stage inserts rows in chunks and a failing chunk is logged and
  skipped, so a batch can be partially written and reports that.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .aggregator import summarize
from .dedup import DEFAULT_CHUNK_SIZE, chunked, dedup_key_for, filter_duplicates
from .identity import IdentityResolver
from .models import BankFormat, CustomerMapping, ParsedTransaction, ParseResult
from .store import BatchMetadata, RecordStore, StoreError, transaction_to_row

logger = logging.getLogger(__name__)


@dataclass
class PersistOutcome:
    batch_id: Optional[str]
    inserted_count: int = 0
    failed_chunks: int = 0
    failed_rows: int = 0

    @property
    def partial(self) -> bool:
        return self.failed_chunks > 0


@dataclass
class SaveOutcome:
    batch_id: Optional[str]
    bank_format: str
    total_lines: int
    success_count: int
    fail_count: int
    duplicates_skipped: int
    inserted_count: int
    failed_chunks: int = 0
    total_amount: float = 0.0
    dedup_key: str = ""
    written: List[ParsedTransaction] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return self.failed_chunks > 0


async def persist_batch(
    store: RecordStore,
    metadata: BatchMetadata,
    transactions: Sequence[ParsedTransaction],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> PersistOutcome:
    """
    Write a batch row and its transactions.

    A failure creating the batch row propagates as ``StoreError``. Failures
    on individual transaction chunks are logged and skipped.
    """
    batch_id = await store.insert_batch(metadata)

    rows = [transaction_to_row(tx, batch_id) for tx in transactions]
    outcome = PersistOutcome(batch_id=batch_id)

    for index, chunk in enumerate(chunked(rows, chunk_size)):
        try:
            await store.insert_transactions(batch_id, chunk)
        except StoreError as e:
            logger.error(
                f"Chunk {index} of batch {batch_id} failed ({len(chunk)} rows): {e}"
            )
            outcome.failed_chunks += 1
            outcome.failed_rows += len(chunk)
            continue
        outcome.inserted_count += len(chunk)

    return outcome


def default_batch_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Batch {now.strftime('%d/%m/%Y %H:%M:%S')}"


async def save_statement(
    result: ParseResult,
    store: RecordStore,
    session_id: str,
    mappings: Sequence[CustomerMapping] = (),
    batch_name: Optional[str] = None,
    dedup_keys: Optional[Dict[BankFormat, str]] = None,
    dedup_chunk_size: int = DEFAULT_CHUNK_SIZE,
    write_chunk_size: int = DEFAULT_CHUNK_SIZE,
    persist_failed_lines: bool = False,
) -> SaveOutcome:
    """
    Enrich, de-duplicate and persist a parsed statement.

    Raises:
        DuplicateCheckError: the existence check failed; nothing was written.
        StoreError: the batch row could not be created.
    """
    key_field = dedup_key_for(result.bank_format, dedup_keys)

    enriched = IdentityResolver(mappings).resolve_all(result.successful)
    dedup = await filter_duplicates(
        enriched, store, key_field, dedup_chunk_size, session_id=session_id
    )

    totals = summarize(result.with_successful(enriched))
    outcome = SaveOutcome(
        batch_id=None,
        bank_format=result.bank_format.value,
        total_lines=totals.total_lines,
        success_count=totals.success_count,
        fail_count=totals.fail_count,
        duplicates_skipped=dedup.skipped_count,
        inserted_count=0,
        total_amount=float(totals.total_amount),
        dedup_key=key_field,
    )

    to_write = list(dedup.transactions)
    if persist_failed_lines:
        to_write.extend(result.failed)

    if not to_write:
        logger.info(
            f"Nothing new to save for session {session_id}: "
            f"{dedup.skipped_count} duplicates skipped"
        )
        return outcome

    metadata = BatchMetadata(
        session_id=session_id,
        batch_name=batch_name or default_batch_name(),
        bank_format=result.bank_format.value,
        total_lines=totals.total_lines,
        success_count=totals.success_count,
        fail_count=totals.fail_count,
        total_amount=float(totals.total_amount),
        duplicates_skipped=dedup.skipped_count,
    )
    persisted = await persist_batch(store, metadata, to_write, write_chunk_size)

    outcome.batch_id = persisted.batch_id
    outcome.inserted_count = persisted.inserted_count
    outcome.failed_chunks = persisted.failed_chunks
    outcome.written = to_write
    return outcome
