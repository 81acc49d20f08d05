"""
Duplicate Filter - drop candidates whose natural key is already stored.

Key values are checked against the store in fixed-size chunks, one chunk
at a time. Any failing chunk aborts the whole check with
``DuplicateCheckError``; a failed lookup never counts as "no duplicates".
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Union

from .models import BankFormat, ParsedTransaction, TRANSACTION_FIELDS
from .store import KEY_COLUMNS, DuplicateCheckError, RecordStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100

DEFAULT_DEDUP_KEYS: Dict[BankFormat, str] = {
    BankFormat.NMB: "account_or_user_id",
    BankFormat.CRDB: "reference_id",
}


@dataclass
class DedupResult:
    transactions: List[ParsedTransaction] = field(default_factory=list)
    skipped_count: int = 0


def dedup_key_for(
    bank_format: Union[str, BankFormat], overrides: Dict[BankFormat, str] = None
) -> str:
    """Resolve the dedup key field for a bank format."""
    fmt = BankFormat.parse(bank_format)
    keys = {**DEFAULT_DEDUP_KEYS, **(overrides or {})}
    key_field = keys[fmt]
    if key_field not in TRANSACTION_FIELDS or key_field not in KEY_COLUMNS:
        raise ValueError(f"Unsupported dedup key field: {key_field}")
    return key_field


def chunked(values: Sequence, size: int) -> List[list]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [list(values[i : i + size]) for i in range(0, len(values), size)]


async def find_existing_keys(
    store: RecordStore,
    key_field: str,
    keys: Sequence[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    session_id: Optional[str] = None,
) -> Set[str]:
    existing: Set[str] = set()
    for index, chunk in enumerate(chunked(keys, chunk_size)):
        try:
            found = await store.query_existing_by_key(key_field, chunk, session_id)
        except StoreError as e:
            logger.error(f"Duplicate check failed on chunk {index}: {e}")
            raise DuplicateCheckError(f"Duplicate check failed: {e}") from e
        existing.update(found)
    return existing


async def filter_duplicates(
    transactions: Sequence[ParsedTransaction],
    store: RecordStore,
    key_field: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    session_id: Optional[str] = None,
) -> DedupResult:
    """
    Remove transactions whose ``key_field`` value already exists in the store.

    Transactions with an empty key are never treated as duplicates. A
    ``session_id`` limits the check to that session's stored batches.

    Raises:
        DuplicateCheckError: if any existence query fails.
    """
    keys = list(
        dict.fromkeys(
            getattr(tx, key_field) for tx in transactions if getattr(tx, key_field)
        )
    )
    if not keys:
        return DedupResult(transactions=list(transactions), skipped_count=0)

    existing = await find_existing_keys(store, key_field, keys, chunk_size, session_id)

    kept = [tx for tx in transactions if getattr(tx, key_field) not in existing]
    skipped = len(transactions) - len(kept)
    logger.info(f"Duplicate filter on {key_field}: kept {len(kept)}, skipped {skipped}")
    return DedupResult(transactions=kept, skipped_count=skipped)
