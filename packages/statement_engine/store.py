"""
Record store interface consumed by the engine.

The engine never talks to a database directly; the API supplies a concrete
store (Supabase). Implementations raise ``StoreError`` for any transport or
query failure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from .models import ParsedTransaction


class StoreError(Exception):
    """A record store call failed."""


class DuplicateCheckError(StoreError):
    """The existence check for duplicates failed; nothing was written."""


# Dedup key field on ParsedTransaction -> column in parsed_transactions
KEY_COLUMNS = {
    "account_or_user_id": "user_id",
    "reference_id": "ref_id",
    "account_number": "account_number",
}


@dataclass
class BatchMetadata:
    session_id: str
    batch_name: str
    bank_format: str
    total_lines: int
    success_count: int
    fail_count: int
    total_amount: float
    duplicates_skipped: int = 0

    def to_row(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "batch_name": self.batch_name,
            "bank_format": self.bank_format,
            "total_lines": self.total_lines,
            "success_count": self.success_count,
            "fail_count": self.fail_count,
            "total_amount": self.total_amount,
            "duplicates_skipped": self.duplicates_skipped,
        }


@dataclass
class BatchFilter:
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_success_rate: Optional[float] = None

    def accepts(self, batch: Dict[str, Any]) -> bool:
        """Client-side success-rate check (percent of total lines)."""
        if self.min_success_rate is None:
            return True
        total = batch.get("total_lines") or 0
        rate = (batch.get("success_count", 0) / total) * 100 if total > 0 else 0
        return rate >= self.min_success_rate


def transaction_to_row(tx: ParsedTransaction, batch_id: str) -> Dict[str, Any]:
    return {
        "batch_id": batch_id,
        "bank_format": tx.bank_format,
        "ref_id": tx.reference_id,
        "user_id": tx.account_or_user_id,
        "account_number": tx.account_number or None,
        "amount": tx.amount,
        "transaction_type": tx.transaction_type,
        "product_type": tx.product_type,
        "product_name": tx.product_label,
        "operation_type": tx.operation_or_payment_method,
        "transaction_date": tx.transaction_date,
        "counterparty_name": tx.counterparty_name or None,
        "customer_name": tx.customer_name or None,
        "member_id": tx.member_id or None,
        "national_id": tx.national_id or None,
        "comment": tx.memo or None,
        "raw_line": tx.raw_line,
        "is_valid": tx.is_valid,
        "error_message": None if tx.is_valid else tx.error_message,
    }


def row_to_transaction(row: Dict[str, Any]) -> ParsedTransaction:
    """Rebuild a transaction from a stored row, e.g. for re-export."""
    return ParsedTransaction(
        transaction_date=row.get("transaction_date") or "",
        reference_id=row.get("ref_id") or "",
        account_or_user_id=row.get("user_id") or "",
        account_number=row.get("account_number") or "",
        amount=row.get("amount") or "",
        counterparty_name=row.get("counterparty_name") or "",
        product_label=row.get("product_name") or "",
        product_type=row.get("product_type") or "",
        operation_or_payment_method=row.get("operation_type") or "",
        transaction_type=row.get("transaction_type") or "",
        memo=row.get("comment") or "",
        raw_line=row.get("raw_line") or "",
        bank_format=row.get("bank_format") or "",
        is_valid=bool(row.get("is_valid")),
        error_message=row.get("error_message"),
        customer_name=row.get("customer_name") or "",
        member_id=row.get("member_id") or "",
        national_id=row.get("national_id") or "",
    )


class RecordStore(ABC):
    """Durable home for transaction batches."""

    @abstractmethod
    async def insert_batch(self, metadata: BatchMetadata) -> str:
        """Create the batch row and return its id."""

    @abstractmethod
    async def insert_transactions(self, batch_id: str, rows: List[Dict[str, Any]]) -> None:
        """Insert one chunk of transaction rows."""

    @abstractmethod
    async def query_existing_by_key(
        self, key_field: str, keys: List[str], session_id: Optional[str] = None
    ) -> Set[str]:
        """
        Return the subset of ``keys`` already stored under ``key_field``.

        Only valid rows count; failed-line audit rows never do. With a
        ``session_id`` the lookup is limited to that session's batches.
        """

    @abstractmethod
    async def list_batches(self, session_id: str, filters: BatchFilter) -> List[Dict[str, Any]]:
        """Batches for a session, newest first."""

    @abstractmethod
    async def get_batch(self, batch_id: str) -> Optional[Dict[str, Any]]:
        """One batch row, or None when it does not exist."""

    @abstractmethod
    async def get_batch_transactions(
        self, batch_id: str, only_valid: bool = False
    ) -> List[Dict[str, Any]]:
        """Stored rows for one batch in insertion order."""

    @abstractmethod
    async def delete_batch(self, batch_id: str) -> None:
        """Delete a batch and, through the foreign key, its rows."""

    @abstractmethod
    async def rename_batch(self, batch_id: str, name: str) -> None:
        """Change a batch's display name."""
