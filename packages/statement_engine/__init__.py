"""
Statement Engine

Line parsing and reconciliation for pasted NMB and CRDB bank statements:
field extraction, customer identity enrichment, duplicate suppression
and batch totals.
"""

__version__ = "0.1.0"

from .aggregator import BatchTotals, parse_amount, summarize
from .dedup import DedupResult, dedup_key_for, filter_duplicates
from .directory import CustomerDirectory, MappingCache, MappingSource, parse_mapping_sheet
from .identity import IdentityResolver, apply_mappings, extract_member_code
from .models import BankFormat, CustomerMapping, ParsedTransaction, ParseResult
from .parser import StatementParser, parse_line, parse_transactions
from .pipeline import SaveOutcome, persist_batch, save_statement
from .store import DuplicateCheckError, RecordStore, StoreError

__all__ = [
    "BankFormat",
    "BatchTotals",
    "CustomerDirectory",
    "CustomerMapping",
    "DedupResult",
    "DuplicateCheckError",
    "IdentityResolver",
    "MappingCache",
    "MappingSource",
    "ParseResult",
    "ParsedTransaction",
    "RecordStore",
    "SaveOutcome",
    "StatementParser",
    "StoreError",
    "apply_mappings",
    "dedup_key_for",
    "extract_member_code",
    "filter_duplicates",
    "parse_amount",
    "parse_line",
    "parse_mapping_sheet",
    "parse_transactions",
    "persist_batch",
    "save_statement",
    "summarize",
]
