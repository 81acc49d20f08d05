"""
Per-bank line extractors.
"""

from ..models import BankFormat
from .base import EMPTY_LINE_ERROR, StatementLineExtractor
from .crdb import CRDBExtractor, select_credit_amount
from .nmb import NMBExtractor


def get_extractor(bank_format, crdb_date_separator: str = "-") -> StatementLineExtractor:
    """Return the extractor for ``bank_format`` (enum or its name)."""
    fmt = BankFormat.parse(bank_format)
    if fmt is BankFormat.CRDB:
        return CRDBExtractor(date_separator=crdb_date_separator)
    return NMBExtractor()


__all__ = [
    "EMPTY_LINE_ERROR",
    "StatementLineExtractor",
    "NMBExtractor",
    "CRDBExtractor",
    "select_credit_amount",
    "get_extractor",
]
