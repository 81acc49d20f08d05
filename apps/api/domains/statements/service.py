"""Statements service: engine wiring for parse, save and export.

Translates application settings into engine options and keeps the
routers free of engine plumbing.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence

import structlog

from apps.api.core.config import Settings, settings
from packages.statement_engine.dedup import DEFAULT_CHUNK_SIZE, DEFAULT_DEDUP_KEYS
from packages.statement_engine.export import to_csv_bytes, to_excel_bytes
from packages.statement_engine.identity import apply_mappings
from packages.statement_engine.models import (
    BankFormat,
    CustomerMapping,
    ParsedTransaction,
    ParseResult,
)
from packages.statement_engine.parser import parse_transactions
from packages.statement_engine.pipeline import SaveOutcome, save_statement
from packages.statement_engine.store import RecordStore

logger = structlog.get_logger()


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


_MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@dataclass
class EngineOptions:
    crdb_date_separator: str = "-"
    dedup_keys: Dict[BankFormat, str] = field(default_factory=lambda: dict(DEFAULT_DEDUP_KEYS))
    dedup_chunk_size: int = DEFAULT_CHUNK_SIZE
    write_chunk_size: int = DEFAULT_CHUNK_SIZE
    persist_failed_lines: bool = False

    @classmethod
    def from_settings(cls, cfg: Optional[Settings]) -> "EngineOptions":
        if cfg is None:
            return cls()
        return cls(
            crdb_date_separator=cfg.CRDB_DATE_SEPARATOR,
            dedup_keys=cfg.dedup_keys,
            dedup_chunk_size=cfg.DEDUP_CHUNK_SIZE,
            write_chunk_size=cfg.WRITE_CHUNK_SIZE,
            persist_failed_lines=cfg.PERSIST_FAILED_LINES,
        )


def get_engine_options() -> EngineOptions:
    return EngineOptions.from_settings(settings)


@dataclass
class ExportFile:
    content: bytes
    media_type: str
    filename: str


def parse_statement(
    raw_text: str,
    bank_format: BankFormat,
    mappings: Sequence[CustomerMapping],
    options: EngineOptions,
) -> ParseResult:
    """Parse pasted text and overlay customer identities on the successes."""
    result = parse_transactions(
        raw_text, bank_format, crdb_date_separator=options.crdb_date_separator
    )
    if mappings:
        result = result.with_successful(apply_mappings(result.successful, mappings))
    return result


async def save_parsed(
    raw_text: str,
    bank_format: BankFormat,
    store: RecordStore,
    session_id: str,
    mappings: Sequence[CustomerMapping],
    options: EngineOptions,
    batch_name: Optional[str] = None,
) -> SaveOutcome:
    """Parse and persist a statement for ``session_id``.

    Identity resolution happens inside the save pipeline, so the raw
    parse is handed over without mappings applied.
    """
    result = parse_transactions(
        raw_text, bank_format, crdb_date_separator=options.crdb_date_separator
    )
    outcome = await save_statement(
        result,
        store,
        session_id,
        mappings=mappings,
        batch_name=batch_name,
        dedup_keys=options.dedup_keys,
        dedup_chunk_size=options.dedup_chunk_size,
        write_chunk_size=options.write_chunk_size,
        persist_failed_lines=options.persist_failed_lines,
    )
    logger.info(
        "statement_saved",
        batch_id=outcome.batch_id,
        bank_format=outcome.bank_format,
        inserted=outcome.inserted_count,
        duplicates_skipped=outcome.duplicates_skipped,
        failed_chunks=outcome.failed_chunks,
    )
    return outcome


def safe_filename(stem: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", stem).strip("_")
    return cleaned or "transactions"


def build_export(
    transactions: Sequence[ParsedTransaction],
    fmt: ExportFormat,
    stem: str = "transactions",
) -> ExportFile:
    fmt = ExportFormat(fmt)
    if fmt is ExportFormat.XLSX:
        content = to_excel_bytes(transactions)
    else:
        content = to_csv_bytes(transactions)
    return ExportFile(
        content=content,
        media_type=_MEDIA_TYPES[fmt],
        filename=f"{safe_filename(stem)}.{fmt.value}",
    )
