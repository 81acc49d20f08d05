"""Statements router: parse, save and export pasted bank statements."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse

from apps.api.core.auth import get_current_user_id
from apps.api.core.errors import ValidationError
from apps.api.domains.batches.repository import get_record_store
from apps.api.domains.mappings.service import get_customer_directory
from apps.api.domains.statements.schemas import (
    ExportRequest,
    FailedReportRequest,
    ParseRequest,
    ParseResponse,
    SaveRequest,
    SaveResponse,
    TransactionOut,
)
from apps.api.domains.statements.service import (
    EngineOptions,
    build_export,
    get_engine_options,
    parse_statement,
    save_parsed,
)
from packages.statement_engine.aggregator import summarize
from packages.statement_engine.directory import CustomerDirectory
from packages.statement_engine.export import failed_records_report
from packages.statement_engine.models import ParseResult
from packages.statement_engine.store import RecordStore

router = APIRouter(prefix="/statements", tags=["statements"])
logger = structlog.get_logger()

MAX_TEXT_CHARS = 5 * 1024 * 1024


def _check_size(raw_text: str) -> None:
    if len(raw_text) > MAX_TEXT_CHARS:
        raise HTTPException(status_code=413, detail="Statement text too large (max 5MB)")


@router.post("/parse", response_model=ParseResponse)
async def parse(
    body: ParseRequest,
    user_id: str = Depends(get_current_user_id),
    directory: CustomerDirectory = Depends(get_customer_directory),
    options: EngineOptions = Depends(get_engine_options),
):
    """Parse pasted statement text without saving anything.

    Successful records carry resolved customer identities unless
    ``apply_mappings`` is false.
    """
    _check_size(body.raw_text)
    mappings = await directory.get_mappings() if body.apply_mappings else []

    result = parse_statement(body.raw_text, body.bank_format, mappings, options)
    totals = summarize(result)

    logger.info(
        "statement_parsed",
        bank_format=result.bank_format.value,
        total_lines=totals.total_lines,
        success_count=totals.success_count,
        fail_count=totals.fail_count,
    )
    return ParseResponse(
        bank_format=result.bank_format,
        total_lines=totals.total_lines,
        success_count=totals.success_count,
        fail_count=totals.fail_count,
        total_amount=float(totals.total_amount),
        success_rate=round(totals.success_rate, 2),
        successful=[TransactionOut.from_parsed(tx) for tx in result.successful],
        failed=[TransactionOut.from_parsed(tx) for tx in result.failed],
    )


@router.post("/save", response_model=SaveResponse)
async def save(
    body: SaveRequest,
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_record_store),
    directory: CustomerDirectory = Depends(get_customer_directory),
    options: EngineOptions = Depends(get_engine_options),
):
    """Parse, de-duplicate and persist a statement as a new batch.

    A failed duplicate check writes nothing and returns 502. When every
    line is already stored, no batch is created and ``batch_id`` is null.
    """
    _check_size(body.raw_text)
    mappings = await directory.get_mappings()

    outcome = await save_parsed(
        body.raw_text,
        body.bank_format,
        store,
        session_id=user_id,
        mappings=mappings,
        options=options,
        batch_name=body.batch_name,
    )
    return SaveResponse(
        batch_id=outcome.batch_id,
        bank_format=outcome.bank_format,
        total_lines=outcome.total_lines,
        success_count=outcome.success_count,
        fail_count=outcome.fail_count,
        duplicates_skipped=outcome.duplicates_skipped,
        inserted_count=outcome.inserted_count,
        failed_chunks=outcome.failed_chunks,
        partial=outcome.partial,
        total_amount=outcome.total_amount,
        dedup_key=outcome.dedup_key,
    )


@router.post("/export")
async def export(body: ExportRequest, user_id: str = Depends(get_current_user_id)):
    """Export (optionally edited) successful records as CSV or XLSX."""
    result = ParseResult(
        bank_format=body.bank_format,
        successful=[tx.to_parsed() for tx in body.transactions],
        total_lines=len(body.transactions),
    )
    for edit in body.edits:
        try:
            result = result.with_edit(edit.index, edit.field, edit.value)
        except (KeyError, IndexError) as e:
            raise ValidationError(str(e).strip("'")) from e

    export_file = build_export(result.successful, body.format, stem=body.filename or "transactions")
    return Response(
        content=export_file.content,
        media_type=export_file.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export_file.filename}"'},
    )


@router.post("/failed-report", response_class=PlainTextResponse)
async def failed_report(body: FailedReportRequest, user_id: str = Depends(get_current_user_id)):
    """Plain-text listing of failed lines for manual review."""
    return failed_records_report([tx.to_parsed() for tx in body.failed])
