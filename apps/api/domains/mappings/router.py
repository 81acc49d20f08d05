"""Mappings router: customer directory listing, import and refresh."""

import structlog
from fastapi import APIRouter, Depends, Query
from supabase import Client

from apps.api.core.auth import get_current_user_id, get_user_client
from apps.api.core.errors import UpstreamError, ValidationError
from apps.api.domains.mappings.schemas import (
    MappingImportRequest,
    MappingImportResponse,
    MappingListResponse,
    MappingOut,
)
from apps.api.domains.mappings.service import SupabaseMappingSource, get_customer_directory
from packages.statement_engine.directory import CustomerDirectory, parse_mapping_sheet
from packages.statement_engine.store import StoreError

router = APIRouter(prefix="/mappings", tags=["mappings"])
logger = structlog.get_logger()


def _list_response(directory: CustomerDirectory, mappings) -> MappingListResponse:
    return MappingListResponse(
        mappings=[MappingOut.model_validate(m.model_dump()) for m in mappings],
        count=len(mappings),
        fetched_at=directory.cache.fetched_at if directory.cache else None,
    )


@router.get("", response_model=MappingListResponse)
async def list_mappings(
    refresh: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    directory: CustomerDirectory = Depends(get_customer_directory),
):
    """Current customer mappings, served from the cache when fresh."""
    mappings = await directory.get_mappings(force_refresh=refresh)
    return _list_response(directory, mappings)


@router.post("/refresh", response_model=MappingListResponse)
async def refresh_mappings(
    user_id: str = Depends(get_current_user_id),
    directory: CustomerDirectory = Depends(get_customer_directory),
):
    mappings = await directory.get_mappings(force_refresh=True)
    logger.info("mappings_refreshed", count=len(mappings), user_id=user_id)
    return _list_response(directory, mappings)


@router.post("/import", response_model=MappingImportResponse)
async def import_mappings(
    body: MappingImportRequest,
    client: Client = Depends(get_user_client),
    user_id: str = Depends(get_current_user_id),
    directory: CustomerDirectory = Depends(get_customer_directory),
):
    """Bulk import a pasted customer sheet into the mappings table."""
    try:
        mappings = parse_mapping_sheet(body.text, delimiter=body.delimiter)
    except ValueError as e:
        logger.warning("mapping_sheet_unreadable", error=str(e))
        raise ValidationError("Could not read the pasted sheet") from e

    if not mappings:
        raise ValidationError("No rows with a member id or reference id")

    try:
        imported = await SupabaseMappingSource(client).upsert_mappings(mappings)
    except StoreError as e:
        # Earlier chunks may already be written
        directory.clear()
        logger.error("mapping_import_failed", error=str(e), user_id=user_id)
        raise UpstreamError(f"Customer directory update failed: {e}") from e
    directory.clear()
    return MappingImportResponse(imported=imported)
