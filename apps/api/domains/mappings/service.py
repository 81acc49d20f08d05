"""Mappings service: customer directory wiring and the Supabase source.

The directory is a process-wide singleton so the 24 h mapping cache is
shared across requests. It reads the published customer sheet when
``CUSTOMER_SHEET_URL`` is set and the ``customer_mappings`` table
otherwise.
"""

import threading
from datetime import timedelta
from typing import List, Optional, Sequence

import structlog
from supabase import Client

from apps.api.core.auth import get_service_client
from apps.api.core.config import Settings, settings
from apps.api.supabase_client import run_query
from packages.statement_engine.dedup import chunked
from packages.statement_engine.directory import (
    DEFAULT_TTL,
    CustomerDirectory,
    MappingSource,
    SheetMappingSource,
)
from packages.statement_engine.models import CustomerMapping, mappings_from_rows

logger = structlog.get_logger()

MAPPINGS_TABLE = "customer_mappings"
UPSERT_CHUNK_SIZE = 100

_directory: Optional[CustomerDirectory] = None
_directory_lock = threading.Lock()


class SupabaseMappingSource(MappingSource):
    """Reads and writes the ``customer_mappings`` table."""

    def __init__(self, client: Client):
        self.client = client

    async def fetch_mappings(self) -> List[CustomerMapping]:
        rows = await run_query("fetch_mappings", self.client.table(MAPPINGS_TABLE).select("*"))
        return mappings_from_rows(rows)

    async def upsert_mappings(self, mappings: Sequence[CustomerMapping]) -> int:
        """Write mappings; rows with a member id replace the existing entry.

        Returns the number of rows sent.
        """
        keyed = [m.to_row() for m in mappings if m.member_id]
        unkeyed = [m.to_row() for m in mappings if not m.member_id]

        for chunk in chunked(keyed, UPSERT_CHUNK_SIZE):
            await run_query(
                "upsert_mappings",
                self.client.table(MAPPINGS_TABLE).upsert(chunk, on_conflict="member_id"),
            )
        for chunk in chunked(unkeyed, UPSERT_CHUNK_SIZE):
            await run_query("insert_mappings", self.client.table(MAPPINGS_TABLE).insert(chunk))

        logger.info("mappings_imported", keyed=len(keyed), unkeyed=len(unkeyed))
        return len(keyed) + len(unkeyed)


def build_directory(cfg: Optional[Settings]) -> CustomerDirectory:
    """Create a directory from settings (table source when no sheet URL)."""
    ttl = timedelta(hours=cfg.MAPPINGS_CACHE_TTL_HOURS) if cfg else DEFAULT_TTL

    if cfg and cfg.CUSTOMER_SHEET_URL:
        source: MappingSource = SheetMappingSource(cfg.CUSTOMER_SHEET_URL)
        logger.info("customer_directory_source", source="sheet")
    else:
        source = SupabaseMappingSource(get_service_client())
        logger.info("customer_directory_source", source="table")

    return CustomerDirectory(source, ttl=ttl)


def get_customer_directory() -> CustomerDirectory:
    """Get or create the process-wide customer directory."""
    global _directory
    if _directory is None:
        with _directory_lock:
            if _directory is None:
                _directory = build_directory(settings)
    return _directory


def reset_customer_directory() -> None:
    global _directory
    with _directory_lock:
        _directory = None
