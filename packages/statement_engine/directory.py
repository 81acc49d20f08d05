"""
Customer Directory - cached access to customer identity mappings.

The cache is an explicit value (``MappingCache``) owned by the directory,
with expiry checked against an injected clock. When a live fetch fails the
last cached data is served even if it has expired.
"""

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import httpx
import pandas as pd

from .models import CustomerMapping, mappings_from_rows

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_mapping_sheet(text: str, delimiter: Optional[str] = None) -> List[CustomerMapping]:
    """
    Parse a pasted or exported spreadsheet into mappings.

    Args:
        text: Sheet contents with a header row.
        delimiter: Column separator; tab when the header contains one,
            comma otherwise.

    Returns:
        Mappings that carry a member id or a reference id.
    """
    if not text or not text.strip():
        return []

    if delimiter is None:
        header = text.strip().splitlines()[0]
        delimiter = "\t" if "\t" in header else ","

    df = pd.read_csv(
        io.StringIO(text.strip()),
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    df.columns = [str(c).strip() for c in df.columns]
    return mappings_from_rows(df.to_dict("records"))


class MappingSource(ABC):
    """Where live customer mappings come from."""

    @abstractmethod
    async def fetch_mappings(self) -> List[CustomerMapping]:
        """Return the full mapping set; raise on transport failure."""


class SheetMappingSource(MappingSource):
    """Reads a published spreadsheet CSV export over HTTP."""

    def __init__(self, url: str, timeout: float = 15.0, transport=None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def fetch_mappings(self) -> List[CustomerMapping]:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport, follow_redirects=True
        ) as client:
            response = await client.get(self.url)
            response.raise_for_status()
        return parse_mapping_sheet(response.text, delimiter=",")


@dataclass(frozen=True)
class MappingCache:
    data: List[CustomerMapping]
    fetched_at: datetime

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.fetched_at < ttl


class CustomerDirectory:
    """Time-bounded cache in front of a ``MappingSource``."""

    def __init__(
        self,
        source: MappingSource,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
        cache: Optional[MappingCache] = None,
    ):
        self.source = source
        self.ttl = ttl
        self.clock = clock
        self.cache = cache

    async def get_mappings(self, force_refresh: bool = False) -> List[CustomerMapping]:
        if not force_refresh and self.cache and self.cache.is_fresh(self.clock(), self.ttl):
            logger.debug("Using cached customer mappings")
            return self.cache.data

        try:
            mappings = await self.source.fetch_mappings()
        except Exception as e:
            if self.cache is not None:
                logger.warning(f"Mapping fetch failed, serving stale cache: {e}")
                return self.cache.data
            logger.warning(f"Mapping fetch failed and no cache is available: {e}")
            return []

        self.cache = MappingCache(data=list(mappings), fetched_at=self.clock())
        logger.info(f"Fetched {len(mappings)} customer mappings")
        return self.cache.data

    def clear(self) -> None:
        self.cache = None
