"""Supabase query execution for the API Gateway.

supabase-py builds queries synchronously and ``.execute()`` blocks on
the network, so queries are executed in the default thread pool. Any
client or network failure is re-raised as the statement engine's
``StoreError``.
"""

import asyncio
from typing import Any, Dict, List

import structlog

from packages.statement_engine.store import StoreError

logger = structlog.get_logger()


async def run_query(operation: str, query) -> List[Dict[str, Any]]:
    """Execute a built query off the event loop and return its rows."""
    loop = asyncio.get_running_loop()
    try:
        response = await loop.run_in_executor(None, query.execute)
    except Exception as e:
        logger.error("supabase_query_failed", operation=operation, error=str(e))
        raise StoreError(f"{operation} failed: {e}") from e
    return response.data or []
