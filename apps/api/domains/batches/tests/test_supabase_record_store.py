"""Tests for the Supabase record store against a mocked client."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from apps.api.domains.batches.repository import (
    BATCHES_TABLE,
    TRANSACTIONS_TABLE,
    SupabaseRecordStore,
)
from packages.statement_engine.store import BatchFilter, BatchMetadata, StoreError


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return SupabaseRecordStore(client)


def metadata():
    return BatchMetadata(
        session_id="user-1",
        batch_name="Jan",
        bank_format="NMB",
        total_lines=3,
        success_count=2,
        fail_count=1,
        total_amount=25000.0,
    )


@pytest.mark.asyncio
async def test_insert_batch_returns_id(client, store):
    table = client.table.return_value
    table.insert.return_value.execute.return_value = MagicMock(data=[{"id": "b-42"}])

    batch_id = await store.insert_batch(metadata())

    assert batch_id == "b-42"
    client.table.assert_called_with(BATCHES_TABLE)
    assert table.insert.call_args.args[0]["batch_name"] == "Jan"


@pytest.mark.asyncio
async def test_insert_batch_without_row_is_an_error(client, store):
    client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[])

    with pytest.raises(StoreError):
        await store.insert_batch(metadata())


@pytest.mark.asyncio
async def test_client_failure_becomes_store_error(client, store):
    client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("timeout")

    with pytest.raises(StoreError, match="insert_transactions failed: timeout"):
        await store.insert_transactions("b-1", [{"ref_id": "R1"}])

    client.table.assert_called_with(TRANSACTIONS_TABLE)


@pytest.mark.asyncio
async def test_query_existing_by_key_uses_mapped_column(client, store):
    select = client.table.return_value.select
    valid_only = select.return_value.in_.return_value.eq
    valid_only.return_value.execute.return_value = MagicMock(
        data=[{"user_id": "U1"}, {"user_id": None}]
    )

    found = await store.query_existing_by_key("account_or_user_id", ["U1", "U2"])

    assert found == {"U1"}
    select.assert_called_once_with("user_id")
    select.return_value.in_.assert_called_once_with("user_id", ["U1", "U2"])
    valid_only.assert_called_once_with("is_valid", True)


@pytest.mark.asyncio
async def test_query_existing_by_key_scoped_to_session(client, store):
    select = client.table.return_value.select
    valid_only = select.return_value.in_.return_value.eq
    by_session = valid_only.return_value.eq
    by_session.return_value.execute.return_value = MagicMock(
        data=[{"ref_id": "R1", BATCHES_TABLE: {"session_id": "user-1"}}]
    )

    found = await store.query_existing_by_key("reference_id", ["R1"], session_id="user-1")

    assert found == {"R1"}
    select.assert_called_once_with(f"ref_id, {BATCHES_TABLE}!inner(session_id)")
    valid_only.assert_called_once_with("is_valid", True)
    by_session.assert_called_once_with(f"{BATCHES_TABLE}.session_id", "user-1")


@pytest.mark.asyncio
async def test_list_batches_applies_filters(client, store):
    eq = client.table.return_value.select.return_value.eq
    ordered = eq.return_value.gte.return_value.lte.return_value.order
    ordered.return_value.execute.return_value = MagicMock(
        data=[
            {"id": "a", "total_lines": 10, "success_count": 9},
            {"id": "b", "total_lines": 10, "success_count": 2},
        ]
    )
    filters = BatchFilter(
        start_date=datetime(2026, 1, 1),
        end_date=datetime(2026, 1, 31),
        min_success_rate=50,
    )

    rows = await store.list_batches("user-1", filters)

    assert [r["id"] for r in rows] == ["a"]
    eq.assert_called_once_with("session_id", "user-1")
    eq.return_value.gte.assert_called_once_with("created_at", "2026-01-01T00:00:00")
    ordered.assert_called_once_with("created_at", desc=True)


@pytest.mark.asyncio
async def test_get_batch_missing(client, store):
    limit = client.table.return_value.select.return_value.eq.return_value.limit
    limit.return_value.execute.return_value = MagicMock(data=[])

    assert await store.get_batch("nope") is None


@pytest.mark.asyncio
async def test_rename_batch(client, store):
    update = client.table.return_value.update
    update.return_value.eq.return_value.execute.return_value = MagicMock(data=[{"id": "b-1"}])

    await store.rename_batch("b-1", "February")

    update.assert_called_once_with({"batch_name": "February"})
    update.return_value.eq.assert_called_once_with("id", "b-1")
