"""Tests for the remote store clients (no real network)."""

import json

import httpx
import pytest

from money_tracker.services.storage import (
    ConflictError,
    InMemoryRemoteStore,
    NotFoundError,
    StorageError,
    SupabaseRemoteStore,
)


REST = "https://test-project.supabase.co/rest/v1"


class RecordingBackend:
    """MockTransport handler returning queued (status, body) replies."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.replies.pop(0)
        return httpx.Response(status, json=body)


def _store(backend, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return SupabaseRemoteStore(client, **kwargs)


class TestSelect:

    @pytest.mark.asyncio
    async def test_filters_and_order_become_query_params(self):
        backend = RecordingBackend((200, [{"id": "1"}]))
        rows = await _store(backend).select(
            "expenses", filters={"user_id": "user-1"}, order=("date", False)
        )

        assert rows == [{"id": "1"}]
        request = backend.requests[0]
        assert request.method == "GET"
        assert str(request.url).startswith(f"{REST}/expenses")
        assert request.url.params["select"] == "*"
        assert request.url.params["user_id"] == "eq.user-1"
        assert request.url.params["order"] == "date.desc"

    @pytest.mark.asyncio
    async def test_sends_anon_key_until_signed_in(self):
        backend = RecordingBackend((200, []), (200, []))
        store = _store(backend)

        await store.select("categories")
        assert backend.requests[0].headers["apikey"] == "anon-test-key"
        assert backend.requests[0].headers["authorization"] == "Bearer anon-test-key"

        store.set_access_token("user-token")
        await store.select("categories")
        assert backend.requests[1].headers["authorization"] == "Bearer user-token"


class TestWrites:

    @pytest.mark.asyncio
    async def test_insert_returns_stored_row(self):
        backend = RecordingBackend((201, [{"id": "abc", "name": "Gym"}]))
        row = await _store(backend).insert("categories", {"name": "Gym"})

        assert row == {"id": "abc", "name": "Gym"}
        request = backend.requests[0]
        assert request.method == "POST"
        assert request.headers["prefer"] == "return=representation"
        assert json.loads(request.content) == {"name": "Gym"}

    @pytest.mark.asyncio
    async def test_unique_violation_is_a_conflict(self):
        backend = RecordingBackend((409, {"code": "23505", "message": "duplicate key value"}))
        with pytest.raises(ConflictError) as excinfo:
            await _store(backend).insert("categories", {"name": "Gym"})
        assert excinfo.value.code == "23505"

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        backend = RecordingBackend((400, {"code": "PGRST100", "message": "bad filter"}))
        with pytest.raises(StorageError) as excinfo:
            await _store(backend).select("expenses")
        assert not isinstance(excinfo.value, ConflictError)
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_update_patches_by_id(self):
        backend = RecordingBackend((200, [{"id": "abc", "category": "food"}]))
        row = await _store(backend).update("expenses", "abc", {"category": "food"})

        assert row["category"] == "food"
        request = backend.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.abc"

    @pytest.mark.asyncio
    async def test_update_of_missing_row(self):
        backend = RecordingBackend((200, []))
        with pytest.raises(NotFoundError):
            await _store(backend).update("expenses", "missing", {"note": "x"})

    @pytest.mark.asyncio
    async def test_delete(self):
        backend = RecordingBackend((204, None))
        assert await _store(backend).delete("expenses", "abc") is True
        assert backend.requests[0].method == "DELETE"
        assert backend.requests[0].url.params["id"] == "eq.abc"

    @pytest.mark.asyncio
    async def test_insert_many_posts_one_array(self):
        backend = RecordingBackend((201, [{"id": "a"}, {"id": "b"}]))
        rows = await _store(backend).insert_many("expenses", [{"note": "x"}, {"note": "y"}])

        assert rows == [{"id": "a"}, {"id": "b"}]
        assert len(backend.requests) == 1
        assert json.loads(backend.requests[0].content) == [{"note": "x"}, {"note": "y"}]

    @pytest.mark.asyncio
    async def test_insert_many_of_nothing_sends_nothing(self):
        backend = RecordingBackend()
        assert await _store(backend).insert_many("expenses", []) == []
        assert backend.requests == []


class TestInMemoryStore:

    @pytest.mark.asyncio
    async def test_bulk_insert_is_all_or_nothing(self):
        store = InMemoryRemoteStore()
        store.seed("expenses", [{"id": "taken"}])

        with pytest.raises(ConflictError):
            await store.insert_many("expenses", [{"id": "fresh"}, {"id": "taken"}])

        assert [row["id"] for row in store.rows("expenses")] == ["taken"]

    @pytest.mark.asyncio
    async def test_duplicate_ids_within_a_batch_conflict(self):
        store = InMemoryRemoteStore()
        with pytest.raises(ConflictError):
            await store.insert_many("expenses", [{"id": "same"}, {"id": "same"}])
        assert store.rows("expenses") == []

    @pytest.mark.asyncio
    async def test_primary_key_on_single_insert(self):
        store = InMemoryRemoteStore()
        await store.insert("expenses", {"id": "one"})
        with pytest.raises(ConflictError):
            await store.insert("expenses", {"id": "one"})
