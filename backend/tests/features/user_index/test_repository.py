"""
Tests for the per-user route index.
"""

import pytest

from routedrafts.features.user_index import UserIndexRepository
from routedrafts.shared.errors import EncodingError


USER = "user-1"


@pytest.fixture
def index(store):
    return UserIndexRepository(store)


class TestUpsert:
    """Tests for upsert."""

    @pytest.mark.asyncio
    async def test_insert(self, index, store):
        entry = await index.upsert(USER, {"routeId": "r1", "name": "Alps", "isPublic": False})

        assert entry["routeId"] == "r1"
        assert entry["createdAt"]
        doc = await store.get("user_route_index/user-1")
        assert doc["userId"] == USER
        assert doc["schemaVersion"] == 1
        assert [r["routeId"] for r in doc["routes"]] == ["r1"]

    @pytest.mark.asyncio
    async def test_idempotent(self, index, store):
        """Upserting identical data twice leaves the document untouched."""
        first = await index.upsert(USER, {"routeId": "r1", "name": "Alps"})
        doc_before = await store.get("user_route_index/user-1")

        second = await index.upsert(USER, {"routeId": "r1", "name": "Alps"})

        assert second == first
        assert await store.get("user_route_index/user-1") == doc_before

    @pytest.mark.asyncio
    async def test_update_keeps_created_at(self, index):
        first = await index.upsert(USER, {"routeId": "r1", "name": "Alps"})
        second = await index.upsert(USER, {"routeId": "r1", "name": "Alps 2", "createdAt": "1999-01-01"})

        assert second["name"] == "Alps 2"
        assert second["createdAt"] == first["createdAt"]

    @pytest.mark.asyncio
    async def test_requires_route_id(self, index):
        with pytest.raises(EncodingError):
            await index.upsert(USER, {"name": "no id"})


class TestRemove:
    """Tests for remove."""

    @pytest.mark.asyncio
    async def test_remove(self, index):
        await index.upsert(USER, {"routeId": "r1"})
        await index.upsert(USER, {"routeId": "r2"})

        assert await index.remove(USER, "r1")
        assert [e.route_id for e in await index.list_entries(USER)] == ["r2"]

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, index):
        assert not await index.remove(USER, "nope")
        await index.upsert(USER, {"routeId": "r1"})
        assert not await index.remove(USER, "nope")
        assert len(await index.list_entries(USER)) == 1


class TestRefresh:
    """Tests for refresh."""

    @pytest.mark.asyncio
    async def test_updates_existing_only(self, index):
        await index.upsert(USER, {"routeId": "r1", "name": "Alps"})

        assert await index.refresh(USER, "r1", {"name": "Pyrenees"})
        assert not await index.refresh(USER, "r2", {"name": "Ghost"})

        assert (await index.get_entry(USER, "r1"))["name"] == "Pyrenees"
        assert await index.get_entry(USER, "r2") is None

    @pytest.mark.asyncio
    async def test_queues_into_batch(self, index, store):
        await index.upsert(USER, {"routeId": "r1", "name": "Alps"})

        batch = store.batch()
        await index.refresh(USER, "r1", {"name": "Queued"}, batch=batch)
        assert (await index.get_entry(USER, "r1"))["name"] == "Alps"

        await batch.commit()
        assert (await index.get_entry(USER, "r1"))["name"] == "Queued"


class TestListEntries:

    @pytest.mark.asyncio
    async def test_newest_first(self, index):
        await index.upsert(USER, {"routeId": "r1"})
        await index.upsert(USER, {"routeId": "r2"})
        await index.refresh(USER, "r1", {"name": "touched"})

        entries = await index.list_entries(USER)
        assert [e.route_id for e in entries] == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, index):
        assert await index.list_entries("nobody") == []
