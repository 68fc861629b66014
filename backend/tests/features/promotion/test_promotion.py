"""
Tests for draft promotion and saved route management.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from routedrafts.features.drafts import DraftService, RouteFragment
from routedrafts.features.promotion import (
    DRAFT_CLEANUP_FAILED,
    INDEX_NOT_UPDATED,
    THUMBNAIL_MISSING,
    PromotionCoordinator,
)
from routedrafts.shared.constants import RouteKind
from routedrafts.shared.errors import ErrorKind, UploadFailure


# =============================================================================
# Test Data
# =============================================================================

OWNER = "user-1"
OTHER = "user-2"

DAY_ONE = {
    "segmentId": "seg-1",
    "name": "Day 1",
    "statistics": {"totalDistance": 10000, "elevationGain": 600},
    "metadata": {"country": "Switzerland", "region": "Valais"},
    "coordinates": [[7.0, 46.0, 400.0], [7.1, 46.05, 900.0]],
    "unpavedSections": [{"startIndex": 0, "endIndex": 1}],
}

DAY_TWO = {
    "segmentId": "seg-2",
    "name": "Day 2",
    "statistics": {"totalDistance": 15000, "elevationGain": 450},
    "metadata": {"country": "Italy"},
    "coordinates": [[7.1, 46.05, 900.0], [7.0005, 46.0005, 420.0]],
}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def coordinator(store, media_client):
    return PromotionCoordinator(store, media_client)


async def make_draft(store, media_client, **fields) -> str:
    service = DraftService(store, media_client)
    fragment = RouteFragment.model_validate({
        "name": "Haute Route",
        "segments": [DAY_ONE, DAY_TWO],
        "pois": {"places": [{"id": "p1", "name": "Cabane"}]},
        "lines": [{"id": "l1"}],
        "photos": [{"id": "ph1", "publicRef": "media/ph1", "url": "https://cdn.test/ph1"}],
        **fields,
    })
    result = await service.save_route_fragment(fragment, OWNER)
    await service.save_description("Glacier crossing", [], OWNER, draft_id=result.value.route_id)
    return result.value.route_id


# =============================================================================
# Test Promotion
# =============================================================================

class TestPromoteDraft:
    """Tests for promote_draft."""

    @pytest.mark.asyncio
    async def test_saved_route_is_complete(self, coordinator, store, media_client):
        """Every sub-document of the draft lands in the saved route."""
        draft_id = await make_draft(store, media_client)

        result = await coordinator.promote_draft(draft_id, "Haute Route 2024", OWNER, tags=["alps"])

        assert result.ok
        assert not result.degraded
        route = (await coordinator.load_saved_route(result.value, OWNER)).value
        assert route.kind == RouteKind.SAVED
        assert route.record.name == "Haute Route 2024"
        assert route.record.promoted_from == draft_id
        assert route.record.description == "Glacier crossing"
        assert route.record.thumbnail_ref == {
            "publicRef": "thumbs/route", "url": "https://cdn.test/thumbs/route.png",
        }
        assert [s.segment_id for s in route.segments] == ["seg-1", "seg-2"]
        assert route.segments[0].coordinates == DAY_ONE["coordinates"]
        assert route.segments[0].unpaved_sections[0].coordinates == DAY_ONE["coordinates"]
        assert route.pois["places"] == [{"id": "p1", "name": "Cabane"}]
        assert route.lines == [{"id": "l1"}]
        assert route.photos[0]["publicRef"] == "media/ph1"
        assert route.description["description"] == "Glacier crossing"

    @pytest.mark.asyncio
    async def test_summary(self, coordinator, store, media_client):
        draft_id = await make_draft(store, media_client)
        saved_id = (await coordinator.promote_draft(draft_id, None, OWNER)).value

        stats = (await coordinator.adapter.get_record(RouteKind.SAVED, saved_id)).statistics
        assert stats["totalDistanceKm"] == 25.0
        assert stats["totalAscentM"] == 1050
        assert stats["unpavedPercentage"] == 4
        assert stats["isLoop"] is True
        assert stats["countries"] == ["Switzerland", "Italy"]
        assert stats["regions"] == ["Valais"]

    @pytest.mark.asyncio
    async def test_index_entry_added(self, coordinator, store, media_client):
        draft_id = await make_draft(store, media_client)
        saved_id = (await coordinator.promote_draft(draft_id, None, OWNER, is_public=True)).value

        entry = await coordinator.index.get_entry(OWNER, saved_id)
        assert entry["name"] == "Haute Route"
        assert entry["isPublic"] is True
        assert entry["statistics"]["totalDistanceKm"] == 25.0

    @pytest.mark.asyncio
    async def test_draft_removed(self, coordinator, store, media_client):
        draft_id = await make_draft(store, media_client)
        await coordinator.promote_draft(draft_id, None, OWNER)

        assert await coordinator.adapter.get_record(RouteKind.DRAFT, draft_id) is None
        assert await store.get(f"route_drafts/{draft_id}/segments/seg-1/data/coords") is None

    @pytest.mark.asyncio
    async def test_thumbnail_failure_degrades(self, store, media_client):
        media_client.upload_remote.side_effect = UploadFailure("HTTP 502")
        coordinator = PromotionCoordinator(store, media_client)
        draft_id = await make_draft(store, media_client)

        result = await coordinator.promote_draft(draft_id, None, OWNER)

        assert result.ok
        assert result.degraded
        assert result.warnings == [THUMBNAIL_MISSING]
        record = await coordinator.adapter.get_record(RouteKind.SAVED, result.value)
        assert record.thumbnail_ref is None

    @pytest.mark.asyncio
    async def test_no_media_client(self, store, media_client):
        draft_id = await make_draft(store, media_client)
        result = await PromotionCoordinator(store, None).promote_draft(draft_id, None, OWNER)
        assert result.warnings == [THUMBNAIL_MISSING]

    @pytest.mark.asyncio
    async def test_cleanup_failure_keeps_saved_route(self, coordinator, store, media_client, monkeypatch):
        """A draft that cannot be deleted does not fail the promotion."""
        draft_id = await make_draft(store, media_client)
        monkeypatch.setattr(store, "delete_tree", AsyncMock(side_effect=SQLAlchemyError("locked")))

        result = await coordinator.promote_draft(draft_id, None, OWNER)

        assert result.ok
        assert result.value
        assert result.warnings == [DRAFT_CLEANUP_FAILED]
        assert await coordinator.adapter.get_record(RouteKind.SAVED, result.value) is not None
        assert await coordinator.adapter.get_record(RouteKind.DRAFT, draft_id) is not None

    @pytest.mark.asyncio
    async def test_index_failure_degrades(self, coordinator, store, media_client, monkeypatch):
        draft_id = await make_draft(store, media_client)
        monkeypatch.setattr(coordinator.index, "upsert", AsyncMock(side_effect=SQLAlchemyError("x")))

        result = await coordinator.promote_draft(draft_id, None, OWNER)

        assert result.ok
        assert INDEX_NOT_UPDATED in result.warnings

    @pytest.mark.asyncio
    async def test_foreign_draft(self, coordinator, store, media_client):
        draft_id = await make_draft(store, media_client)
        result = await coordinator.promote_draft(draft_id, None, OTHER)
        assert result.error == ErrorKind.PERMISSION_DENIED
        assert result.value is None

    @pytest.mark.asyncio
    async def test_missing_draft(self, coordinator):
        result = await coordinator.promote_draft("nope", None, OWNER)
        assert result.error == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_store_not_configured(self):
        result = await PromotionCoordinator(None).promote_draft("d1", None, OWNER)
        assert result.error == ErrorKind.NOT_INITIALIZED


# =============================================================================
# Test Index Listing
# =============================================================================

class TestListSavedRoutes:
    """Tests for list_saved_routes."""

    @pytest.mark.asyncio
    async def test_lists_promoted_route(self, coordinator, store, media_client):
        draft_id = await make_draft(store, media_client)
        saved_id = (await coordinator.promote_draft(draft_id, None, OWNER)).value

        result = await coordinator.list_saved_routes(OWNER)

        assert result.ok
        assert result.value.user_id == OWNER
        assert [e.route_id for e in result.value.routes] == [saved_id]

    @pytest.mark.asyncio
    async def test_store_not_configured(self):
        result = await PromotionCoordinator(None).list_saved_routes(OWNER)
        assert result.error == ErrorKind.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_store_error_is_a_result(self, coordinator, monkeypatch):
        monkeypatch.setattr(coordinator.store, "get", AsyncMock(side_effect=SQLAlchemyError("boom")))
        result = await coordinator.list_saved_routes(OWNER)
        assert result.error == ErrorKind.STORE_ERROR


# =============================================================================
# Test Saved Routes
# =============================================================================

class TestSavedRoutes:
    """Tests for reading, updating and deleting saved routes."""

    @pytest.fixture
    async def saved_id(self, coordinator, store, media_client) -> str:
        draft_id = await make_draft(store, media_client)
        return (await coordinator.promote_draft(draft_id, "Original", OWNER)).value

    @pytest.mark.asyncio
    async def test_private_route_hidden(self, coordinator, saved_id):
        result = await coordinator.load_saved_route(saved_id, OTHER)
        assert result.error == ErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_update_route_fields(self, coordinator, saved_id):
        result = await coordinator.update_saved_route(
            saved_id, {"name": "Renamed", "isPublic": True, "description": "Updated"}, OWNER
        )
        assert result.ok

        record = await coordinator.adapter.get_record(RouteKind.SAVED, saved_id)
        assert record.name == "Renamed"
        assert record.is_public is True
        assert record.description == "Updated"

        entry = await coordinator.index.get_entry(OWNER, saved_id)
        assert entry["name"] == "Renamed"
        assert entry["isPublic"] is True
        assert "description" not in entry

        # Now visible to others
        assert (await coordinator.load_saved_route(saved_id, OTHER)).ok

    @pytest.mark.asyncio
    async def test_update_first_segment_renames_route(self, coordinator, store, media_client):
        draft_id = await make_draft(store, media_client, name="Day 1")
        saved_id = (await coordinator.promote_draft(draft_id, None, OWNER)).value

        result = await coordinator.update_saved_route(
            saved_id, {"name": "Stage 1"}, OWNER, segment_id="seg-1"
        )
        assert result.ok

        record = await coordinator.adapter.get_record(RouteKind.SAVED, saved_id)
        assert record.name == "Stage 1"
        assert (await coordinator.index.get_entry(OWNER, saved_id))["name"] == "Stage 1"

    @pytest.mark.asyncio
    async def test_update_other_segment_keeps_route_name(self, coordinator, saved_id):
        await coordinator.update_saved_route(saved_id, {"name": "Stage 2"}, OWNER, segment_id="seg-2")

        route = (await coordinator.load_saved_route(saved_id, OWNER)).value
        assert route.record.name == "Original"
        assert route.segments[1].name == "Stage 2"

    @pytest.mark.asyncio
    async def test_update_foreign(self, coordinator, saved_id):
        result = await coordinator.update_saved_route(saved_id, {"name": "x"}, OTHER)
        assert result.error == ErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_saved_route_replaces_fragments(self, coordinator, store, media_client, saved_id):
        service = DraftService(store, media_client)
        result = await service.merge_pois({"draggable": [{"id": "d9"}]}, OWNER, permanent_id=saved_id)
        assert result.value.kind == RouteKind.SAVED

        route = (await coordinator.load_saved_route(saved_id, OWNER)).value
        assert route.pois == {"draggable": [{"id": "d9"}], "places": []}

    @pytest.mark.asyncio
    async def test_delete(self, coordinator, store, saved_id):
        result = await coordinator.delete_saved_route(saved_id, OWNER)

        assert result.ok
        assert await coordinator.adapter.get_record(RouteKind.SAVED, saved_id) is None
        assert await store.get(f"saved_routes/{saved_id}/data/segments") is None
        assert await coordinator.index.get_entry(OWNER, saved_id) is None

    @pytest.mark.asyncio
    async def test_delete_foreign(self, coordinator, saved_id):
        result = await coordinator.delete_saved_route(saved_id, OTHER)
        assert result.error == ErrorKind.PERMISSION_DENIED
        assert await coordinator.adapter.get_record(RouteKind.SAVED, saved_id) is not None

    @pytest.mark.asyncio
    async def test_delete_missing_cleans_index(self, coordinator):
        await coordinator.index.upsert(OWNER, {"routeId": "ghost", "name": "Ghost"})

        result = await coordinator.delete_saved_route("ghost", OWNER)

        assert result.ok
        assert await coordinator.index.get_entry(OWNER, "ghost") is None
