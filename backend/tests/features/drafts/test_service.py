"""
Tests for DraftService.

Service methods never raise store or media errors; they return a
Result carrying the error kind or the warnings of a degraded save.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from routedrafts.features.drafts import LOGO_PENDING, PHOTOS_PENDING, DraftService, RouteFragment
from routedrafts.shared.constants import RouteKind
from routedrafts.shared.errors import ErrorKind, NotFound, UploadFailure


# =============================================================================
# Test Data
# =============================================================================

OWNER = "user-1"

GPX = b"""<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><name>Morning ride</name><trkseg>
    <trkpt lat="46.0" lon="7.0"><ele>400</ele></trkpt>
    <trkpt lat="46.1" lon="7.1"><ele>450</ele></trkpt>
  </trkseg></trk>
</gpx>
"""


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def service(store, media_client):
    return DraftService(store, media_client)


# =============================================================================
# Test Results
# =============================================================================

class TestDraftServiceResults:
    """Error kinds surfaced through Result."""

    @pytest.mark.asyncio
    async def test_store_not_configured(self):
        result = await DraftService(None).save_route_fragment(RouteFragment(name="x"), OWNER)
        assert not result.ok
        assert result.error == ErrorKind.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_store_unreachable(self, service, monkeypatch):
        failing = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("db down")))
        monkeypatch.setattr(service.adapter.store, "get", failing)
        result = await service.load_route("d1", OWNER)
        assert result.error == ErrorKind.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_not_found(self, service):
        result = await service.load_route("missing", OWNER)
        assert result.error == ErrorKind.NOT_FOUND
        with pytest.raises(NotFound):
            result.unwrap()

    @pytest.mark.asyncio
    async def test_foreign_draft_load_denied(self, service):
        created = (await service.resolve_or_create(OWNER)).value
        result = await service.load_route(created.route_id, "someone-else")
        assert result.error == ErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_public_saved_route_readable(self, service, store):
        await store.set("saved_routes/s1", {"ownerId": OWNER, "isPublic": True, "name": "Open"})
        result = await service.load_route("s1", "someone-else", RouteKind.SAVED)
        assert result.ok
        assert result.value.record.name == "Open"

    @pytest.mark.asyncio
    async def test_master_route_invalid_state(self, service):
        created = (await service.resolve_or_create(OWNER)).value
        result = await service.update_master_route(created.route_id, OWNER, description="x")
        assert result.error == ErrorKind.INVALID_STATE


# =============================================================================
# Test Saves
# =============================================================================

class TestDraftServiceSaves:
    """Fragment saves thread the route id back to the caller."""

    @pytest.mark.asyncio
    async def test_first_save_creates_draft(self, service):
        result = await service.save_route_fragment(RouteFragment(name="Gravel loop"), OWNER)
        assert result.ok
        assert not result.degraded
        assert result.value.created
        assert result.value.kind == RouteKind.DRAFT

        again = await service.save_route_fragment(
            RouteFragment(name="Gravel loop v2"), OWNER, draft_id=result.value.route_id
        )
        assert again.value.route_id == result.value.route_id
        assert not again.value.created

    @pytest.mark.asyncio
    async def test_pending_photos_degrade(self, store):
        client = AsyncMock()
        client.upload.side_effect = UploadFailure("HTTP 503")
        service = DraftService(store, client)

        result = await service.merge_photos([{"id": "p1", "name": "a.jpg", "blob": b"x"}], OWNER)

        assert result.ok
        assert result.degraded
        assert result.warnings == [PHOTOS_PENDING]

    @pytest.mark.asyncio
    async def test_uploaded_photos_not_degraded(self, service):
        result = await service.merge_photos([{"id": "p1", "name": "a.jpg", "blob": b"x"}], OWNER)
        assert result.ok
        assert not result.degraded

    @pytest.mark.asyncio
    async def test_logo_pending(self, store):
        service = DraftService(store, None)
        result = await service.update_header_settings({"logoBlob": b"png"}, OWNER)
        assert result.ok
        assert result.warnings == [LOGO_PENDING]

    @pytest.mark.asyncio
    async def test_logo_uploaded(self, service):
        result = await service.update_header_settings({"logoBlob": b"png"}, OWNER)
        assert result.warnings == []
        route = (await service.load_route(result.value.route_id, OWNER)).value
        assert route.record.header_settings["logoPublicRef"] == "media/logo"

    @pytest.mark.asyncio
    async def test_import_gpx(self, service):
        result = await service.import_gpx(GPX, "ride.gpx", OWNER)
        assert result.ok

        route = (await service.load_route(result.value.route_id, OWNER)).value
        assert route.record.name == "Morning ride"
        assert route.record.source_file_name == "ride.gpx"
        assert len(route.segments) == 1
        assert route.segments[0].statistics["pointCount"] == 2

    @pytest.mark.asyncio
    async def test_import_gpx_into_existing_draft(self, service):
        first = (await service.import_gpx(GPX, "day1.gpx", OWNER)).value
        second = await service.import_gpx(GPX, "day2.gpx", OWNER, draft_id=first.route_id)

        assert second.value.route_id == first.route_id
        route = (await service.load_route(first.route_id, OWNER)).value
        assert len(route.segments) == 2
        # Draft keeps the name from its first file
        assert route.record.source_file_name == "day2.gpx"
        assert route.record.name == "Morning ride"

    @pytest.mark.asyncio
    async def test_import_invalid_gpx(self, service):
        result = await service.import_gpx(b"<gpx", "bad.gpx", OWNER)
        assert result.error == ErrorKind.ENCODING_ERROR

    @pytest.mark.asyncio
    async def test_find_latest_draft(self, service):
        assert (await service.find_latest_draft(OWNER)).value is None
        created = (await service.resolve_or_create(OWNER)).value
        assert (await service.find_latest_draft(OWNER)).value == created.route_id

    @pytest.mark.asyncio
    async def test_delete_last_segment(self, service):
        outcome = (await service.import_gpx(GPX, "ride.gpx", OWNER)).value
        route = (await service.load_route(outcome.route_id, OWNER)).value

        result = await service.delete_segment(outcome.route_id, route.segments[0].segment_id, OWNER)

        assert result.value.draft_deleted
        assert (await service.load_route(outcome.route_id, OWNER)).error == ErrorKind.NOT_FOUND
