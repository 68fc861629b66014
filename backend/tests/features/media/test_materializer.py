"""
Tests for the media materializer.

Uploads are best-effort: one failing photo must not block the others.
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from routedrafts.features.media import (
    MediaMaterializer,
    MediaRef,
    MediaServiceClient,
    resolve_logo_asset,
    resolve_photo_asset,
)
from routedrafts.shared.errors import UploadFailure


# =============================================================================
# Test Asset Resolution
# =============================================================================

class TestResolveAssets:
    """Priority order of raw-asset handles."""

    def test_photo_blob_first(self):
        photo = {"id": "p", "blob": b"explicit", "blobs": {"original": b"embedded"}, "file": b"file"}
        assert resolve_photo_asset(photo).content == b"explicit"

    def test_photo_embedded_before_file(self):
        photo = {"id": "p", "blobs": {"original": b"embedded"}, "file": b"file"}
        assert resolve_photo_asset(photo).content == b"embedded"

    def test_photo_file_last(self):
        assert resolve_photo_asset({"id": "p", "file": b"file"}).content == b"file"

    def test_photo_nothing(self):
        assert resolve_photo_asset({"id": "p", "url": "blob:x"}) is None

    def test_logo_order(self):
        header = {
            "logoBlob": None,
            "logoData": {"blobs": {"original": b"embedded"}, "file": b"datafile"},
            "logoFile": b"file",
        }
        assert resolve_logo_asset(header).content == b"embedded"
        assert resolve_logo_asset({"logoFile": b"file"}).content == b"file"


# =============================================================================
# Test Photos
# =============================================================================

class TestMaterializePhotos:
    """Tests for materialize_photos."""

    @pytest.mark.asyncio
    async def test_uploads_and_strips_raw_fields(self, media_client):
        materializer = MediaMaterializer(media_client)
        photos = await materializer.materialize_photos([
            {"id": "p1", "name": "a.jpg", "blob": b"raw", "pendingUpload": True},
        ])
        assert photos == [{
            "id": "p1",
            "name": "a.jpg",
            "publicRef": "media/a.jpg",
            "url": "https://cdn.test/a.jpg",
        }]

    @pytest.mark.asyncio
    async def test_partial_failure(self):
        """The failing upload stays pending; the others are materialized."""

        async def upload(asset, folder=None):
            if asset.filename == "bad.jpg":
                raise UploadFailure("HTTP 500")
            return MediaRef(public_ref=f"media/{asset.filename}", url=f"https://cdn.test/{asset.filename}")

        client = AsyncMock()
        client.upload.side_effect = upload
        materializer = MediaMaterializer(client)

        photos = await materializer.materialize_photos([
            {"id": "p1", "name": "good.jpg", "blob": b"1"},
            {"id": "p2", "name": "bad.jpg", "blob": b"2"},
            {"id": "p3", "name": "also-good.jpg", "file": b"3"},
        ])

        assert photos[0]["publicRef"] == "media/good.jpg"
        assert photos[1]["pendingUpload"] is True
        assert photos[1]["blob"] == b"2"
        assert photos[2]["publicRef"] == "media/also-good.jpg"
        assert client.upload.await_count == 3

    @pytest.mark.asyncio
    async def test_unexpected_response_leaves_photo_pending(self):
        def handler(request):
            if b"bad.jpg" in request.read():
                return httpx.Response(200, json=["not", "an", "object"])
            return httpx.Response(200, json={"public_id": "media/good", "secure_url": "https://cdn.test/good"})

        client = MediaServiceClient(
            upload_url="https://media.test/upload", transport=httpx.MockTransport(handler)
        )
        photos = await MediaMaterializer(client).materialize_photos([
            {"id": "p1", "name": "good.jpg", "blob": b"1"},
            {"id": "p2", "name": "bad.jpg", "blob": b"2"},
        ])

        assert photos[0]["publicRef"] == "media/good"
        assert photos[1]["pendingUpload"] is True

    @pytest.mark.asyncio
    async def test_no_asset_left_pending(self, media_client):
        photos = await MediaMaterializer(media_client).materialize_photos([{"id": "p1"}])
        assert photos == [{"id": "p1", "pendingUpload": True}]
        media_client.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_already_published_skipped(self, media_client):
        photo = {"id": "p1", "publicRef": "media/p1", "url": "https://cdn.test/p1"}
        photos = await MediaMaterializer(media_client).materialize_photos([photo])
        assert photos == [photo]
        media_client.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_local_photos_skipped(self, media_client):
        photo = {"id": "p1", "isLocal": True, "blob": b"raw"}
        await MediaMaterializer(media_client).materialize_photos([photo])
        media_client.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_client(self):
        photos = await MediaMaterializer(None).materialize_photos([{"id": "p1", "blob": b"x"}])
        assert photos[0]["pendingUpload"] is True

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, media_client):
        original = {"id": "p1", "name": "a.jpg", "blob": b"raw"}
        await MediaMaterializer(media_client).materialize_photos([original])
        assert original == {"id": "p1", "name": "a.jpg", "blob": b"raw"}

    @pytest.mark.asyncio
    async def test_line_photos(self, media_client):
        lines = await MediaMaterializer(media_client).materialize_lines([
            {"id": "l1", "photos": [{"id": "p1", "name": "l.jpg", "blob": b"x"}]},
            {"id": "l2"},
        ])
        assert lines[0]["photos"][0]["publicRef"] == "media/l.jpg"
        assert lines[1] == {"id": "l2"}


# =============================================================================
# Test Logo
# =============================================================================

class TestMaterializeLogo:
    """Tests for materialize_logo."""

    @pytest.mark.asyncio
    async def test_uploaded_logo(self, media_client):
        header = await MediaMaterializer(media_client).materialize_logo({
            "title": "Tour",
            "logoBlob": b"png",
            "logoUrl": "blob:http://localhost/1",
        })
        assert header["logoBlob"] is None
        assert header["logoUrl"] == "https://cdn.test/logo"
        assert header["logoPublicRef"] == "media/logo"
        assert header["title"] == "Tour"

    @pytest.mark.asyncio
    async def test_failed_logo_drops_blob_url(self):
        client = AsyncMock()
        client.upload.side_effect = UploadFailure("down")
        header = await MediaMaterializer(client).materialize_logo({
            "logoFile": b"png",
            "logoUrl": "blob:http://localhost/1",
        })
        assert header["logoFile"] is None
        assert header["logoUrl"] is None
        assert "logoPublicRef" not in header

    @pytest.mark.asyncio
    async def test_logo_data_stripped(self, media_client):
        header = await MediaMaterializer(media_client).materialize_logo({
            "logoData": {"blobs": {"original": b"png"}, "width": 120},
        })
        assert header["logoData"] == {"width": 120}

    @pytest.mark.asyncio
    async def test_existing_logo_untouched(self, media_client):
        header = await MediaMaterializer(media_client).materialize_logo({
            "logoUrl": "https://cdn.test/old",
            "logoPublicRef": "media/old",
        })
        assert header == {"logoUrl": "https://cdn.test/old", "logoPublicRef": "media/old"}
        media_client.upload.assert_not_awaited()
