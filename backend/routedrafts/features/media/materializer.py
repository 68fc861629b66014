"""
Media materializer.

Photo and logo fragments may reference a local raw asset only. Before
such a fragment is persisted, the asset is uploaded to the media
service and the fragment is rewritten with the permanent reference.

Best-effort: a failed upload is logged and the fragment stays
pendingUpload, to be retried on the next save.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from routedrafts.shared.errors import RouteStoreError
from routedrafts.features.fragments.sanitizer import TRANSIENT_ASSET_FIELDS, is_blob_url
from .client import MediaAsset, MediaRef, MediaServiceClient, asset_from_handle

logger = logging.getLogger(__name__)

LOGO_RAW_FIELDS = ("logoBlob", "logoFile")


def resolve_photo_asset(photo: dict) -> Optional[MediaAsset]:
    """Explicit blob > embedded blob > file handle."""
    name = photo.get("name") or f"photo-{photo.get('id', 'unknown')}"
    blobs = photo.get("blobs") if isinstance(photo.get("blobs"), dict) else {}
    for handle in (photo.get("blob"), blobs.get("original"), photo.get("file")):
        asset = asset_from_handle(handle, name)
        if asset is not None:
            return asset
    return None


def resolve_logo_asset(header: dict) -> Optional[MediaAsset]:
    """logoBlob > logoData.blobs.original > logoData.file > logoFile."""
    data = header.get("logoData") if isinstance(header.get("logoData"), dict) else {}
    blobs = data.get("blobs") if isinstance(data.get("blobs"), dict) else {}
    candidates = (
        header.get("logoBlob"),
        blobs.get("original"),
        data.get("file"),
        header.get("logoFile"),
    )
    for handle in candidates:
        asset = asset_from_handle(handle, "logo")
        if asset is not None:
            return asset
    return None


def _needs_upload(photo: dict) -> bool:
    return not photo.get("publicRef") and not photo.get("isLocal")


class MediaMaterializer:
    """
    Uploads pending assets and rewrites fragments.

    Usage:
        materializer = MediaMaterializer(MediaServiceClient())
        photos = await materializer.materialize_photos(photos)
        header = await materializer.materialize_logo(header)
    """

    def __init__(self, client: Optional[MediaServiceClient] = None):
        self.client = client

    async def _upload(self, asset: MediaAsset, label: str) -> Optional[MediaRef]:
        if self.client is None:
            logger.warning(f"No media client, leaving {label} pending")
            return None
        try:
            return await self.client.upload(asset)
        except RouteStoreError as e:
            logger.warning(f"Upload of {label} failed, leaving it pending: {e.message}")
            return None

    async def materialize_photos(self, photos: Optional[Sequence[dict]]) -> List[dict]:
        """
        Upload every photo that has a raw asset and no public reference.

        Uploads run concurrently and all finish before this returns.
        Returns new dicts; successful ones carry publicRef/url and no
        raw fields.
        """
        result = [dict(p) for p in photos or []]

        jobs: List[Tuple[int, MediaAsset]] = []
        for index, photo in enumerate(result):
            if not _needs_upload(photo):
                continue
            asset = resolve_photo_asset(photo)
            if asset is None:
                photo["pendingUpload"] = True
                continue
            jobs.append((index, asset))

        if not jobs:
            return result

        refs = await asyncio.gather(
            *(self._upload(asset, f"photo {result[i].get('id')}") for i, asset in jobs)
        )

        uploaded = 0
        for (index, _), ref in zip(jobs, refs):
            photo = result[index]
            if ref is None:
                photo["pendingUpload"] = True
                continue
            for field in TRANSIENT_ASSET_FIELDS:
                photo.pop(field, None)
            photo.pop("pendingUpload", None)
            photo.update(ref.to_doc())
            uploaded += 1

        logger.info(f"Materialized {uploaded}/{len(jobs)} photos")
        return result

    async def materialize_lines(self, lines: Optional[Sequence[dict]]) -> List[dict]:
        """Materialize photos attached to lines (local-only photos are skipped)."""
        result = []
        for line in lines or []:
            line = dict(line)
            if line.get("photos"):
                line["photos"] = await self.materialize_photos(line["photos"])
            result.append(line)
        return result

    async def materialize_logo(self, header: Optional[dict]) -> dict:
        """
        Upload the header logo if only a raw asset is present.

        Raw logo fields are always cleared. A blob: logoUrl with nothing
        to upload is dropped.
        """
        header = dict(header or {})
        asset = resolve_logo_asset(header)

        ref: Optional[MediaRef] = None
        if asset is not None:
            ref = await self._upload(asset, "header logo")

        for field in LOGO_RAW_FIELDS:
            if field in header:
                header[field] = None
        if isinstance(header.get("logoData"), dict):
            header["logoData"] = _strip_logo_data(header["logoData"])

        if ref is not None:
            header["logoUrl"] = ref.url
            header["logoPublicRef"] = ref.public_ref
        elif is_blob_url(header.get("logoUrl")):
            header["logoUrl"] = None

        return header


def _strip_logo_data(data: dict) -> Optional[dict]:
    clean = {k: v for k, v in data.items() if k not in TRANSIENT_ASSET_FIELDS}
    return clean or None
