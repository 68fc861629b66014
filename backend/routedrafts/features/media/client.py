"""
Media service client.

Uploads photos, header logos and map thumbnails to a CDN-style media
service using its unsigned upload endpoint (Cloudinary-compatible
form fields: file, upload_preset, folder, api_key).

The service answers with a public id and a secure URL; both are kept
on the fragment as {publicRef, url}.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from routedrafts.config import settings
from routedrafts.shared.errors import NotInitialized, UploadFailure

logger = logging.getLogger(__name__)


@dataclass
class MediaAsset:
    """Raw asset bytes ready to upload."""
    content: bytes
    filename: str = "upload"
    content_type: str = "application/octet-stream"


@dataclass
class MediaRef:
    """Permanent reference returned by the media service."""
    public_ref: str
    url: str

    def to_doc(self) -> dict:
        return {"publicRef": self.public_ref, "url": self.url}


def asset_from_handle(handle: Any, filename: str = "upload") -> Optional[MediaAsset]:
    """
    Turn a raw-asset handle into uploadable bytes.

    Accepts bytes, a base64 data URL, or a file-like object with a
    synchronous read(). Anything else is not resolvable.
    """
    if handle is None:
        return None
    if isinstance(handle, MediaAsset):
        return handle
    if isinstance(handle, (bytes, bytearray)):
        return MediaAsset(bytes(handle), filename) if handle else None
    if isinstance(handle, str):
        if not handle.startswith("data:") or "," not in handle:
            return None
        header, encoded = handle.split(",", 1)
        content_type = header[5:].split(";")[0] or "application/octet-stream"
        try:
            content = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            logger.warning(f"Undecodable data URL for {filename}")
            return None
        return MediaAsset(content, filename, content_type) if content else None
    if hasattr(handle, "read"):
        content = handle.read()
        name = getattr(handle, "name", None) or filename
        return MediaAsset(content, str(name)) if content else None
    return None


class MediaServiceClient:
    """
    Async client for the media service.

    Usage:
        client = MediaServiceClient()
        ref = await client.upload(MediaAsset(data, "photo.jpg", "image/jpeg"))
        thumb = await client.upload_remote(static_map_url)
    """

    def __init__(
        self,
        upload_url: Optional[str] = None,
        upload_preset: Optional[str] = None,
        api_key: Optional[str] = None,
        folder: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.upload_url = upload_url or settings.media_upload_url
        self.upload_preset = upload_preset or settings.media_upload_preset
        self.api_key = api_key or settings.media_api_key
        self.folder = folder or settings.media_folder
        self.timeout = timeout or settings.media_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.upload_url)

    def _form_fields(self, folder: Optional[str]) -> dict:
        data = {"folder": folder or self.folder}
        if self.upload_preset:
            data["upload_preset"] = self.upload_preset
        if self.api_key:
            data["api_key"] = self.api_key
        return data

    async def upload(self, asset: MediaAsset, folder: Optional[str] = None) -> MediaRef:
        """
        Upload raw bytes.

        Raises:
            NotInitialized: no upload endpoint configured
            UploadFailure: transport error or non-2xx response
        """
        files = {"file": (asset.filename, asset.content, asset.content_type)}
        return await self._post(self._form_fields(folder), files=files, label=asset.filename)

    async def upload_remote(self, url: str, folder: Optional[str] = None) -> MediaRef:
        """Ask the media service to fetch and store a remote image."""
        data = self._form_fields(folder)
        data["file"] = url
        return await self._post(data, files=None, label="remote image")

    async def _post(self, data: dict, files: Optional[dict], label: str) -> MediaRef:
        if not self.configured:
            raise NotInitialized("Media service is not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.upload_url, data=data, files=files)
        except httpx.HTTPError as e:
            raise UploadFailure(f"Upload of {label} failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Media upload failed ({response.status_code}): {response.text}")
            raise UploadFailure(f"Upload of {label} failed: HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise UploadFailure(f"Upload of {label} returned invalid JSON") from e

        if not isinstance(body, dict):
            raise UploadFailure(f"Upload of {label} returned an unexpected payload")

        public_ref = body.get("public_id")
        url = body.get("secure_url") or body.get("url")
        if not public_ref or not url:
            raise UploadFailure(f"Upload of {label} returned no reference")

        logger.debug(f"Uploaded {label} as {public_ref}")
        return MediaRef(public_ref=public_ref, url=url)
