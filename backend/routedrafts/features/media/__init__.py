"""
Media handling: uploads, materialization, thumbnails.

Usage:
    from routedrafts.features.media import MediaServiceClient, MediaMaterializer

Components:
- MediaServiceClient: httpx client for the upload endpoint
- MediaMaterializer: uploads pending photo/logo assets, rewrites fragments
- build_static_map_url: thumbnail image URL from segment geometry
"""

from .client import MediaAsset, MediaRef, MediaServiceClient, asset_from_handle
from .materializer import (
    MediaMaterializer,
    resolve_photo_asset,
    resolve_logo_asset,
)
from .static_map import build_static_map_url, sample_points

__all__ = [
    # Client
    "MediaAsset",
    "MediaRef",
    "MediaServiceClient",
    "asset_from_handle",
    # Materializer
    "MediaMaterializer",
    "resolve_photo_asset",
    "resolve_logo_asset",
    # Thumbnails
    "build_static_map_url",
    "sample_points",
]
