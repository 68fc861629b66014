"""
Fragment sanitation applied before persisting.

Strips transient raw-asset fields and reduces third-party payloads to
the references we are allowed to keep.
"""

from typing import List, Optional, Sequence

# Raw-asset handles that must never reach the store
TRANSIENT_ASSET_FIELDS = ("blob", "blobs", "rawAsset", "file")

UNNAMED_PHOTO = "Unnamed Photo"


def _strip_transient(item: dict) -> dict:
    return {k: v for k, v in item.items() if k not in TRANSIENT_ASSET_FIELDS}


def is_blob_url(url: Optional[str]) -> bool:
    """Browser-local object URLs are meaningless outside the session."""
    return isinstance(url, str) and url.startswith("blob:")


def sanitize_poi(poi: dict) -> dict:
    """Keep only {placeId, url} of an external place reference."""
    clean = _strip_transient(poi)
    place = clean.get("externalPlaceRef")
    if isinstance(place, dict):
        clean["externalPlaceRef"] = {
            "placeId": place.get("placeId"),
            "url": place.get("url"),
        }
    return clean


def sanitize_line_photo(photo: dict) -> dict:
    """
    Clean a photo attached to a line.

    Local-only photos are reduced to minimal metadata; they are never
    materialized and carry no asset.
    """
    if photo.get("isLocal"):
        name = photo.get("name") or UNNAMED_PHOTO
        url = photo.get("url")
        return {
            "id": photo.get("id"),
            "name": name,
            "caption": photo.get("caption") or name,
            "isLocal": True,
            "dateAdded": photo.get("dateAdded"),
            "url": None if is_blob_url(url) else url,
        }
    return sanitize_photo(photo)


def sanitize_line(line: dict) -> dict:
    clean = _strip_transient(line)
    if "photos" in clean:
        clean["photos"] = [sanitize_line_photo(p) for p in clean.get("photos") or []]
    return clean


def sanitize_photo(photo: dict) -> dict:
    """
    Clean a route photo.

    Materialized photos keep {publicRef, url}. Anything else is stored
    as pendingUpload so the next save retries it; a blob: URL is
    never stored.
    """
    clean = _strip_transient(photo)

    if clean.get("publicRef"):
        clean.pop("pendingUpload", None)
        return clean

    clean["pendingUpload"] = True
    if is_blob_url(clean.get("url")):
        clean.pop("url")
    return clean


def sanitize_pois(buckets: Optional[dict]) -> dict:
    buckets = buckets or {}
    return {
        name: [sanitize_poi(p) for p in items or []]
        for name, items in buckets.items()
    }


def sanitize_lines(lines: Optional[Sequence[dict]]) -> List[dict]:
    return [sanitize_line(line) for line in lines or []]


def sanitize_photos(photos: Optional[Sequence[dict]]) -> List[dict]:
    return [sanitize_photo(p) for p in photos or []]
