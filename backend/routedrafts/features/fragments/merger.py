"""
Fragment merger.

POIs, lines and photos arrive incrementally from independent editing
surfaces. Each item carries a stable ``id``; merging concatenates the
stored items with the incoming ones and keeps the last occurrence of
every id, so incoming edits win over stored state.

Saved routes use replace semantics instead: their content is whatever
the caller sends, deduplicated, with no merge against stored state.
"""

from typing import Any, List, Optional, Sequence

POI_BUCKETS = ("draggable", "places")


def _item_id(item: Any, key: str) -> Optional[Any]:
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def merge_by_id(
    existing: Optional[Sequence[Any]],
    incoming: Optional[Sequence[Any]],
    replace: bool = False,
    key: str = "id",
) -> List[Any]:
    """
    Merge two item sequences by id.

    Output order follows the first appearance of each id in
    existing + incoming; a later duplicate replaces the earlier value
    in place. Items without an id are kept as they are.

    Args:
        existing: Stored items
        incoming: Items from the current save
        replace: Ignore existing entirely (saved routes)
        key: Field holding the item id

    Returns:
        New list; inputs are not mutated
    """
    combined = list(incoming or []) if replace else [*(existing or []), *(incoming or [])]

    merged: List[Any] = []
    position: dict = {}

    for item in combined:
        item_id = _item_id(item, key)
        if item_id is None:
            merged.append(item)
            continue
        if item_id in position:
            merged[position[item_id]] = item
        else:
            position[item_id] = len(merged)
            merged.append(item)

    return merged


def merge_pois(
    existing: Optional[dict],
    incoming: Optional[dict],
    replace: bool = False,
) -> dict:
    """
    Merge the draggable and places POI buckets independently.

    A bucket missing from incoming keeps its stored content when
    merging and becomes empty when replacing.
    """
    existing = existing or {}
    incoming = incoming or {}

    result = {}
    for bucket in POI_BUCKETS:
        if not replace and bucket not in incoming:
            result[bucket] = list(existing.get(bucket) or [])
            continue
        result[bucket] = merge_by_id(
            existing.get(bucket), incoming.get(bucket), replace=replace
        )
    return result
