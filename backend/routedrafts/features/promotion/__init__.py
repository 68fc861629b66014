"""
Draft promotion and saved route management.

Usage:
    from routedrafts.features.promotion import PromotionCoordinator
"""

from .service import (
    PromotionCoordinator,
    THUMBNAIL_MISSING,
    INDEX_NOT_UPDATED,
    DRAFT_CLEANUP_FAILED,
)

__all__ = [
    "PromotionCoordinator",
    "THUMBNAIL_MISSING",
    "INDEX_NOT_UPDATED",
    "DRAFT_CLEANUP_FAILED",
]
