"""
Per-user saved route index.

Usage:
    from routedrafts.features.user_index import UserIndexRepository
"""

from .repository import UserIndexRepository
from .schemas import UserIndexEntry, UserIndexResponse

__all__ = [
    "UserIndexRepository",
    "UserIndexEntry",
    "UserIndexResponse",
]
