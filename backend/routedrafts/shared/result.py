"""
Structured operation results.

Every caller-facing operation returns a Result so callers can tell
"fully succeeded", "succeeded with a degraded sub-result" (e.g. the
thumbnail is missing) and "failed" apart without reading logs.

Usage:
    @as_result("promote_draft")
    async def promote_draft(...) -> str:
        ...
        return saved_id

    result = await coordinator.promote_draft(...)
    if result.ok:
        use(result.value)
"""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from .errors import ErrorKind, RouteStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of an engine operation."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def degraded(self) -> bool:
        """Succeeded, but some best-effort step did not."""
        return self.ok and bool(self.warnings)

    @classmethod
    def success(cls, value: Any = None, warnings: Optional[list[str]] = None) -> "Result":
        return cls(value=value, warnings=list(warnings or []))

    @classmethod
    def fail(cls, kind: ErrorKind, message: Optional[str] = None) -> "Result":
        return cls(error=kind, message=message or kind.value)

    def unwrap(self) -> T:
        """Return the value or raise the matching RouteStoreError."""
        if not self.ok:
            from . import errors
            exc_type = {
                ErrorKind.NOT_INITIALIZED: errors.NotInitialized,
                ErrorKind.NOT_FOUND: errors.NotFound,
                ErrorKind.PERMISSION_DENIED: errors.PermissionDenied,
                ErrorKind.ENCODING_ERROR: errors.EncodingError,
                ErrorKind.UPLOAD_FAILURE: errors.UploadFailure,
                ErrorKind.INVALID_STATE: errors.InvalidState,
            }.get(self.error, RouteStoreError)
            raise exc_type(self.message or "")
        return self.value


def as_result(operation: str) -> Callable:
    """
    Wrap an async operation so it always returns a Result.

    RouteStoreError subclasses map to their own kind; an unreachable
    database maps to NOT_INITIALIZED; any other SQLAlchemy error maps
    to STORE_ERROR. Nothing else is caught.
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Result]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Result:
            try:
                value = await func(*args, **kwargs)
            except RouteStoreError as e:
                if e.kind in (ErrorKind.NOT_FOUND, ErrorKind.PERMISSION_DENIED):
                    logger.warning(f"{operation}: {e.kind.value}: {e.message}")
                else:
                    logger.error(f"{operation} failed: {e.kind.value}: {e.message}")
                return Result.fail(e.kind, e.message)
            except (OperationalError, InterfaceError) as e:
                logger.error(f"{operation} failed: document store unreachable: {e}")
                return Result.fail(ErrorKind.NOT_INITIALIZED, "Document store unreachable")
            except SQLAlchemyError as e:
                logger.error(f"{operation} failed: store error: {e}")
                return Result.fail(ErrorKind.STORE_ERROR, str(e))

            if isinstance(value, Result):
                return value
            return Result.success(value)

        return wrapper

    return decorator
