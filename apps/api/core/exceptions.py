"""
Custom exception classes and error handling.

Provides consistent error responses across the API, plus the store error
taxonomy that decides which read failures degrade to defaults and which
propagate to the caller.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.exc import (
    ArgumentError,
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    NoResultFound,
    NoSuchModuleError,
    OperationalError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class NotFoundError(APIException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found: {identifier}",
            error_code="NOT_FOUND"
        )


class ValidationError(APIException):
    """Validation error."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )


class UnauthorizedError(APIException):
    """Authentication required."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ConflictError(APIException):
    """Request conflicts with the current state of the resource."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


# ============================================================================
# Store error taxonomy
# ============================================================================

class StoreErrorKind(str, Enum):
    CONNECTIVITY = "connectivity"      # store unreachable or misconfigured
    MISSING_SCHEMA = "missing_schema"  # table or column absent
    MALFORMED = "malformed"            # empty error object from the driver
    NO_ROWS = "no_rows"                # not an error; defaults apply silently
    OTHER = "other"                    # propagated to the caller


# Kinds that a read path with a sensible default absorbs
DEGRADABLE_KINDS = frozenset({
    StoreErrorKind.CONNECTIVITY,
    StoreErrorKind.MISSING_SCHEMA,
    StoreErrorKind.MALFORMED,
    StoreErrorKind.NO_ROWS,
})

_MISSING_SCHEMA_MARKERS = (
    "no such table",
    "no such column",
    "does not exist",
    "undefinedtable",
    "undefinedcolumn",
)
_MISSING_SCHEMA_SQLSTATES = {"42P01", "42703"}


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def classify_store_error(exc: BaseException) -> StoreErrorKind:
    """Map a store/driver exception onto the error taxonomy."""
    if isinstance(exc, NoResultFound):
        return StoreErrorKind.NO_ROWS

    message = _error_message(exc).strip()
    if not message:
        return StoreErrorKind.MALFORMED

    lowered = message.lower()
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _MISSING_SCHEMA_SQLSTATES or any(m in lowered for m in _MISSING_SCHEMA_MARKERS):
        return StoreErrorKind.MISSING_SCHEMA

    if isinstance(exc, (InterfaceError, DisconnectionError, ArgumentError, NoSuchModuleError, OperationalError)):
        return StoreErrorKind.CONNECTIVITY
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return StoreErrorKind.CONNECTIVITY

    return StoreErrorKind.OTHER


@dataclass
class StoreRead(Generic[T]):
    """Outcome of a read that may have fallen back to a default."""
    value: T
    degraded: Optional[StoreErrorKind] = None

    @property
    def is_default(self) -> bool:
        return self.degraded is not None


def read_with_default(db: Any, read: Callable[[], Optional[T]], default: T, label: str) -> StoreRead[T]:
    """
    Run a read, substituting ``default`` for degradable failures.

    A ``None`` result counts as "no rows". Connectivity, schema and malformed
    errors roll the session back, log a warning and return the default.
    Any other error is logged and re-raised.
    """
    try:
        value = read()
    except Exception as e:
        kind = classify_store_error(e)
        _safe_rollback(db)
        if kind in DEGRADABLE_KINDS:
            logger.warning(f"{label}: store read degraded ({kind.value}), using defaults: {e!r}")
            return StoreRead(value=default, degraded=kind)
        logger.error(f"{label}: store read failed: {e}")
        raise

    if value is None:
        return StoreRead(value=default, degraded=StoreErrorKind.NO_ROWS)
    return StoreRead(value=value)


def _safe_rollback(db: Any) -> None:
    try:
        db.rollback()
    except Exception as e:
        logger.debug(f"Rollback after failed read also failed: {e}")
