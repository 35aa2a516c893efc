"""
Centralized API error handling helpers.

Goal: report database connectivity problems as 503 with an actionable hint
instead of a generic 500.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from typing import Any

import asyncpg
from fastapi import HTTPException, status

from dbeval.config import get_settings
from dbeval.errors import ConfigurationError

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.ConnectionDoesNotExistError,
    asyncpg.exceptions.TooManyConnectionsError,
    ConnectionError,
    TimeoutError,
    OSError,
)


@dataclass(frozen=True, slots=True)
class ApiError:
    status_code: int
    code: str
    message: str
    hint: str | None = None
    debug: str | None = None


def _maybe_debug(exc: BaseException) -> str | None:
    if get_settings().APP_DEBUG:
        return str(exc)
    return None


def classify_database_error(exc: BaseException) -> ApiError | None:
    """
    Classify failures that mean "the database is unreachable" rather than
    "the request is broken".
    """
    if isinstance(exc, ConfigurationError):
        return ApiError(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code="DATABASE_NOT_CONFIGURED",
            message="Database connection is not configured.",
            hint="Set " + ", ".join(exc.missing) + " and restart the service.",
            debug=_maybe_debug(exc),
        )

    if isinstance(exc, _CONNECTION_ERRORS):
        return ApiError(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code="DATABASE_UNAVAILABLE",
            message="Failed to connect to the database.",
            hint="Check NEON_DATABASE_URL and network access, then retry.",
            debug=_maybe_debug(exc),
        )

    return None


def http_exception(operation: str, exc: BaseException) -> HTTPException:
    """
    Convert an exception into a consistent HTTPException payload.
    """
    logger.error(
        "API error during '%s': %s\n%s",
        operation,
        exc,
        traceback.format_exc(),
    )

    db_err = classify_database_error(exc)
    if db_err is not None:
        detail: dict[str, Any] = {
            "code": db_err.code,
            "message": db_err.message,
            "operation": operation,
        }
        if db_err.hint:
            detail["hint"] = db_err.hint
        if db_err.debug:
            detail["debug"] = db_err.debug
        return HTTPException(status_code=db_err.status_code, detail=detail)

    # Default: preserve a safe summary + optional debug.
    base_detail: dict[str, Any] = {
        "code": "INTERNAL_ERROR",
        "message": f"{operation} failed.",
        "operation": operation,
    }
    dbg = _maybe_debug(exc)
    if dbg:
        base_detail["debug"] = dbg
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=base_detail,
    )
