"""
Static helper functions for the benchmark harness.
"""

import re
from typing import Any

_SQLSTATE_RE = re.compile(r"\(\s*(\d{5})\s*\)")


def classify_error(exc: BaseException) -> str:
    """
    Return a stable, low-cardinality category for an operation failure.

    Used as a log field so failures can be grouped without reading the full
    message.
    """
    # asyncpg exceptions carry the SQLSTATE directly.
    sqlstate = getattr(exc, "sqlstate", None)
    if sqlstate:
        return f"SQLSTATE_{sqlstate}"

    # PostgREST (Supabase) errors expose the Postgres code as `code`.
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return f"CODE_{code}"

    # Fallback: parse "(23505)" style sqlstate from the message.
    m = _SQLSTATE_RE.search(str(exc or ""))
    if m:
        return f"SQLSTATE_{m.group(1)}"

    return type(exc).__name__


def error_message(exc: BaseException) -> str:
    """Human-readable, never-empty message for a failure."""
    msg = str(exc).strip()
    if msg:
        return msg
    return type(exc).__name__


def truncate_str_for_log(value: Any, *, max_chars: int = 800) -> str:
    """Truncate a string value for logging."""
    text = str(value if value is not None else "")
    if len(text) > max_chars:
        return text[:max_chars] + "…[truncated]"
    return text


def preview_query_for_log(query: str, *, max_chars: int = 2000) -> str:
    """Preview a query for logging, collapsing whitespace."""
    q = re.sub(r"\s+", " ", str(query or "")).strip()
    if len(q) > max_chars:
        return q[:max_chars] + "…[truncated]"
    return q
