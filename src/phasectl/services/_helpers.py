"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any

from phasectl.services.result import ServiceError, ServiceResult


def utc_now() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (for audit columns and history)."""
    return utc_now().isoformat()


def today() -> date:
    return utc_now().date()


def parse_date(value: str | date | None) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` string. ``None`` passes through.

    Raises:
        ValueError: *value* is not an ISO date.
    """
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


def failure(op: str, code: str, message: str, **detail: Any) -> ServiceResult:
    """Build an ``ok=False`` result."""
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=str(code), message=message, detail=detail),
    )
