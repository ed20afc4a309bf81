"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def describe_error(exc: BaseException) -> str:
    """``TypeName: message`` for logs and result payloads."""
    return f"{type(exc).__name__}: {exc}"
