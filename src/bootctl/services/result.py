"""ServiceResult and ServiceError — the contract between services and the CLI.

INVARIANT: Every CLI-facing service method returns ServiceResult.
Init step actions may return one too; ``ok=False`` counts as a failed step.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"bootstrap"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def success(cls, op: str, data: dict[str, Any] | None = None, **kwargs: Any) -> ServiceResult:
        return cls(ok=True, op=op, data=data or {}, **kwargs)

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> ServiceResult:
        error = ServiceError(code=code, message=message, detail=detail or {})
        return cls(ok=False, op=op, error=error, **kwargs)
