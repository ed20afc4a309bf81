"""BootService — run the bootstrap and describe the configured registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from bootctl.errors import BootstrapError, ConfigurationError
from bootctl.services.base import BaseService
from bootctl.services.result import ServiceResult

if TYPE_CHECKING:
    from bootctl.domain.identity import Session
    from bootctl.domain.report import BootstrapReport
    from bootctl.services.registry import SubsystemRegistry


def _step_rows(registry: SubsystemRegistry, report: BootstrapReport) -> list[dict[str, Any]]:
    """One row per registered step, in execution order."""
    rows: list[dict[str, Any]] = []
    for step in registry:
        status = report.status_of(step.name)
        error = report.failed.get(step.name)
        rows.append(
            {
                "name": step.name,
                "criticality": step.criticality.value,
                "status": status.value if status else "not_run",
                "duration_ms": report.durations_ms.get(step.name),
                "error": f"{type(error).__name__}: {error}" if error else None,
            }
        )
    return rows


def _session_summary(session: Session | None) -> dict[str, Any] | None:
    """The session loaded by the ``auth`` step, without its token."""
    if session is None:
        return None
    return {
        "user_id": session.user_id,
        "created": session.created.isoformat(),
        "last_activity": session.last_activity.isoformat(),
        "expires_at": session.expires_at.isoformat() if session.expires_at else None,
    }


class BootService(BaseService):
    """Bootstrap operations for the CLI."""

    def run(self, *, wait_timeout: float = 30.0) -> ServiceResult:
        """Boot the runtime, wait for deferred work, and report."""
        op = "bootstrap"
        warnings: list[str] = []
        try:
            report = self._runtime.boot(warnings=warnings)
        except ConfigurationError as exc:
            return ServiceResult.failure(op, "CONFIG_INVALID", str(exc))
        except BootstrapError as exc:
            self._settle_alerts(warnings)
            registry = self._runtime.registry
            return ServiceResult.failure(
                op,
                "BOOTSTRAP_ABORTED",
                str(exc),
                detail={
                    "step": exc.step,
                    "report": exc.report.to_dict(),
                    "steps": _step_rows(registry, exc.report) if registry else [],
                },
                warnings=warnings,
            )

        self._runtime.deferred.wait(timeout=wait_timeout)
        self._settle_alerts(warnings)
        for name, error in report.failed.items():
            warnings.append(f"Subsystem {name!r} degraded: {error}")

        identity = self._runtime.identity
        assert self._runtime.registry is not None
        return ServiceResult.success(
            op,
            {
                "report": report.to_dict(),
                "steps": _step_rows(self._runtime.registry, report),
                "session": _session_summary(self._runtime.session),
                "deferred": self._runtime.deferred.results(),
                "identity": identity.model_dump(mode="json") if identity else None,
            },
            warnings=warnings,
            meta={"router": self._runtime.router.stats()},
        )

    def steps(self) -> ServiceResult:
        """List the configured registry without running it."""
        op = "list_steps"
        try:
            registry = self._runtime.build_registry()
        except ConfigurationError as exc:
            return ServiceResult.failure(op, "CONFIG_INVALID", str(exc))
        rows = [
            {
                "name": step.name,
                "criticality": step.criticality.value,
                "guarded": step.guard is not None,
                "description": step.description,
            }
            for step in registry
        ]
        return ServiceResult.success(op, {"steps": rows, "count": len(rows)})
