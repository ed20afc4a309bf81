"""BootstrapSequencer — run a registry once, in order, isolating failures.

Failure policy:
- OPTIONAL step fails: recorded, logged, a MEDIUM alert is published,
  the run continues with that subsystem degraded.
- CRITICAL step fails: recorded, the run is aborted, a CRITICAL alert is
  published, and :class:`BootstrapError` propagates to the caller.

Exactly one pass. No retries, no reordering, and no deduplication across
separate runs: each step's action owns its own idempotence.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from bootctl.domain.alerts import AlertType, SecurityAlert, Severity
from bootctl.domain.report import BootstrapReport
from bootctl.errors import BootstrapError, SubsystemFailure
from bootctl.services._helpers import describe_error

if TYPE_CHECKING:
    from bootctl.domain.steps import InitStep
    from bootctl.services.alerts import AlertRouter
    from bootctl.services.registry import SubsystemRegistry

logger = logging.getLogger(__name__)


def _raise_for_result(step: InitStep, outcome: Any) -> None:
    """Treat a returned result object with ``ok=False`` as a failure."""
    if getattr(outcome, "ok", True) is not False:
        return
    error = getattr(outcome, "error", None)
    message = getattr(error, "message", None) or "step reported failure"
    raise SubsystemFailure(step.name, message)


class BootstrapSequencer:
    """Executes a :class:`SubsystemRegistry` and builds a report.

    Parameters:
        router: Optional alert router for degraded/aborted notifications.
        timer: Monotonic clock used for step durations.
    """

    def __init__(
        self,
        *,
        router: AlertRouter | None = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._router = router
        self._timer = timer

    def run(self, registry: SubsystemRegistry) -> BootstrapReport:
        """Run every step in order. Freezes *registry*.

        Raises BootstrapError when a CRITICAL step fails; the partially
        filled report travels on the exception.
        """
        registry.freeze()
        steps = registry.steps()
        report = BootstrapReport()
        logger.info("Running %d bootstrap steps", len(steps))

        for index, step in enumerate(steps, 1):
            started = self._timer()
            try:
                if step.guard is not None and not step.guard():
                    report.skipped.append(step.name)
                    logger.info("Step %d/%d %s skipped", index, len(steps), step.name)
                    continue
                outcome = step.action()
                _raise_for_result(step, outcome)
            except Exception as exc:
                report.failed[step.name] = exc
                report.durations_ms[step.name] = (self._timer() - started) * 1000
                if step.is_critical:
                    self._abort(report, steps[index:], step, exc)
                    raise BootstrapError(step.name, exc, report) from exc
                self._degrade(step, exc)
                continue

            report.durations_ms[step.name] = (self._timer() - started) * 1000
            report.succeeded.append(step.name)
            logger.debug("Step %d/%d %s succeeded", index, len(steps), step.name)

        logger.info(
            "Bootstrap finished: %d succeeded, %d failed, %d skipped",
            len(report.succeeded),
            len(report.failed),
            len(report.skipped),
        )
        return report

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _degrade(self, step: InitStep, exc: Exception) -> None:
        failure = exc if isinstance(exc, SubsystemFailure) else SubsystemFailure(
            step.name, describe_error(exc)
        )
        logger.warning("Optional step failed, continuing degraded: %s", failure, exc_info=exc)
        self._publish(
            SecurityAlert(
                type=AlertType.SUBSYSTEM_DEGRADED,
                severity=Severity.MEDIUM,
                message=f"Subsystem {step.name!r} unavailable",
                metadata={"step": step.name, "error": describe_error(exc)},
            )
        )

    def _abort(
        self,
        report: BootstrapReport,
        remaining: tuple[InitStep, ...],
        step: InitStep,
        exc: Exception,
    ) -> None:
        report.aborted = True
        report.not_run.extend(s.name for s in remaining)
        logger.error("Critical step %s failed, aborting bootstrap", step.name, exc_info=exc)
        self._publish(
            SecurityAlert(
                type=AlertType.BOOTSTRAP_ABORTED,
                severity=Severity.CRITICAL,
                message=f"Startup aborted: critical step {step.name!r} failed",
                metadata={"step": step.name, "error": describe_error(exc)},
            )
        )

    def _publish(self, alert: SecurityAlert) -> None:
        if self._router is not None:
            self._router.publish(alert)


def run_bootstrap(
    registry: SubsystemRegistry,
    *,
    router: AlertRouter | None = None,
) -> BootstrapReport:
    """Bootstrap entry point. Raises BootstrapError on a CRITICAL failure."""
    return BootstrapSequencer(router=router).run(registry)
