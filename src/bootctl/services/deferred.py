"""DeferredTaskRunner — background work that starts after bootstrap returns.

Tasks submitted during bootstrap are held until :meth:`start`, which the
runtime calls only once the critical path has finished. A deferred
failure is logged and alerted on; it never touches a report that has
already been returned.

INVARIANT: Task failures are warnings, never errors.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from bootctl.domain.alerts import AlertType, SecurityAlert, Severity
from bootctl.services._helpers import describe_error

if TYPE_CHECKING:
    from bootctl.services.alerts import AlertRouter

logger = logging.getLogger(__name__)

Task = Callable[[], Any]


class TaskOutcome(StrEnum):
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DeferredTaskRunner:
    """Holds, runs, and cancels deferred and recurring tasks.

    Parameters:
        router: Receives ``DEFERRED_TASK_FAILED`` alerts.
        max_workers: ThreadPoolExecutor worker count.
        sync: Run held tasks inline inside :meth:`start` (tests / ``--sync``).
    """

    def __init__(
        self,
        *,
        router: AlertRouter | None = None,
        max_workers: int = 2,
        sync: bool = False,
    ) -> None:
        self._router = router
        self._max_workers = max_workers
        self._sync = sync
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._executor: ThreadPoolExecutor | None = None
        self._held: list[tuple[str, Task]] = []
        self._futures: dict[str, Future[None]] = {}
        self._outcomes: dict[str, TaskOutcome] = {}
        self._recurring: list[threading.Thread] = []
        self._started = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._started

    @property
    def stop_event(self) -> threading.Event:
        """Set on shutdown. Long-running tasks should poll it."""
        return self._stop

    def submit(self, name: str, fn: Task) -> None:
        """Queue *fn*. Held until :meth:`start` if not yet started."""
        with self._lock:
            if self._stop.is_set():
                logger.warning("Task %s submitted after shutdown; cancelled", name)
                self._outcomes[name] = TaskOutcome.CANCELLED
                return
            self._outcomes[name] = TaskOutcome.PENDING
            if not self._started:
                self._held.append((name, fn))
                logger.debug("Holding deferred task %s until start", name)
                return
        self._launch(name, fn)

    def start(self) -> None:
        """Release held tasks. Idempotent."""
        with self._lock:
            if self._started or self._stop.is_set():
                return
            self._started = True
            if not self._sync:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="deferred"
                )
            held, self._held = self._held, []
        logger.debug("Starting %d deferred tasks", len(held))
        for name, fn in held:
            self._launch(name, fn)

    def schedule_recurring(self, name: str, interval_seconds: float, fn: Task) -> None:
        """Run *fn* every *interval_seconds* until shutdown. Returns immediately."""
        if interval_seconds <= 0:
            msg = f"Recurring task {name!r} needs a positive interval"
            raise ValueError(msg)

        def loop() -> None:
            while not self._stop.wait(interval_seconds):
                self._execute(name, fn)

        thread = threading.Thread(target=loop, name=f"recurring-{name}", daemon=True)
        with self._lock:
            if self._stop.is_set():
                logger.warning("Recurring task %s scheduled after shutdown; ignored", name)
                return
            self._recurring.append(thread)
            self._outcomes.setdefault(name, TaskOutcome.PENDING)
        thread.start()
        logger.debug("Scheduled recurring task %s every %ss", name, interval_seconds)

    def wait(self, timeout: float | None = 30.0) -> None:
        """Block until every launched one-shot task has finished."""
        with self._lock:
            futures = list(self._futures.values())
        if futures:
            wait(futures, timeout=timeout)

    def results(self) -> dict[str, str]:
        """Task name to outcome: ok, failed, cancelled, or pending."""
        with self._lock:
            return {name: outcome.value for name, outcome in self._outcomes.items()}

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop recurring jobs and cancel tasks that have not started."""
        self._stop.set()
        with self._lock:
            held, self._held = self._held, []
            for name, _fn in held:
                self._outcomes[name] = TaskOutcome.CANCELLED
            executor, self._executor = self._executor, None
            recurring = list(self._recurring)

        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)
        with self._lock:
            for name, future in self._futures.items():
                if future.cancelled():
                    self._outcomes[name] = TaskOutcome.CANCELLED
        if wait:
            for thread in recurring:
                thread.join(timeout=5)
        logger.debug("Deferred task runner shut down")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _launch(self, name: str, fn: Task) -> None:
        if self._sync:
            self._execute(name, fn)
            return
        with self._lock:
            executor = self._executor
            if executor is None:
                self._outcomes[name] = TaskOutcome.CANCELLED
                return
            self._futures[name] = executor.submit(self._execute, name, fn)

    def _execute(self, name: str, fn: Task) -> None:
        """Run one task, isolating its failure."""
        try:
            fn()
        except Exception as exc:
            with self._lock:
                self._outcomes[name] = TaskOutcome.FAILED
            logger.warning("Deferred task %s failed: %s", name, describe_error(exc), exc_info=exc)
            if self._router is not None:
                self._router.publish(
                    SecurityAlert(
                        type=AlertType.DEFERRED_TASK_FAILED,
                        severity=Severity.MEDIUM,
                        message=f"Background task {name!r} failed",
                        metadata={"task": name, "error": describe_error(exc)},
                    )
                )
        else:
            with self._lock:
                self._outcomes[name] = TaskOutcome.OK
