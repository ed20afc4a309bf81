"""AlertRouter — broadcast security alerts to subscribed handlers.

Every handler registered at the moment of publication receives the alert
exactly once. Delivery is either inline (``sync=True``) or on a
single-worker executor per subscription, which keeps delivery FIFO per
handler without ordering handlers against each other.

Subscribers live in an immutable tuple that is swapped on every
subscribe/unsubscribe, so a publish in flight always sees a complete
snapshot: either the whole pre-mutation set or the whole post-mutation set.

INVARIANT: Handler failures are logged, never propagated to the publisher.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import structlog

from bootctl.domain.alerts import (
    ROUTE_LOG_LEVELS,
    SecurityAlert,
    Severity,
    meets_threshold,
)
from bootctl.errors import HandlerFailure

logger = logging.getLogger(__name__)


@runtime_checkable
class AlertHandler(Protocol):
    """Anything that can receive a security alert."""

    def handle(self, alert: SecurityAlert) -> None: ...


class CallableHandler:
    """Adapts a plain ``fn(alert)`` to the :class:`AlertHandler` protocol."""

    def __init__(self, fn: Callable[[SecurityAlert], Any], name: str | None = None) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__qualname__", repr(fn))

    def handle(self, alert: SecurityAlert) -> None:
        self._fn(alert)


class LogAlertHandler:
    """Logs every alert at the level its severity route calls for."""

    name = "log"

    def __init__(self, logger_name: str = "bootctl.alerts") -> None:
        self._log = structlog.get_logger(logger_name)

    def handle(self, alert: SecurityAlert) -> None:
        self._log.log(
            ROUTE_LOG_LEVELS[alert.route],
            "security.alert",
            severity=alert.severity.value,
            route=alert.route.value,
            alert_type=alert.type.value,
            message=alert.message,
        )


@dataclass(frozen=True)
class Subscription:
    """A registered handler and its delivery lane."""

    id: str
    name: str
    handler: AlertHandler
    min_severity: Severity
    executor: ThreadPoolExecutor | None


def _as_handler(handler: AlertHandler | Callable[[SecurityAlert], Any]) -> AlertHandler:
    if isinstance(handler, AlertHandler):
        return handler
    if callable(handler):
        return CallableHandler(handler)
    msg = f"Not an alert handler: {handler!r}"
    raise TypeError(msg)


class AlertRouter:
    """Thread-safe publish/subscribe hub for :class:`SecurityAlert`.

    Parameters:
        sync: Deliver inline on the publishing thread instead of per-handler
            executors (useful for tests / ``--sync``).
    """

    def __init__(self, *, sync: bool = False) -> None:
        self._sync = sync
        self._mutate_lock = threading.Lock()
        self._publish_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._subscribers: tuple[Subscription, ...] = ()
        self._ids = itertools.count(1)
        self._futures: list[Future[None]] = []
        self._local = threading.local()
        self._published = 0
        self._delivered = 0
        self._failures = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def sync(self) -> bool:
        return self._sync

    def subscribe(
        self,
        handler: AlertHandler | Callable[[SecurityAlert], Any],
        *,
        min_severity: Severity = Severity.LOW,
        name: str | None = None,
    ) -> str:
        """Register *handler*; returns its subscription id."""
        resolved = _as_handler(handler)
        with self._mutate_lock:
            sub_id = f"sub-{next(self._ids):04d}"
            executor = (
                None
                if self._sync
                else ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"alert-{sub_id}")
            )
            sub = Subscription(
                id=sub_id,
                name=name or getattr(resolved, "name", type(resolved).__name__),
                handler=resolved,
                min_severity=min_severity,
                executor=executor,
            )
            self._subscribers = (*self._subscribers, sub)
        logger.debug("Subscribed alert handler %s as %s", sub.name, sub_id)
        return sub_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription. Unknown ids return False.

        Alerts already queued for the handler are still delivered.
        """
        with self._mutate_lock:
            remaining = tuple(s for s in self._subscribers if s.id != subscription_id)
            removed = [s for s in self._subscribers if s.id == subscription_id]
            self._subscribers = remaining
        for sub in removed:
            if sub.executor is not None:
                sub.executor.shutdown(wait=False)
            logger.debug("Unsubscribed alert handler %s", subscription_id)
        return bool(removed)

    def publish(self, alert: SecurityAlert) -> int:
        """Deliver *alert* to every current subscriber at or above its threshold.

        Every handler in the snapshot receives the alert, including one
        unsubscribed while this publish is in flight.

        Returns the number of handlers targeted. A handler publishing from
        inside a synchronous delivery has its alert queued until the
        current alert has reached every handler, so per-handler order
        still matches publication order.
        """
        if self._closed:
            logger.warning("Alert dropped after router shutdown: %s", alert.message)
            return 0

        snapshot = self._subscribers
        targets = [s for s in snapshot if meets_threshold(alert.severity, s.min_severity)]

        if getattr(self._local, "dispatching", False):
            with self._stats_lock:
                self._published += 1
            self._local.pending.append((alert, targets))
            return len(targets)

        with self._publish_lock:
            with self._stats_lock:
                self._published += 1
            if self._sync:
                self._dispatch_inline(alert, targets)
            else:
                for sub in targets:
                    self._submit(sub, alert)
        return len(targets)

    def subscriptions(self) -> list[dict[str, str]]:
        """Id, name, and threshold of every current subscriber."""
        return [
            {"id": s.id, "name": s.name, "min_severity": s.min_severity.value}
            for s in self._subscribers
        ]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def stats(self) -> dict[str, int]:
        with self._stats_lock:
            return {
                "subscribers": len(self._subscribers),
                "published": self._published,
                "delivered": self._delivered,
                "handler_failures": self._failures,
            }

    def drain(self, timeout: float = 30.0) -> None:
        """Block until all queued async deliveries have finished."""
        with self._stats_lock:
            futures = list(self._futures)
            self._futures.clear()
        if futures:
            wait(futures, timeout=timeout)

    def shutdown(self) -> None:
        """Drain pending deliveries and release every executor."""
        self.drain()
        with self._mutate_lock:
            subs = self._subscribers
            self._subscribers = ()
            self._closed = True
        for sub in subs:
            if sub.executor is not None:
                sub.executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _dispatch_inline(self, alert: SecurityAlert, targets: list[Subscription]) -> None:
        self._local.dispatching = True
        self._local.pending = deque()
        try:
            queue: deque[tuple[SecurityAlert, list[Subscription]]] = self._local.pending
            queue.append((alert, targets))
            while queue:
                current, subs = queue.popleft()
                for sub in subs:
                    self._deliver(sub, current)
        finally:
            self._local.dispatching = False
            self._local.pending = None

    def _submit(self, sub: Subscription, alert: SecurityAlert) -> None:
        assert sub.executor is not None
        try:
            future = sub.executor.submit(self._deliver, sub, alert)
        except RuntimeError:
            # Lane closed by an unsubscribe after this publish took its snapshot.
            logger.debug("Subscription %s closed; delivering inline", sub.id)
            self._deliver(sub, alert)
            return
        with self._stats_lock:
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)

    def _deliver(self, sub: Subscription, alert: SecurityAlert) -> None:
        """Invoke one handler, isolating its failure."""
        try:
            sub.handler.handle(alert)
        except Exception as exc:
            failure = HandlerFailure(sub.id, exc)
            logger.warning("%s", failure, exc_info=exc)
            with self._stats_lock:
                self._failures += 1
        else:
            with self._stats_lock:
                self._delivered += 1
