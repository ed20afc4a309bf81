"""SecurityMonitor — turn reported security events into routed alerts.

Per event type: a sliding one-minute window for rate limiting, a counter
for metrics, and a rule lookup in :data:`EVENT_ALERT_RULES`. Failed
authentications are counted per identifier for brute-force detection.
Alerts of the same type are throttled by a cooldown.

:class:`AlertService` exposes manual alerts and event intake to the CLI.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from bootctl.domain.alerts import AlertType, SecurityAlert, Severity
from bootctl.domain.events import (
    ALERT_COOLDOWN_SECONDS,
    EVENT_ALERT_RULES,
    MAX_EVENTS_PER_MINUTE,
    MAX_FAILED_AUTH_ATTEMPTS,
    SecurityEvent,
    SecurityEventType,
)
from bootctl.services._helpers import utc_now
from bootctl.services.base import BaseService
from bootctl.services.result import ServiceResult

if TYPE_CHECKING:
    from bootctl.services.alerts import AlertRouter

logger = logging.getLogger(__name__)

_WINDOW = timedelta(minutes=1)


class SecurityMonitor:
    """Security event intake feeding an :class:`AlertRouter`.

    Parameters:
        router: Where derived alerts are published.
        max_events_per_minute: Events of one type beyond this are dropped.
        max_failed_auth_attempts: Failed logins per identifier before a
            brute-force alert.
        cooldown_seconds: Minimum gap between two alerts of the same type.
        clock: Injectable time source.
    """

    def __init__(
        self,
        router: AlertRouter,
        *,
        max_events_per_minute: int = MAX_EVENTS_PER_MINUTE,
        max_failed_auth_attempts: int = MAX_FAILED_AUTH_ATTEMPTS,
        cooldown_seconds: int = ALERT_COOLDOWN_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._router = router
        self._max_per_minute = max_events_per_minute
        self._max_failed_auth = max_failed_auth_attempts
        self._cooldown = timedelta(seconds=cooldown_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._recent: dict[SecurityEventType, deque[datetime]] = defaultdict(deque)
        self._counts: dict[SecurityEventType, int] = defaultdict(int)
        self._failed_auth: dict[str, int] = defaultdict(int)
        self._last_alert: dict[AlertType, datetime] = {}

    def log_event(self, event: SecurityEvent) -> SecurityAlert | None:
        """Record *event* and publish the alert it triggers, if any.

        Returns the published alert, or None when the event was rate
        limited, triggered nothing, or its alert is cooling down.
        """
        now = self._clock()
        with self._lock:
            window = self._recent[event.type]
            while window and now - window[0] > _WINDOW:
                window.popleft()
            if len(window) >= self._max_per_minute:
                logger.warning("Rate limited security event: %s", event.type.value)
                return None
            window.append(now)
            self._counts[event.type] += 1
            alert = self._evaluate(event, recent=len(window))
            if alert is not None and not self._claim_alert_slot(alert.type, now):
                logger.debug("Alert throttled: %s", alert.type.value)
                alert = None

        logger.info("Security event: %s - %s", event.type.value, event.message)
        if alert is not None:
            self._router.publish(alert)
        return alert

    def metrics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "total_events": sum(self._counts.values()),
                "events_by_type": {k.value: v for k, v in self._counts.items()},
                "active_failed_auth_attempts": len(self._failed_auth),
                "last_alert_times": {k.value: v.isoformat() for k, v in self._last_alert.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._recent.clear()
            self._counts.clear()
            self._failed_auth.clear()
            self._last_alert.clear()

    # ------------------------------------------------------------------
    # Internal (called with the lock held)
    # ------------------------------------------------------------------

    def _evaluate(self, event: SecurityEvent, *, recent: int) -> SecurityAlert | None:
        if event.type is SecurityEventType.AUTH_FAILED:
            return self._on_auth_failed(event)
        if event.type is SecurityEventType.AUTH_SUCCESS:
            identifier = event.metadata.get("identifier")
            if identifier is not None:
                self._failed_auth.pop(str(identifier), None)
            return None

        rule = EVENT_ALERT_RULES.get(event.type)
        if rule is None:
            return None
        if rule.min_recent and recent <= rule.min_recent:
            return None

        metadata = dict(event.metadata)
        if rule.min_recent:
            metadata["count"] = recent
        return SecurityAlert(
            type=rule.alert_type,
            severity=rule.severity,
            message=rule.message,
            metadata=metadata,
        )

    def _on_auth_failed(self, event: SecurityEvent) -> SecurityAlert | None:
        identifier = str(event.metadata.get("identifier", "unknown"))
        self._failed_auth[identifier] += 1
        attempts = self._failed_auth[identifier]
        if attempts < self._max_failed_auth:
            return None
        return SecurityAlert(
            type=AlertType.BRUTE_FORCE_ATTEMPT,
            severity=Severity.HIGH,
            message=f"Multiple failed authentication attempts for: {identifier}",
            metadata={
                "identifier": identifier,
                "attempts": attempts,
                "ip": event.metadata.get("ip", "unknown"),
            },
        )

    def _claim_alert_slot(self, alert_type: AlertType, now: datetime) -> bool:
        last = self._last_alert.get(alert_type)
        if last is not None and now - last < self._cooldown:
            return False
        self._last_alert[alert_type] = now
        return True


def _alert_payload(alert: SecurityAlert) -> dict[str, Any]:
    payload = alert.model_dump(mode="json")
    payload["route"] = alert.route.value
    return payload


class AlertService(BaseService):
    """Manual alert and security-event intake for the CLI."""

    def emit(
        self,
        severity: Severity,
        message: str,
        *,
        alert_type: AlertType = AlertType.GENERIC,
    ) -> ServiceResult:
        """Publish an alert directly to every subscribed handler."""
        op = "emit_alert"
        warnings: list[str] = []
        self._runtime.attach_alert_handlers()
        alert = SecurityAlert(severity=severity, message=message, type=alert_type)
        handlers = self._runtime.router.publish(alert)
        self._settle_alerts(warnings)
        return ServiceResult.success(
            op,
            {"alert": _alert_payload(alert), "handlers": handlers},
            warnings=warnings,
        )

    def event(
        self,
        event_type: SecurityEventType,
        message: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Report a security event through the monitor's rules."""
        op = "log_event"
        warnings: list[str] = []
        self._runtime.attach_alert_handlers()
        event = SecurityEvent(type=event_type, message=message, metadata=metadata or {})
        alert = self._runtime.monitor.log_event(event)
        self._settle_alerts(warnings)
        return ServiceResult.success(
            op,
            {
                "event": event_type.value,
                "alert": _alert_payload(alert) if alert else None,
                "handlers": self._runtime.router.subscriber_count if alert else 0,
            },
            warnings=warnings,
            meta={"metrics": self._runtime.monitor.metrics()},
        )
