"""Raw security events and the rules that turn them into alerts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from bootctl.domain.alerts import AlertType, Severity


class SecurityEventType(StrEnum):
    """Security-relevant things a subsystem can report."""

    AUTH_SUCCESS = "auth_success"
    AUTH_FAILED = "auth_failed"
    SESSION_STARTED = "session_started"
    SESSION_TIMEOUT = "session_timeout"
    SESSION_FORCED_LOGOUT = "session_forced_logout"
    CERTIFICATE_PINNING_BYPASSED = "certificate_pinning_bypassed"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    DATA_TAMPERING = "data_tampering"
    INPUT_VALIDATION_FAILED = "input_validation_failed"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    NETWORK_ANOMALY = "network_anomaly"


class SecurityEvent(BaseModel):
    """A single reported security event."""

    model_config = {"frozen": True}

    type: SecurityEventType
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class AlertRule:
    """Maps an event type to the alert it raises.

    ``min_recent`` > 0 means the alert only fires once more than that many
    events of the type arrived within the last minute.
    """

    alert_type: AlertType
    severity: Severity
    message: str
    min_recent: int = 0


# --- Thresholds ---

MAX_EVENTS_PER_MINUTE = 10
MAX_FAILED_AUTH_ATTEMPTS = 5
ALERT_COOLDOWN_SECONDS = 15 * 60

# AUTH_FAILED is handled separately (per-identifier brute-force counting).
EVENT_ALERT_RULES: dict[SecurityEventType, AlertRule] = {
    SecurityEventType.CERTIFICATE_PINNING_BYPASSED: AlertRule(
        AlertType.CERTIFICATE_PINNING_VIOLATION,
        Severity.CRITICAL,
        "Certificate pinning bypassed - potential MITM attack",
    ),
    SecurityEventType.UNAUTHORIZED_ACCESS: AlertRule(
        AlertType.UNAUTHORIZED_ACCESS_ATTEMPT,
        Severity.HIGH,
        "Unauthorized access attempt detected",
    ),
    SecurityEventType.DATA_TAMPERING: AlertRule(
        AlertType.DATA_INTEGRITY_VIOLATION,
        Severity.HIGH,
        "Data tampering detected",
    ),
    SecurityEventType.SESSION_TIMEOUT: AlertRule(
        AlertType.SESSION_SECURITY_ISSUE,
        Severity.MEDIUM,
        "Session timeout due to inactivity",
    ),
    SecurityEventType.INPUT_VALIDATION_FAILED: AlertRule(
        AlertType.SUSPICIOUS_INPUT_PATTERN,
        Severity.MEDIUM,
        "Multiple input validation failures detected",
        min_recent=3,
    ),
}
