"""Security alerts and the severity routing table.

Severity routing is data, not branching: handlers look up
:data:`SEVERITY_ROUTES` to decide how loudly to surface an alert.
The router itself never inspects severity beyond subscription thresholds.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Severity(StrEnum):
    """Ordinal alert severity: LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


def meets_threshold(severity: Severity, minimum: Severity) -> bool:
    """Whether *severity* is at or above *minimum*."""
    return severity.rank >= minimum.rank


class AlertType(StrEnum):
    """What kind of condition raised the alert."""

    BRUTE_FORCE_ATTEMPT = "brute_force_attempt"
    CERTIFICATE_PINNING_VIOLATION = "certificate_pinning_violation"
    UNAUTHORIZED_ACCESS_ATTEMPT = "unauthorized_access_attempt"
    DATA_INTEGRITY_VIOLATION = "data_integrity_violation"
    SESSION_SECURITY_ISSUE = "session_security_issue"
    SUSPICIOUS_INPUT_PATTERN = "suspicious_input_pattern"
    NETWORK_SECURITY_THREAT = "network_security_threat"
    BOOTSTRAP_ABORTED = "bootstrap_aborted"
    SUBSYSTEM_DEGRADED = "subsystem_degraded"
    IDENTITY_UNRESOLVED = "identity_unresolved"
    DEFERRED_TASK_FAILED = "deferred_task_failed"
    GENERIC = "generic"


class AlertRoute(StrEnum):
    """Handler path an alert should take."""

    ESCALATE = "escalate"  # user-facing notification / escalation
    PROMINENT = "prominent"  # surfaced loudly, not interactively
    INFORMATIONAL = "informational"


SEVERITY_ROUTES: dict[Severity, AlertRoute] = {
    Severity.CRITICAL: AlertRoute.ESCALATE,
    Severity.HIGH: AlertRoute.PROMINENT,
    Severity.MEDIUM: AlertRoute.INFORMATIONAL,
    Severity.LOW: AlertRoute.INFORMATIONAL,
}

ROUTE_LOG_LEVELS: dict[AlertRoute, int] = {
    AlertRoute.ESCALATE: logging.ERROR,
    AlertRoute.PROMINENT: logging.WARNING,
    AlertRoute.INFORMATIONAL: logging.INFO,
}


def route_for(severity: Severity) -> AlertRoute:
    """Pure lookup of the handler path for *severity*."""
    return SEVERITY_ROUTES[severity]


class SecurityAlert(BaseModel):
    """An immutable security alert, broadcast to every subscribed handler."""

    model_config = {"frozen": True}

    severity: Severity
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    type: AlertType = AlertType.GENERIC
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def route(self) -> AlertRoute:
        return route_for(self.severity)
