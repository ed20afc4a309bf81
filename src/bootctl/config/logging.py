"""structlog configuration for bootctl.

Everything goes to stderr so stdout stays reserved for command results.

- Human (default): console lines. Records from the ``bootctl.alerts``
  logger are folded into ``[severity/route] alert_type: message``.
- JSON (``--log-json``): one object per line. Alert fields stay flat so
  a log shipper can filter on ``severity``, ``route`` and ``alert_type``.

Session tokens are masked in both modes.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

ALERT_LOGGER = "bootctl.alerts"
ALERT_FIELDS = ("severity", "route", "alert_type")
SECRET_KEYS = frozenset({"token", "session_token"})
REDACTED = "***"

# Library loggers never go below these levels, even with --verbose.
LIBRARY_LEVELS: dict[str, int] = {
    "sqlalchemy": logging.WARNING,
    "pluggy": logging.WARNING,
}


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask session tokens passed as log fields."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def fold_alert_fields(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Rewrite an alert record's event as one readable console line."""
    if event_dict.get("logger") != ALERT_LOGGER or "severity" not in event_dict:
        return event_dict
    severity, route, alert_type = (event_dict.pop(k, "?") for k in ALERT_FIELDS)
    message = event_dict.pop("message", "")
    event_dict["event"] = f"[{severity}/{route}] {alert_type}: {message}"
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output for bootctl loggers. When False,
            only WARNING+, which still shows PROMINENT and ESCALATE alerts.
        log_json: Use JSON renderer instead of console renderer.
    """
    boot_level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    output_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_json:
        output_processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        output_processors += [
            fold_alert_fields,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=output_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("bootctl").setLevel(boot_level)
    for name, level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)
