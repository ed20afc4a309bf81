"""BaseService — foundation for CLI-facing services.

Every service receives the :class:`Runtime` at construction time. The
runtime owns the router, resolver, deferred runner, and database;
services translate its outcomes into :class:`ServiceResult`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bootctl.config.settings import BootSettings
    from bootctl.runtime import Runtime

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class BootService(BaseService):
            def run(self) -> ServiceResult:
                report = self._runtime.boot()
                ...
    """

    def __init__(self, runtime: Runtime) -> None:
        self._runtime = runtime
        self._failures_at_start = runtime.router.stats()["handler_failures"]

    @property
    def _settings(self) -> BootSettings:
        return self._runtime.settings

    def _settle_alerts(self, warnings: list[str]) -> None:
        """Wait for queued alert deliveries so handlers finish before output.

        INVARIANT: Handler trouble is a warning, never an error.
        """
        self._runtime.router.drain()
        failed = self._runtime.router.stats()["handler_failures"] - self._failures_at_start
        if failed:
            logger.debug("%d alert handler failures while settling", failed)
            warnings.append(f"{failed} alert handler(s) failed")
