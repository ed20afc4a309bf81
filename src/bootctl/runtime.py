"""Runtime — composition root for one bootctl process.

Owns exactly one AlertRouter, SecurityMonitor, IdentityResolver,
DeferredTaskRunner, PluginManager, and state database. Nothing here is a
module-level singleton: tests build as many runtimes as they like.

The built-in step table maps configured step names to runtime methods.
Configuration decides order and criticality; the table decides what
each name does.
"""

from __future__ import annotations

import base64
import binascii
import functools
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from bootctl.domain.identity import IdentityState, Session
from bootctl.errors import ConfigurationError
from bootctl.infrastructure.backend import IdentityBackend, LocalIdentityBackend
from bootctl.infrastructure.database.engine import init_database
from bootctl.infrastructure.device import probe_device
from bootctl.infrastructure.identity_store import IdentityStore
from bootctl.plugins.builtins.escalation import EscalationPlugin
from bootctl.plugins.manager import PluginManager
from bootctl.services.alerts import AlertRouter, LogAlertHandler
from bootctl.services.bootstrap import run_bootstrap
from bootctl.services.deferred import DeferredTaskRunner
from bootctl.services.identity import IdentityResolver, MergeDelegate
from bootctl.services.monitor import SecurityMonitor
from bootctl.services.registry import SubsystemRegistry

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

    from bootctl.config.settings import BootSettings
    from bootctl.domain.identity import DeviceAttributes
    from bootctl.domain.report import BootstrapReport

logger = logging.getLogger(__name__)

PIN_PREFIX = "sha256/"
PIN_DIGEST_BYTES = 32

# name -> (runtime method, guarded by pairing, description)
BUILTIN_STEPS: dict[str, tuple[str, bool, str]] = {
    "state-store": ("_step_state_store", False, "Create the state database"),
    "security-config": ("_step_security_config", False, "Validate pinned-host configuration"),
    "auth": ("_step_auth", True, "Load the persisted session"),
    "security-monitor": ("_step_security_monitor", False, "Subscribe the alert log handler"),
    "alert-plugins": ("_step_alert_plugins", False, "Subscribe plugin alert handlers"),
    "scheduler": ("_step_scheduler", False, "Schedule recurring maintenance"),
    "identity": ("_step_identity", True, "Resolve identity in the background"),
}


def validate_pin(pin: str) -> None:
    """Raise ValueError unless *pin* is ``sha256/<base64 SHA-256 digest>``."""
    if not pin.startswith(PIN_PREFIX):
        msg = f"pin must start with {PIN_PREFIX!r}: {pin!r}"
        raise ValueError(msg)
    try:
        digest = base64.b64decode(pin[len(PIN_PREFIX) :], validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = f"pin is not valid base64: {pin!r}"
        raise ValueError(msg) from exc
    if len(digest) != PIN_DIGEST_BYTES:
        msg = f"pin digest must be {PIN_DIGEST_BYTES} bytes, got {len(digest)}: {pin!r}"
        raise ValueError(msg)


class Runtime:
    """Wires settings to live components and runs the bootstrap.

    Parameters:
        settings: Resolved configuration.
        in_memory: Use an in-memory state database (tests, dry runs).
        backend: Identity backend; defaults to :class:`LocalIdentityBackend`.
        device_source: Device attribute probe; defaults to
            :func:`probe_device` with the configured overrides.
        merge_delegate: Receives anonymous-to-authenticated promotions.
    """

    def __init__(
        self,
        settings: BootSettings,
        *,
        in_memory: bool = False,
        backend: IdentityBackend | None = None,
        device_source: Callable[[], DeviceAttributes] | None = None,
        merge_delegate: MergeDelegate | None = None,
    ) -> None:
        self.settings = settings
        self._in_memory = in_memory
        self._engine: Engine | None = None
        self._store: IdentityStore | None = None
        self._resolver: IdentityResolver | None = None
        self._backend = backend or LocalIdentityBackend(settings.identity.backend_namespace)
        self._device_source = device_source or functools.partial(
            probe_device, dict(settings.identity.attributes)
        )
        self._merge_delegate = merge_delegate
        self._log_subscription: str | None = None
        self._plugins_loaded = False

        self.router = AlertRouter(sync=settings.sync_alerts)
        self.monitor = SecurityMonitor(
            self.router,
            max_events_per_minute=settings.alerts.max_events_per_minute,
            max_failed_auth_attempts=settings.alerts.max_failed_auth_attempts,
            cooldown_seconds=settings.alerts.cooldown_seconds,
        )
        self.deferred = DeferredTaskRunner(
            router=self.router,
            max_workers=settings.scheduler.max_workers,
            sync=settings.sync,
        )
        self.plugins = PluginManager()

        self.registry: SubsystemRegistry | None = None
        self.session: Session | None = None
        self.identity: IdentityState | None = None
        self.pinned_hosts: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Lazy components
    # ------------------------------------------------------------------

    @property
    def engine(self) -> Engine:
        """The state database engine (created on first access)."""
        if self._engine is None:
            self._engine = init_database(None if self._in_memory else self.settings.state_dir)
        return self._engine

    @property
    def store(self) -> IdentityStore:
        if self._store is None:
            self._store = IdentityStore(self.engine)
        return self._store

    @property
    def resolver(self) -> IdentityResolver:
        if self._resolver is None:
            self._resolver = IdentityResolver(
                self.store,
                self._backend,
                self._device_source,
                router=self.router,
                session_timeout=timedelta(minutes=self.settings.identity.session_timeout_minutes),
                expired_policy=self.settings.identity.expired_session,
                merge_delegate=self._merge_delegate,
            )
        return self._resolver

    @property
    def paired(self) -> bool:
        return self.settings.device.paired

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def load_plugins(self) -> list[str]:
        """Register built-ins and discover plugins. Idempotent."""
        if not self._plugins_loaded:
            self.plugins.register_plugin(EscalationPlugin(), name="escalation")
            cfg = self.settings.plugins
            local_dir = self.settings.state_dir / "plugins" if cfg.local else None
            self.plugins.discover_and_load(local_dir=local_dir, entry_points=cfg.entry_points)
            self._plugins_loaded = True
        return self.plugins.list_plugin_names()

    def build_registry(self) -> SubsystemRegistry:
        """Configured steps plus plugin steps, frozen.

        Raises ConfigurationError for a step name with no built-in action.
        Invalid plugin steps are skipped with a warning.
        """
        registry = SubsystemRegistry()
        for cfg in self.settings.bootstrap.steps:
            entry = BUILTIN_STEPS.get(cfg.name)
            if entry is None:
                msg = f"Unknown bootstrap step: {cfg.name!r}"
                raise ConfigurationError(msg)
            method, guarded, description = entry
            registry.add(
                cfg.name,
                getattr(self, method),
                criticality=cfg.criticality,
                guard=self._is_paired if guarded else None,
                description=description,
            )

        self.load_plugins()
        for step in self.plugins.collect_init_steps(self):
            try:
                registry.register(step)
            except ConfigurationError as exc:
                logger.warning("Skipping plugin step: %s", exc)

        self.registry = registry.freeze()
        return registry

    def boot(self, *, warnings: list[str] | None = None) -> BootstrapReport:
        """Build and run the registry, then start deferred work.

        Raises BootstrapError when a CRITICAL step fails; deferred tasks are
        not started in that case.
        """
        registry = self.build_registry()
        report = run_bootstrap(registry, router=self.router)
        self.deferred.start()
        self.plugins.notify_post_bootstrap(report, warnings if warnings is not None else [])
        return report

    def attach_alert_handlers(self) -> None:
        """Subscribe the log handler and plugin handlers outside a bootstrap."""
        self._step_security_monitor()
        self._step_alert_plugins()

    def close(self) -> None:
        """Stop background work and release the database."""
        self.deferred.shutdown(wait=True)
        self.router.shutdown()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._store = None
            self._resolver = None

    def __enter__(self) -> Runtime:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Built-in step actions
    # ------------------------------------------------------------------

    def _is_paired(self) -> bool:
        return self.paired

    def _step_state_store(self) -> None:
        _ = self.engine

    def _step_security_config(self) -> None:
        pinned: dict[str, list[str]] = {}
        for host, pins in self.settings.security.pinned_hosts.items():
            if not host.strip():
                msg = "pinned host name is empty"
                raise ValueError(msg)
            if not pins:
                msg = f"no pins configured for {host!r}"
                raise ValueError(msg)
            for pin in pins:
                validate_pin(pin)
            pinned[host] = list(pins)
        self.pinned_hosts = pinned
        logger.debug("Validated pins for %d hosts", len(pinned))

    def _step_auth(self) -> None:
        self.session = self.store.load_session()
        logger.debug("Persisted session %s", "found" if self.session else "absent")

    def _step_security_monitor(self) -> None:
        if self.settings.alerts.log_handler and self._log_subscription is None:
            self._log_subscription = self.router.subscribe(LogAlertHandler())

    def _step_alert_plugins(self) -> None:
        self.load_plugins()
        self.plugins.subscribe_alert_handlers(self.router)

    def _step_scheduler(self) -> None:
        self.deferred.schedule_recurring(
            "maintenance",
            self.settings.scheduler.maintenance_interval_seconds,
            self._maintenance,
        )

    def _step_identity(self) -> None:
        self.deferred.submit("identity", self._resolve_identity)

    # ------------------------------------------------------------------
    # Deferred work
    # ------------------------------------------------------------------

    def _resolve_identity(self) -> None:
        self.identity = self.resolver.resolve()

    def _maintenance(self) -> None:
        self.resolver.purge_expired()
