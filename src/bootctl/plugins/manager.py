"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery from ``.bootctl/plugins/``.
Capabilities: alert handlers, extra init steps, post-bootstrap hooks.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pluggy

from bootctl.domain.steps import InitStep
from bootctl.plugins.hookspecs import BootctlHookSpec

if TYPE_CHECKING:
    from pluggy import HookImpl

    from bootctl.domain.alerts import SecurityAlert
    from bootctl.domain.report import BootstrapReport
    from bootctl.runtime import Runtime
    from bootctl.services.alerts import AlertRouter

PROJECT_NAME = "bootctl"
ENTRY_POINT_GROUP = "bootctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(BootctlHookSpec)
        self._loaded: bool = False
        self._subscribed: dict[str, str] = {}

    def discover_and_load(
        self,
        *,
        local_dir: Path | None = None,
        entry_points: bool = True,
    ) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Uses pluggy's native setuptools entry_point discovery for the
        ``bootctl.plugins`` group, then scans *local_dir* (typically
        ``.bootctl/plugins/``) for single-file Python plugins.

        Returns a list of loaded plugin names.
        """
        if entry_points:
            try:
                self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
            except Exception:
                logger.warning("Failed to load entry-point plugins", exc_info=True)
            self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. built-in plugins)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered plugins."""
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._name_of(p) for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Hook dispatch
    # ------------------------------------------------------------------

    def subscribe_alert_handlers(self, router: AlertRouter) -> list[str]:
        """Subscribe each ``handle_security_alert`` implementation individually.

        Plugins already subscribed are left alone. Returns the new
        subscription ids.
        """
        new_ids: list[str] = []
        for impl in self._pm.hook.handle_security_alert.get_hookimpls():
            name = impl.plugin_name
            if name in self._subscribed:
                continue
            sub_id = router.subscribe(_alert_caller(impl), name=f"plugin:{name}")
            self._subscribed[name] = sub_id
            new_ids.append(sub_id)
        return new_ids

    def collect_init_steps(self, runtime: Runtime) -> list[InitStep]:
        """Gather extra init steps from every plugin, in registration order.

        A plugin whose hook raises or returns something other than a list
        of :class:`InitStep` is skipped with a warning.
        """
        steps: list[InitStep] = []
        for impl in self._pm.hook.register_init_steps.get_hookimpls():
            name = impl.plugin_name
            try:
                provided = _call_impl(impl, runtime=runtime)
            except Exception:
                logger.warning("Plugin %s failed to register init steps", name, exc_info=True)
                continue
            if provided is None:
                continue
            if not isinstance(provided, list) or not all(
                isinstance(s, InitStep) for s in provided
            ):
                logger.warning("Plugin %s returned invalid init steps; ignored", name)
                continue
            steps.extend(provided)
        return steps

    def notify_post_bootstrap(self, report: BootstrapReport, warnings: list[str]) -> None:
        """Dispatch ``post_bootstrap``. Failures become warnings."""
        try:
            self._pm.hook.post_bootstrap(report=report)
        except Exception as exc:
            logger.warning("post_bootstrap hook failed: %s", exc, exc_info=True)
            warnings.append(f"post_bootstrap hook failed: {exc}")

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python plugins.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module. Classes inside the module that carry pluggy hookimpl-decorated
        methods are instantiated and registered.

        Errors are logged as warnings but never raised: a broken local plugin
        must not prevent the rest of the system from starting.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"bootctl_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name:
                    continue  # imported, not defined here
                if not self._has_hook_impls(obj):
                    continue
                try:
                    instance = obj()
                    self.register_plugin(instance, name=f"{module_name}.{obj.__name__}")
                    logger.debug("Loaded local plugin %s from %s", obj.__name__, py_file)
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or plugin.__class__.__name__

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("bootctl")`` sets a ``bootctl_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "bootctl_impl", None):
                return True
        return False


def _call_impl(impl: HookImpl, **kwargs: Any) -> Any:
    """Call one hook implementation with only the arguments it declares."""
    return impl.function(*(kwargs[arg] for arg in impl.argnames))


def _alert_caller(impl: HookImpl) -> Callable[[SecurityAlert], Any]:
    def handle(alert: SecurityAlert) -> Any:
        return _call_impl(impl, alert=alert)

    return handle
