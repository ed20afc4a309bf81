"""Tests for the Runtime composition root."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pluggy
import pytest

from bootctl.config.settings import BootSettings
from bootctl.domain.identity import IdentityKind
from bootctl.domain.report import BootstrapReport
from bootctl.domain.steps import Criticality, InitStep
from bootctl.errors import BootstrapError, ConfigurationError
from bootctl.runtime import BUILTIN_STEPS, Runtime, validate_pin

hookimpl = pluggy.HookimplMarker("bootctl")

RuntimeFactory = Callable[[BootSettings], Runtime]
SettingsFactory = Callable[..., BootSettings]

VALID_PIN = "sha256/" + "A" * 43 + "="


class _ExtraStepPlugin:
    def __init__(self) -> None:
        self.ran = False
        self.reports: list[BootstrapReport] = []

    @hookimpl
    def register_init_steps(self, runtime: Runtime) -> list[InitStep]:
        return [
            InitStep(name="warm-cache", criticality=Criticality.OPTIONAL, action=self._run),
            # Collides with a configured step; skipped.
            InitStep(name="state-store", criticality=Criticality.OPTIONAL, action=self._run),
        ]

    @hookimpl
    def post_bootstrap(self, report: BootstrapReport) -> None:
        self.reports.append(report)

    def _run(self) -> None:
        self.ran = True


class TestValidatePin:
    def test_valid(self) -> None:
        validate_pin(VALID_PIN)

    @pytest.mark.parametrize(
        "pin",
        ["sha1/abc", "sha256/!!!!", "sha256/" + "A" * 20 + "==", ""],
    )
    def test_invalid(self, pin: str) -> None:
        with pytest.raises(ValueError):
            validate_pin(pin)


class TestBuildRegistry:
    def test_default_order(self, runtime: Runtime) -> None:
        registry = runtime.build_registry()
        assert registry.names() == list(BUILTIN_STEPS)
        assert registry.frozen
        assert runtime.registry is registry

    def test_unknown_step(
        self, tmp_path: Path, make_settings: SettingsFactory, make_runtime: RuntimeFactory
    ) -> None:
        rt = make_runtime(make_settings(tmp_path, bootstrap={"steps": [{"name": "nope"}]}))
        with pytest.raises(ConfigurationError, match="nope"):
            rt.build_registry()

    def test_plugin_steps_appended(self, runtime: Runtime) -> None:
        runtime.plugins.register_plugin(_ExtraStepPlugin(), name="extra")
        names = runtime.build_registry().names()
        assert names[-1] == "warm-cache"
        assert names.count("state-store") == 1

    def test_escalation_plugin_loaded(self, runtime: Runtime) -> None:
        assert "escalation" in runtime.load_plugins()
        assert runtime.load_plugins().count("escalation") == 1


class TestBoot:
    def test_boot_runs_plugin_hooks(self, runtime: Runtime) -> None:
        plugin = _ExtraStepPlugin()
        runtime.plugins.register_plugin(plugin, name="extra")
        report = runtime.boot()
        assert plugin.ran
        assert plugin.reports == [report]
        assert "warm-cache" in report.succeeded
        assert runtime.deferred.started

    def test_paired_boot_resolves_identity(
        self, tmp_path: Path, make_settings: SettingsFactory, make_runtime: RuntimeFactory
    ) -> None:
        rt = make_runtime(make_settings(tmp_path, sync=True, device={"paired": True}))
        report = rt.boot()
        assert "auth" in report.succeeded
        assert rt.session is None
        assert rt.identity is not None
        assert rt.identity.kind is IdentityKind.ANONYMOUS

    def test_pins_validated(
        self, tmp_path: Path, make_settings: SettingsFactory, make_runtime: RuntimeFactory
    ) -> None:
        rt = make_runtime(
            make_settings(
                tmp_path,
                sync=True,
                bootstrap={"steps": [{"name": "security-config", "criticality": "critical"}]},
                security={"pinned_hosts": {"api.example.com": ["sha256/short"]}},
            )
        )
        with pytest.raises(BootstrapError) as excinfo:
            rt.boot()
        assert excinfo.value.step == "security-config"
        assert isinstance(excinfo.value.__cause__, ValueError)
        assert not rt.deferred.started

    def test_attach_alert_handlers_idempotent(self, runtime: Runtime) -> None:
        runtime.attach_alert_handlers()
        runtime.attach_alert_handlers()
        names = {s["name"] for s in runtime.router.subscriptions()}
        assert names == {"log", "plugin:escalation"}

    def test_log_handler_disabled(
        self, tmp_path: Path, make_settings: SettingsFactory, make_runtime: RuntimeFactory
    ) -> None:
        rt = make_runtime(make_settings(tmp_path, alerts={"log_handler": False}))
        rt.attach_alert_handlers()
        assert [s["name"] for s in rt.router.subscriptions()] == ["plugin:escalation"]


class TestLifecycle:
    def test_state_dir_created(self, tmp_path: Path, make_settings: SettingsFactory) -> None:
        with Runtime(make_settings(tmp_path)) as rt:
            _ = rt.engine
        assert (tmp_path / ".bootctl" / "bootctl.db").exists()

    def test_close_is_repeatable(self, runtime: Runtime) -> None:
        _ = runtime.store
        runtime.close()
        runtime.close()
