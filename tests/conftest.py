"""Shared pytest fixtures and test helpers for bootctl tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from bootctl.config.settings import BootSettings
from bootctl.domain.alerts import SecurityAlert
from bootctl.domain.identity import DeviceAttributes
from bootctl.infrastructure.database.engine import init_database
from bootctl.infrastructure.identity_store import IdentityStore
from bootctl.runtime import Runtime
from bootctl.services.alerts import AlertRouter

TEST_DEVICE = DeviceAttributes(
    board="test-board",
    brand="acme",
    device="unit",
    manufacturer="Acme",
    model="Model 7",
    product="bootctl-test",
    hardware_id="0123456789abcdef",
)

_ISOLATED_TOML = """\
[plugins]
entry_points = false

[identity.attributes]
hardware_id = "0123456789abcdef"
model = "Model 7"
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / ".bootctl")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(db_engine: Engine) -> IdentityStore:
    return IdentityStore(db_engine)


@pytest.fixture
def router() -> Iterator[AlertRouter]:
    """Synchronous router: deliveries complete before publish returns."""
    r = AlertRouter(sync=True)
    try:
        yield r
    finally:
        r.shutdown()


@pytest.fixture
def captured(router: AlertRouter) -> list[SecurityAlert]:
    """Every alert published on ``router``."""
    alerts: list[SecurityAlert] = []
    router.subscribe(alerts.append, name="capture")
    return alerts


def _make_settings(root: Path, **overrides: object) -> BootSettings:
    """Settings rooted at *root* with entry-point plugins disabled."""
    overrides.setdefault("plugins", {"entry_points": False})
    return BootSettings.from_cli(root=root, **overrides)


@pytest.fixture
def make_settings() -> Callable[..., BootSettings]:
    """Factory for settings rooted at a given directory."""
    return _make_settings


@pytest.fixture
def settings(tmp_path: Path) -> BootSettings:
    return _make_settings(tmp_path, sync=True)


@pytest.fixture
def device() -> DeviceAttributes:
    return TEST_DEVICE


@pytest.fixture
def runtime(settings: BootSettings) -> Iterator[Runtime]:
    """Synchronous runtime with an in-memory database and a fixed device."""
    rt = Runtime(settings, in_memory=True, device_source=lambda: TEST_DEVICE)
    try:
        yield rt
    finally:
        rt.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp root holding a test ``bootctl.toml``.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes. The config pins the device fingerprint and disables
    entry-point plugins.
    """
    monkeypatch.delenv("BOOTCTL_CONFIG", raising=False)
    (tmp_path / "bootctl.toml").write_text(_ISOLATED_TOML, encoding="utf-8")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_runtime() -> Iterator[Callable[[BootSettings], Runtime]]:
    """Factory for in-memory runtimes on custom settings; all closed after."""
    created: list[Runtime] = []

    def factory(settings: BootSettings) -> Runtime:
        rt = Runtime(settings, in_memory=True, device_source=lambda: TEST_DEVICE)
        created.append(rt)
        return rt

    try:
        yield factory
    finally:
        for rt in created:
            rt.close()
