"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``BOOTCTL_*`` prefix
  3. TOML file    — ``bootctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`bootctl.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from bootctl.config.discovery import find_config
from bootctl.config.models import (
    AlertsConfig,
    BootstrapConfig,
    DeviceConfig,
    IdentityConfig,
    PluginsConfig,
    SchedulerConfig,
    SecurityConfig,
)
from bootctl.errors import ConfigurationError


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``bootctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigurationError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class BootSettings(BaseSettings):
    """Unified settings for bootctl.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.

    Attributes:
        root: State directory parent (parent of ``bootctl.toml``,
            or CWD if no config found). State lives in ``{root}/.bootctl``.
        config_path: The config file actually used, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "BOOTCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (not in TOML — derived from config location) ---
    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    # --- TOML sections ---
    bootstrap: BootstrapConfig = Field(default_factory=BootstrapConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    # Retained for type-checker visibility; not used at runtime.
    _toml_path: ClassVar[Path | None] = None

    @property
    def state_dir(self) -> Path:
        return self.root / ".bootctl"

    @property
    def sync_alerts(self) -> bool:
        """``--sync`` forces synchronous alert delivery."""
        return self.sync or self.alerts.sync

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> BootSettings:
        """Construct settings from a CLI invocation.

        Discovers ``bootctl.toml`` via walk-up (or explicit *config_path*),
        resolves *root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        except ValidationError as exc:
            msg = f"Invalid configuration: {exc}"
            raise ConfigurationError(msg) from exc
        finally:
            _tls.toml_path = None
