"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, bootctl.toml only contains overrides.
A fresh install needs no config file at all.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from bootctl.domain.steps import Criticality, is_valid_step_name, parse_criticality

# --- bootctl.toml sections ---


class StepConfig(BaseModel):
    """One entry of ``[[bootstrap.steps]]``."""

    model_config = {"frozen": True}

    name: str
    criticality: Criticality = Criticality.OPTIONAL

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not is_valid_step_name(value):
            msg = f"invalid step name: {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("criticality", mode="before")
    @classmethod
    def _parse_criticality(cls, value: Any) -> Any:
        return parse_criticality(value) if isinstance(value, str) else value


def _default_steps() -> list[StepConfig]:
    return [
        StepConfig(name="state-store", criticality=Criticality.CRITICAL),
        StepConfig(name="security-config"),
        StepConfig(name="auth"),
        StepConfig(name="security-monitor"),
        StepConfig(name="alert-plugins"),
        StepConfig(name="scheduler"),
        StepConfig(name="identity"),
    ]


class BootstrapConfig(BaseModel):
    """[bootstrap] section. Step order is dependency order."""

    model_config = {"frozen": True}

    steps: list[StepConfig] = Field(default_factory=_default_steps)


class DeviceConfig(BaseModel):
    """[device] section."""

    model_config = {"frozen": True}

    paired: bool = False
    name: str | None = None


class IdentityConfig(BaseModel):
    """[identity] section."""

    model_config = {"frozen": True}

    session_timeout_minutes: int = 30
    expired_session: Literal["fallback", "reauthenticate"] = "fallback"
    backend_namespace: str = "bootctl"
    attributes: dict[str, str] = Field(default_factory=dict)


class AlertsConfig(BaseModel):
    """[alerts] section."""

    model_config = {"frozen": True}

    sync: bool = False
    cooldown_seconds: int = 15 * 60
    max_events_per_minute: int = 10
    max_failed_auth_attempts: int = 5
    log_handler: bool = True


class SecurityConfig(BaseModel):
    """[security] section."""

    model_config = {"frozen": True}

    pinned_hosts: dict[str, list[str]] = Field(default_factory=dict)


class SchedulerConfig(BaseModel):
    """[scheduler] section."""

    model_config = {"frozen": True}

    maintenance_interval_seconds: int = 24 * 60 * 60
    max_workers: int = 2


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    entry_points: bool = True
    local: bool = True


class BootConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    bootstrap: BootstrapConfig = Field(default_factory=BootstrapConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
