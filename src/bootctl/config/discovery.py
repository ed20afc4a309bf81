"""Config file discovery and loading.

Walk-up finder locates bootctl.toml, similar to how git finds .git/.
Supports BOOTCTL_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from bootctl.config.models import BootConfig
from bootctl.errors import ConfigurationError

CONFIG_FILENAME = "bootctl.toml"
CONFIG_ENV_VAR = "BOOTCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for bootctl.toml.

    Returns the path to the config file, or None if not found.
    Checks BOOTCTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> BootConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns default BootConfig if no file is found. Malformed TOML or
    invalid values raise ConfigurationError.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return BootConfig()

    raw = path.read_text(encoding="utf-8")
    try:
        data: dict[str, Any] = tomllib.loads(raw)
        return BootConfig.model_validate(data)
    except (tomllib.TOMLDecodeError, ValidationError) as exc:
        msg = f"Invalid config in {path}: {exc}"
        raise ConfigurationError(msg) from exc
