"""Device attribute probing for fingerprinting.

Attributes come from the host platform plus a hardware id read from the
usual machine-id locations. Config overrides win field by field, which
is how tests and containers pin a fingerprint.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

from bootctl.domain.identity import DeviceAttributes
from bootctl.errors import IdentityResolutionFailure

logger = logging.getLogger(__name__)

MACHINE_ID_PATHS: tuple[Path, ...] = (
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
)


def read_hardware_id(paths: tuple[Path, ...] = MACHINE_ID_PATHS) -> str:
    """Return the first non-empty machine id found, or ``""``."""
    for path in paths:
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if value:
            return value
    return ""


def probe_device(overrides: dict[str, str] | None = None) -> DeviceAttributes:
    """Collect device attributes, applying *overrides* on top.

    Raises IdentityResolutionFailure when nothing identifying is available
    (no hardware id and no override), since a fingerprint built from
    generic platform strings alone would collide across devices.
    """
    uname = platform.uname()
    probed = {
        "board": uname.machine,
        "brand": uname.system,
        "device": uname.node,
        "manufacturer": uname.system,
        "model": uname.release,
        "product": platform.python_implementation(),
        "hardware_id": read_hardware_id(),
    }
    fields = {**probed, **(overrides or {})}
    unknown = set(fields) - set(DeviceAttributes.model_fields)
    if unknown:
        logger.warning("Ignoring unknown device attribute overrides: %s", sorted(unknown))
        for key in unknown:
            fields.pop(key)

    attrs = DeviceAttributes(**fields)
    if not attrs.hardware_id:
        msg = "No hardware id available for device fingerprint"
        raise IdentityResolutionFailure(msg)
    return attrs
