"""Identity states, sessions, and device fingerprints.

Three identity states, ranked:
- Unresolved: no layer produced an identity.
- Anonymous: bound to a device fingerprint.
- Authenticated: backed by a live session token.

INVARIANT: Transitions only move forward. Anonymous may be promoted to
Authenticated by an explicit login; nothing is silently downgraded.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel

FINGERPRINT_LENGTH = 32
FINGERPRINT_SEPARATOR = "|"


class IdentityKind(StrEnum):
    """Which fallback layer produced an identity."""

    UNRESOLVED = "unresolved"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


IDENTITY_TRANSITIONS: dict[str, list[str]] = {
    "unresolved": ["anonymous", "authenticated"],
    "anonymous": ["authenticated"],
    "authenticated": [],
}


def is_forward_transition(current: IdentityKind, target: IdentityKind) -> bool:
    """Staying put is allowed; otherwise *target* must follow *current*."""
    if current == target:
        return True
    return target.value in IDENTITY_TRANSITIONS[current.value]


class IdentityState(BaseModel):
    """Resolved identity. Build via the classmethod constructors."""

    model_config = {"frozen": True}

    kind: IdentityKind
    session_token: str | None = None
    fingerprint: str | None = None
    user_id: str | None = None

    @classmethod
    def authenticated(cls, session_token: str, user_id: str | None = None) -> IdentityState:
        return cls(kind=IdentityKind.AUTHENTICATED, session_token=session_token, user_id=user_id)

    @classmethod
    def anonymous(cls, fingerprint: str, user_id: str | None = None) -> IdentityState:
        return cls(kind=IdentityKind.ANONYMOUS, fingerprint=fingerprint, user_id=user_id)

    @classmethod
    def unresolved(cls) -> IdentityState:
        return cls(kind=IdentityKind.UNRESOLVED)

    @property
    def is_resolved(self) -> bool:
        return self.kind is not IdentityKind.UNRESOLVED


class Session(BaseModel):
    """A persisted authenticated session."""

    model_config = {"frozen": True}

    token: str
    user_id: str
    created: datetime
    last_activity: datetime
    expires_at: datetime | None = None

    def is_expired(self, now: datetime, inactivity_timeout: timedelta) -> bool:
        """Expired by hard expiry or by inactivity, whichever comes first."""
        if self.expires_at is not None and now >= self.expires_at:
            return True
        return now - self.last_activity > inactivity_timeout


class DeviceAttributes(BaseModel):
    """Stable device-identifying attributes, in fingerprint order."""

    model_config = {"frozen": True}

    board: str = ""
    brand: str = ""
    device: str = ""
    manufacturer: str = ""
    model: str = ""
    product: str = ""
    hardware_id: str = ""

    def as_list(self) -> list[str]:
        return [
            self.board,
            self.brand,
            self.device,
            self.manufacturer,
            self.model,
            self.product,
            self.hardware_id,
        ]

    @property
    def display_name(self) -> str:
        return f"{self.manufacturer} {self.model}".strip() or "unknown device"

    def fingerprint(self) -> str:
        return compute_fingerprint(self.as_list())


def compute_fingerprint(identifiers: list[str]) -> str:
    """Deterministic fingerprint: first 32 hex chars of SHA-256 over ``a|b|c``."""
    combined = FINGERPRINT_SEPARATOR.join(identifiers)
    digest = hashlib.sha256(combined.encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]
