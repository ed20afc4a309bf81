"""Persistence for sessions, fingerprint bindings, and failure counters.

Every write is one ``engine.begin()`` transaction. Bindings are
insert-once: the first writer wins and later writers read it back, so two
racing resolvers for the same fingerprint converge on one identity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from bootctl.domain.identity import Session
from bootctl.infrastructure.database.schema import (
    device_identities,
    identity_failures,
    sessions,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

_SESSION_SLOT = 1


def _to_iso(value: datetime) -> str:
    return value.astimezone(UTC).isoformat()


def _from_iso(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class DeviceBinding:
    """A fingerprint bound to the anonymous user id the backend issued."""

    fingerprint: str
    user_id: str
    device_name: str | None
    created: datetime


class IdentityStore:
    """SQLite-backed store for identity state."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def load_session(self) -> Session | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(sessions).where(sessions.c.slot == _SESSION_SLOT)
            ).first()
        if row is None:
            return None
        return Session(
            token=row.token,
            user_id=row.user_id,
            created=_from_iso(row.created),
            last_activity=_from_iso(row.last_activity),
            expires_at=_from_iso(row.expires_at),
        )

    def save_session(self, session: Session) -> None:
        """Replace the active session."""
        values = {
            "token": session.token,
            "user_id": session.user_id,
            "created": _to_iso(session.created),
            "last_activity": _to_iso(session.last_activity),
            "expires_at": _to_iso(session.expires_at) if session.expires_at else None,
        }
        with self._engine.begin() as conn:
            conn.execute(delete(sessions).where(sessions.c.slot == _SESSION_SLOT))
            conn.execute(insert(sessions).values(slot=_SESSION_SLOT, **values))

    def touch_session(self, when: datetime) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(sessions)
                .where(sessions.c.slot == _SESSION_SLOT)
                .values(last_activity=_to_iso(when))
            )

    def clear_session(self) -> bool:
        """Delete the active session. Returns True if one existed."""
        with self._engine.begin() as conn:
            result = conn.execute(delete(sessions).where(sessions.c.slot == _SESSION_SLOT))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Fingerprint bindings
    # ------------------------------------------------------------------

    def get_binding(self, fingerprint: str) -> DeviceBinding | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(device_identities).where(device_identities.c.fingerprint == fingerprint)
            ).first()
        if row is None:
            return None
        return DeviceBinding(
            fingerprint=row.fingerprint,
            user_id=row.user_id,
            device_name=row.device_name,
            created=_from_iso(row.created),
        )

    def bind(self, fingerprint: str, user_id: str, device_name: str | None) -> DeviceBinding:
        """Insert a binding unless one exists; return whichever is stored."""
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    insert(device_identities).values(
                        fingerprint=fingerprint,
                        user_id=user_id,
                        device_name=device_name,
                        created=_to_iso(datetime.now(UTC)),
                    )
                )
        except IntegrityError:
            logger.debug("Binding for %s already present; keeping existing", fingerprint)
        binding = self.get_binding(fingerprint)
        assert binding is not None
        return binding

    # ------------------------------------------------------------------
    # Failure counters
    # ------------------------------------------------------------------

    def record_failure(self, fingerprint: str, error: str) -> int:
        """Increment and return the consecutive failure count."""
        now = _to_iso(datetime.now(UTC))
        with self._engine.begin() as conn:
            current = conn.execute(
                select(identity_failures.c.count).where(
                    identity_failures.c.fingerprint == fingerprint
                )
            ).scalar_one_or_none()
            if current is None:
                conn.execute(
                    insert(identity_failures).values(
                        fingerprint=fingerprint, count=1, last_error=error, updated=now
                    )
                )
                return 1
            conn.execute(
                update(identity_failures)
                .where(identity_failures.c.fingerprint == fingerprint)
                .values(count=current + 1, last_error=error, updated=now)
            )
            return current + 1

    def failure_count(self, fingerprint: str) -> int:
        with self._engine.connect() as conn:
            count = conn.execute(
                select(identity_failures.c.count).where(
                    identity_failures.c.fingerprint == fingerprint
                )
            ).scalar_one_or_none()
        return count or 0

    def reset_failures(self, fingerprint: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                delete(identity_failures).where(identity_failures.c.fingerprint == fingerprint)
            )
