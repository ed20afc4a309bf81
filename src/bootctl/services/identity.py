"""IdentityResolver — the authenticated > anonymous > unresolved fallback chain.

Resolution order:
1. A persisted, live session gives ``Authenticated``.
2. Otherwise the device fingerprint gives ``Anonymous``. A stored
   fingerprint binding is reused as-is; only an unbound fingerprint is
   sent to the backend, and its answer is persisted before returning.
3. Otherwise ``Unresolved``, with an alert whose severity climbs from
   LOW to HIGH when the failure repeats.

``resolve`` and ``promote`` hold the same lock, so a merge never runs
alongside a resolution.

States only move forward. A downgrade is expected after ``logout`` or
under the expired-session policy; any other one raises an alert.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

from bootctl.domain.alerts import AlertType, SecurityAlert, Severity
from bootctl.domain.identity import (
    DeviceAttributes,
    IdentityState,
    Session,
    is_forward_transition,
)
from bootctl.errors import IdentityResolutionFailure
from bootctl.services._helpers import describe_error, utc_now
from bootctl.services.base import BaseService
from bootctl.services.result import ServiceResult

if TYPE_CHECKING:
    from bootctl.infrastructure.backend import IdentityBackend
    from bootctl.infrastructure.identity_store import IdentityStore
    from bootctl.services.alerts import AlertRouter

logger = logging.getLogger(__name__)

ExpiredSessionPolicy = Literal["fallback", "reauthenticate"]

# Failures are counted per local device, whether or not a fingerprint
# could be computed.
FAILURE_KEY = "local-device"


@runtime_checkable
class MergeDelegate(Protocol):
    """Reconciles an anonymous identity's data into an authenticated one."""

    def merge(self, anonymous: IdentityState, authenticated: IdentityState) -> None: ...


class IdentityResolver:
    """Resolves the current identity through the fallback chain.

    Parameters:
        store: Persisted sessions, bindings, and failure counters.
        backend: Issues anonymous user ids for unbound fingerprints.
        device_source: Returns the device attributes to fingerprint.
        router: Receives unresolved/expired-session alerts.
        session_timeout: Inactivity after which a session is expired.
        expired_policy: ``"fallback"`` drops to anonymous with an alert;
            ``"reauthenticate"`` stays unresolved until a new login.
        merge_delegate: Called by :meth:`promote`.
        clock: Injectable time source.
    """

    def __init__(
        self,
        store: IdentityStore,
        backend: IdentityBackend,
        device_source: Callable[[], DeviceAttributes],
        *,
        router: AlertRouter | None = None,
        session_timeout: timedelta = timedelta(minutes=30),
        expired_policy: ExpiredSessionPolicy = "fallback",
        merge_delegate: MergeDelegate | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._backend = backend
        self._device_source = device_source
        self._router = router
        self._session_timeout = session_timeout
        self._expired_policy = expired_policy
        self._merge_delegate = merge_delegate
        self._clock = clock
        self._lock = threading.Lock()
        self._current: IdentityState | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self) -> IdentityState:
        """Resolve the current identity. Never raises for backend or device failures."""
        with self._lock:
            state, announced = self._resolve_chain()
            self._advance(state, announced=announced)
            return state

    @property
    def current(self) -> IdentityState | None:
        """The last state this resolver produced, cleared by logout."""
        return self._current

    def promote(self, session: Session) -> IdentityState:
        """Persist *session* and merge the prior anonymous identity into it."""
        with self._lock:
            prior = self._bound_identity()
            self._store.save_session(session)
            self._store.reset_failures(FAILURE_KEY)
            promoted = IdentityState.authenticated(session.token, session.user_id)
            self._current = promoted
            logger.info("Promoted identity to authenticated user %s", session.user_id)
            if prior is not None and self._merge_delegate is not None:
                try:
                    self._merge_delegate.merge(prior, promoted)
                except Exception as exc:
                    logger.warning("Identity merge failed: %s", describe_error(exc), exc_info=exc)
            return promoted

    def logout(self) -> bool:
        """Clear the persisted session. Returns True if one existed."""
        with self._lock:
            cleared = self._store.clear_session()
            self._current = None
        if cleared:
            logger.info("Session cleared")
        return cleared

    def purge_expired(self) -> bool:
        """Drop an expired session under the fallback policy.

        Under ``reauthenticate`` the session is kept so resolution keeps
        reporting it until a new login. Returns True if a session was dropped.
        """
        if self._expired_policy != "fallback":
            return False
        with self._lock:
            session = self._store.load_session()
            if session is None or not session.is_expired(self._clock(), self._session_timeout):
                return False
            self._store.clear_session()
            self._current = None
        logger.info("Purged expired session for %s", session.user_id)
        return True

    # ------------------------------------------------------------------
    # Internal (called with the lock held)
    # ------------------------------------------------------------------

    def _resolve_chain(self) -> tuple[IdentityState, bool]:
        """The resolved state, and whether an alert already explains a downgrade."""
        now = self._clock()
        expired = False
        session = self._store.load_session()
        if session is not None:
            if not session.is_expired(now, self._session_timeout):
                self._store.touch_session(now)
                logger.debug("Resolved authenticated identity for %s", session.user_id)
                return IdentityState.authenticated(session.token, session.user_id), False
            expired = True
            if self._on_expired(session):
                return IdentityState.unresolved(), True

        try:
            state = self._resolve_anonymous()
        except IdentityResolutionFailure as exc:
            return self._unresolved(exc), True
        self._store.reset_failures(FAILURE_KEY)
        return state, expired

    def _advance(self, state: IdentityState, *, announced: bool) -> None:
        """Replace the current state, alerting on an unexplained downgrade."""
        previous = self._current
        self._current = state
        if previous is None or announced or is_forward_transition(previous.kind, state.kind):
            return
        logger.warning("Identity downgraded from %s to %s", previous.kind, state.kind)
        self._publish(
            SecurityAlert(
                type=AlertType.SESSION_SECURITY_ISSUE,
                severity=Severity.MEDIUM,
                message=f"Identity downgraded from {previous.kind} to {state.kind} without logout",
                metadata={"from": previous.kind.value, "to": state.kind.value},
            )
        )

    def _read_device(self) -> tuple[DeviceAttributes, str]:
        """Device attributes and their fingerprint; any failure is a resolution failure."""
        try:
            attrs = self._device_source()
            return attrs, attrs.fingerprint()
        except IdentityResolutionFailure:
            raise
        except Exception as exc:
            raise IdentityResolutionFailure(describe_error(exc)) from exc

    def _resolve_anonymous(self) -> IdentityState:
        attrs, fingerprint = self._read_device()
        binding = self._store.get_binding(fingerprint)
        if binding is not None:
            logger.debug("Reusing stored binding for %s", fingerprint)
            return IdentityState.anonymous(fingerprint, binding.user_id)

        try:
            user_id = self._backend.sign_in_with_fingerprint(fingerprint, attrs.display_name)
        except IdentityResolutionFailure:
            raise
        except Exception as exc:
            raise IdentityResolutionFailure(describe_error(exc)) from exc

        binding = self._store.bind(fingerprint, user_id, attrs.display_name)
        logger.info("Bound device %s to anonymous user %s", fingerprint, binding.user_id)
        return IdentityState.anonymous(fingerprint, binding.user_id)

    def _bound_identity(self) -> IdentityState | None:
        """The anonymous identity already stored for this device, if any."""
        try:
            _attrs, fingerprint = self._read_device()
        except IdentityResolutionFailure:
            return None
        binding = self._store.get_binding(fingerprint)
        if binding is None:
            return None
        return IdentityState.anonymous(fingerprint, binding.user_id)

    def _on_expired(self, session: Session) -> bool:
        """Handle an expired session. Returns True to stop at Unresolved."""
        reauth = self._expired_policy == "reauthenticate"
        if not reauth:
            self._store.clear_session()
        logger.info("Session for %s expired (policy=%s)", session.user_id, self._expired_policy)
        self._publish(
            SecurityAlert(
                type=AlertType.SESSION_SECURITY_ISSUE,
                severity=Severity.MEDIUM,
                message="Session expired; sign in again"
                if reauth
                else "Session expired; continuing anonymously",
                metadata={"user_id": session.user_id, "policy": self._expired_policy},
            )
        )
        return reauth

    def _unresolved(self, exc: IdentityResolutionFailure) -> IdentityState:
        count = self._store.record_failure(FAILURE_KEY, str(exc))
        severity = Severity.LOW if count == 1 else Severity.HIGH
        logger.warning("Identity unresolved (attempt %d): %s", count, exc)
        self._publish(
            SecurityAlert(
                type=AlertType.IDENTITY_UNRESOLVED,
                severity=severity,
                message=f"Could not resolve device identity: {exc}",
                metadata={"consecutive_failures": count},
            )
        )
        return IdentityState.unresolved()

    def _publish(self, alert: SecurityAlert) -> None:
        if self._router is not None:
            self._router.publish(alert)


class IdentityService(BaseService):
    """Identity operations for the CLI."""

    def resolve(self) -> ServiceResult:
        op = "resolve_identity"
        warnings: list[str] = []
        self._runtime.attach_alert_handlers()
        state = self._runtime.resolver.resolve()
        self._settle_alerts(warnings)
        if not state.is_resolved:
            return ServiceResult.failure(
                op,
                "IDENTITY_UNRESOLVED",
                "No session and no usable device fingerprint",
                warnings=warnings,
            )
        return ServiceResult.success(op, state.model_dump(mode="json"), warnings=warnings)

    def login(self, token: str, user_id: str) -> ServiceResult:
        """Persist a session issued elsewhere and promote to it."""
        op = "login"
        if not token.strip() or not user_id.strip():
            return ServiceResult.failure(op, "INVALID_SESSION", "Token and user id are required")
        now = utc_now()
        session = Session(token=token, user_id=user_id, created=now, last_activity=now)
        state = self._runtime.resolver.promote(session)
        return ServiceResult.success(op, state.model_dump(mode="json"))

    def logout(self) -> ServiceResult:
        cleared = self._runtime.resolver.logout()
        return ServiceResult.success("logout", {"cleared": cleared})
