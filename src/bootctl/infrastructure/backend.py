"""Identity backend contract and the local derivation backend.

The backend issues an anonymous user id for a device fingerprint. Wire
transport is out of scope; anything with ``sign_in_with_fingerprint``
can stand in. The local backend derives ids deterministically, so the
same fingerprint always maps to the same user.
"""

from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from bootctl.errors import IdentityResolutionFailure


@runtime_checkable
class IdentityBackend(Protocol):
    """Issues anonymous identities bound to device fingerprints."""

    def sign_in_with_fingerprint(self, fingerprint: str, device_name: str) -> str:
        """Return the user id for *fingerprint*.

        Raises IdentityResolutionFailure when the backend is unreachable
        or rejects the device.
        """
        ...


class LocalIdentityBackend:
    """Derives user ids as UUIDv5 of the fingerprint under a namespace."""

    def __init__(self, namespace: str = "bootctl") -> None:
        self._namespace = uuid.uuid5(uuid.NAMESPACE_URL, f"bootctl:{namespace}")

    def sign_in_with_fingerprint(self, fingerprint: str, device_name: str) -> str:
        if not fingerprint:
            msg = "Empty device fingerprint"
            raise IdentityResolutionFailure(msg)
        return f"anon_{uuid.uuid5(self._namespace, fingerprint).hex}"
