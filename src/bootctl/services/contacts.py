"""ContactNormalizer — raw contact rows to normalized :class:`Contact` records."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from bootctl.domain.contacts import Contact, normalize_phone
from bootctl.infrastructure.contact_store import CsvContactStore
from bootctl.services.base import BaseService
from bootctl.services.result import ServiceResult

if TYPE_CHECKING:
    from bootctl.infrastructure.contact_store import ContactStore

logger = logging.getLogger(__name__)


class ContactNormalizer:
    """Reads a :class:`ContactStore` and normalizes each entry.

    Entries without a name or phone, or whose phone normalizes to nothing,
    are dropped. ``exclude_name`` drops the device owner's own entry
    (case-insensitive match).
    """

    def __init__(self, store: ContactStore, *, exclude_name: str | None = None) -> None:
        self._store = store
        self._exclude = exclude_name.strip().casefold() if exclude_name else None

    def load_contacts(self) -> list[Contact]:
        """Materialize the store's contacts in its order. No caching."""
        contacts: list[Contact] = []
        dropped = 0
        for name, raw_phone in self._store.rows():
            if name is None or not name.strip() or raw_phone is None:
                dropped += 1
                continue
            if self._exclude is not None and name.strip().casefold() == self._exclude:
                dropped += 1
                continue
            phone = normalize_phone(raw_phone)
            if not phone:
                dropped += 1
                continue
            contacts.append(Contact(name=name, normalized_phone=phone))
        if dropped:
            logger.debug("Dropped %d contact rows without a usable name or phone", dropped)
        return contacts


class ContactService(BaseService):
    """Contact normalization for the CLI."""

    def load(self, path: Path, *, exclude_name: str | None = None) -> ServiceResult:
        """Normalize *path*. The owner defaults to the configured ``[device] name``."""
        op = "load_contacts"
        if exclude_name is None:
            exclude_name = self._runtime.settings.device.name
        normalizer = ContactNormalizer(CsvContactStore(path), exclude_name=exclude_name)
        try:
            contacts = normalizer.load_contacts()
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            return ServiceResult.failure(
                op,
                "CONTACTS_UNREADABLE",
                f"Cannot read contacts from {path}: {exc}",
                detail={"path": str(path)},
            )
        items = [{"name": c.name, "phone": c.normalized_phone} for c in contacts]
        return ServiceResult.success(op, {"items": items, "count": len(items)})
