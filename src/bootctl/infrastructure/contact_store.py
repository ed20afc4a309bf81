"""Raw contact sources.

A store yields ``(name, raw_phone)`` pairs in its declared sort order.
Either element may be None when the source row lacks it.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Protocol

RawContact = tuple[str | None, str | None]

NAME_COLUMNS = ("name", "display_name")
PHONE_COLUMNS = ("phone", "number", "phone_number")


class ContactStore(Protocol):
    """Source of raw contact pairs."""

    def rows(self) -> Iterable[RawContact]: ...


def _sort_key(row: RawContact) -> str:
    name = row[0]
    return name.casefold() if name else ""


class MemoryContactStore:
    """In-memory store; preserves the given order unless *sort* is set."""

    def __init__(self, rows: Iterable[RawContact], *, sort: bool = False) -> None:
        self._rows = list(rows)
        self._sort = sort

    def rows(self) -> Iterator[RawContact]:
        rows = sorted(self._rows, key=_sort_key) if self._sort else self._rows
        return iter(list(rows))


class CsvContactStore:
    """CSV file with a header row; sorted name-ascending (case-insensitive).

    Recognized headers: ``name``/``display_name`` and
    ``phone``/``number``/``phone_number``.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def rows(self) -> Iterator[RawContact]:
        with self._path.open(newline="", encoding="utf-8") as fh:
            reader = csv.DictReader(fh)
            header = [h.strip().lower() for h in reader.fieldnames or []]
            name_col = _pick(header, NAME_COLUMNS, reader.fieldnames)
            phone_col = _pick(header, PHONE_COLUMNS, reader.fieldnames)
            rows: list[RawContact] = [
                (
                    record.get(name_col) if name_col else None,
                    record.get(phone_col) if phone_col else None,
                )
                for record in reader
            ]
        rows.sort(key=_sort_key)
        return iter(rows)


def _pick(
    header: list[str],
    candidates: tuple[str, ...],
    original: list[str] | None,
) -> str | None:
    """Map a normalized header name back to the file's own column name."""
    if original is None:
        return None
    for candidate in candidates:
        if candidate in header:
            return original[header.index(candidate)]
    return None
