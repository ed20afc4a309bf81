"""Contact records and phone normalization.

INVARIANT: ``Contact.normalized_phone`` holds only digits and an optional
leading ``+``. Empty normalizations never become a Contact.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, field_validator

_NON_DIGITS = re.compile(r"[^0-9]")
NORMALIZED_PHONE_PATTERN = re.compile(r"^\+?[0-9]+$")


def normalize_phone(raw: str) -> str:
    """Strip everything but digits, keeping a single leading ``+``.

    A ``+`` only survives when it is the first non-whitespace character;
    any other ``+`` is dropped like the rest of the punctuation.

    Examples:
        >>> normalize_phone("(555) 123-4567")
        '5551234567'
        >>> normalize_phone("+44 20 7946 0958")
        '+442079460958'
        >>> normalize_phone("   ")
        ''
    """
    text = raw.strip()
    digits = _NON_DIGITS.sub("", text)
    if not digits:
        return ""
    if text.startswith("+"):
        return f"+{digits}"
    return digits


class Contact(BaseModel):
    """A named contact with a normalized phone number."""

    model_config = {"frozen": True}

    name: str
    normalized_phone: str

    @field_validator("normalized_phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        if not NORMALIZED_PHONE_PATTERN.match(value):
            msg = f"not a normalized phone number: {value!r}"
            raise ValueError(msg)
        return value
