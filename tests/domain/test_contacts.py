"""Tests for phone normalization and Contact."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bootctl.domain.contacts import Contact, normalize_phone


class TestNormalizePhone:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("(555) 123-4567", "5551234567"),
            ("+44 20 7946 0958", "+442079460958"),
            ("   ", ""),
            ("", ""),
            ("ext. only", ""),
            ("+", ""),
            ("  +1 (800) FLOWERS 356", "+1800356"),
            ("555+123", "555123"),
            ("++44 20", "+4420"),
        ],
    )
    def test_examples(self, raw: str, expected: str) -> None:
        assert normalize_phone(raw) == expected

    def test_result_has_only_digits_and_leading_plus(self) -> None:
        result = normalize_phone(" +1-(202)/555.0100 x9 ")
        assert result.lstrip("+").isdigit()
        assert result.count("+") == 1
        assert result.startswith("+")


class TestContact:
    def test_valid(self) -> None:
        contact = Contact(name="Jane Doe", normalized_phone="5551234567")
        assert contact.normalized_phone == "5551234567"

    @pytest.mark.parametrize("phone", ["", "+", "555-1234", "1+2"])
    def test_rejects_unnormalized(self, phone: str) -> None:
        with pytest.raises(ValidationError):
            Contact(name="x", normalized_phone=phone)
