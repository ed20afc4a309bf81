"""Tests for ServiceResult and ServiceError."""

import json

import pytest
from pydantic import ValidationError

from bootctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="bootstrap", data={"steps": []})
        assert result.ok is True
        assert result.op == "bootstrap"
        assert result.data == {"steps": []}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_error_construction(self) -> None:
        error = ServiceError(code="BOOTSTRAP_ABORTED", message="Critical step failed")
        result = ServiceResult(ok=False, op="bootstrap", error=error)
        assert result.ok is False
        assert result.error is not None
        assert result.error.code == "BOOTSTRAP_ABORTED"

    def test_json_serialization(self) -> None:
        result = ServiceResult(
            ok=True,
            op="test",
            data={"key": "value"},
            meta={"router": {"published": 1}},
        )
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"]["key"] == "value"
        assert parsed["meta"]["router"]["published"] == 1

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]


class TestFactories:
    def test_success(self) -> None:
        result = ServiceResult.success("logout", {"cleared": True}, warnings=["w"])
        assert result.ok is True
        assert result.data == {"cleared": True}
        assert result.warnings == ["w"]

    def test_success_without_data(self) -> None:
        assert ServiceResult.success("noop").data == {}

    def test_failure(self) -> None:
        result = ServiceResult.failure(
            "load_contacts", "CONTACTS_UNREADABLE", "nope", detail={"path": "x.csv"}
        )
        assert result.ok is False
        assert result.error is not None
        assert result.error.detail == {"path": "x.csv"}
        assert result.data == {}
