"""Tests for the format_result dispatcher and OutputSettings."""

import json

from bootctl.output.formatters import OutputSettings, format_result
from bootctl.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(ok=False, op=op, error=ServiceError(code="ERR", message=msg))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResultJSON:
    def test_json_mode_returns_valid_json(self) -> None:
        settings = OutputSettings(json_output=True)
        output = format_result(_ok("logout", cleared=True), settings=settings)
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "logout"
        assert data["data"]["cleared"] is True

    def test_json_mode_error(self) -> None:
        output = format_result(_err("bootstrap", "Bad"), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is False
        assert data["error"]["message"] == "Bad"

    def test_json_beats_quiet(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["ok"] is True


class TestFormatResultQuiet:
    def test_quiet_ok(self) -> None:
        assert format_result(_ok("logout"), settings=OutputSettings(quiet=True)) == "OK: logout"

    def test_quiet_error(self) -> None:
        output = format_result(_err("bootstrap", "nope"), settings=OutputSettings(quiet=True))
        assert output.startswith("ERROR: bootstrap")
        assert "nope" in output

    def test_quiet_lists_names(self) -> None:
        result = _ok("load_contacts", items=[{"name": "Ann"}, {"name": "Bo"}])
        assert format_result(result, settings=OutputSettings(quiet=True)) == "Ann\nBo"


class TestFormatResultRich:
    def test_default_is_rich(self) -> None:
        output = format_result(_ok("custom", answer=42))
        assert "OK" in output
        assert "custom" in output
        assert "answer: 42" in output
