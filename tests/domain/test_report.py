"""Tests for BootstrapReport."""

from __future__ import annotations

from bootctl.domain.report import BootstrapReport
from bootctl.domain.steps import StepStatus


class TestBootstrapReport:
    def test_empty_report_is_ok(self) -> None:
        report = BootstrapReport()
        assert report.ok
        assert report.degraded == []

    def test_failed_step_is_degraded(self) -> None:
        report = BootstrapReport(succeeded=["a"], failed={"b": RuntimeError("boom")})
        assert not report.ok
        assert report.degraded == ["b"]

    def test_status_of(self) -> None:
        report = BootstrapReport(
            succeeded=["a"],
            failed={"b": RuntimeError("boom")},
            skipped=["c"],
            not_run=["d"],
        )
        assert report.status_of("a") is StepStatus.SUCCEEDED
        assert report.status_of("b") is StepStatus.FAILED
        assert report.status_of("c") is StepStatus.SKIPPED
        assert report.status_of("d") is StepStatus.NOT_RUN
        assert report.status_of("zzz") is None

    def test_to_dict_renders_errors(self) -> None:
        report = BootstrapReport(
            succeeded=["a"],
            failed={"b": ValueError("bad pin")},
            aborted=True,
            durations_ms={"a": 1.23456},
        )
        data = report.to_dict()
        assert data["failed"] == {"b": "ValueError: bad pin"}
        assert data["aborted"] is True
        assert data["durations_ms"] == {"a": 1.23}
