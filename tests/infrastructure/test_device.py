"""Tests for device probing and the local identity backend."""

from __future__ import annotations

from pathlib import Path

import pytest

from bootctl.errors import IdentityResolutionFailure
from bootctl.infrastructure import device
from bootctl.infrastructure.backend import IdentityBackend, LocalIdentityBackend
from bootctl.infrastructure.device import probe_device, read_hardware_id


class TestReadHardwareId:
    def test_first_non_empty(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.write_text("  \n")
        real = tmp_path / "real"
        real.write_text("abc123\n")
        assert read_hardware_id((tmp_path / "missing", empty, real)) == "abc123"

    def test_none_found(self, tmp_path: Path) -> None:
        assert read_hardware_id((tmp_path / "missing",)) == ""


class TestProbeDevice:
    def test_overrides_win(self) -> None:
        attrs = probe_device({"hardware_id": "hw-1", "model": "Model 7"})
        assert attrs.hardware_id == "hw-1"
        assert attrs.model == "Model 7"

    def test_unknown_overrides_dropped(self) -> None:
        attrs = probe_device({"hardware_id": "hw-1", "colour": "red"})
        assert not hasattr(attrs, "colour")

    def test_no_hardware_id_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(device, "read_hardware_id", lambda: "")
        with pytest.raises(IdentityResolutionFailure):
            probe_device()

    def test_stable_fingerprint(self) -> None:
        overrides = {"hardware_id": "hw-1"}
        assert probe_device(overrides).fingerprint() == probe_device(overrides).fingerprint()


class TestLocalIdentityBackend:
    def test_protocol(self) -> None:
        assert isinstance(LocalIdentityBackend(), IdentityBackend)

    def test_deterministic(self) -> None:
        backend = LocalIdentityBackend()
        first = backend.sign_in_with_fingerprint("fp", "dev")
        assert first.startswith("anon_")
        assert backend.sign_in_with_fingerprint("fp", "other name") == first

    def test_namespaces_differ(self) -> None:
        a = LocalIdentityBackend("a").sign_in_with_fingerprint("fp", "dev")
        b = LocalIdentityBackend("b").sign_in_with_fingerprint("fp", "dev")
        assert a != b

    def test_empty_fingerprint(self) -> None:
        with pytest.raises(IdentityResolutionFailure):
            LocalIdentityBackend().sign_in_with_fingerprint("", "dev")
