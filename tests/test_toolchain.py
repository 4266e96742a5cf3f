"""
Tests for External Assembler Support
====================================

These tests verify NASM probing and invocation using a fake process
runner in place of subprocess.run.
"""

import subprocess
from pathlib import Path

import pytest

from romanos_sdk.errors import ExternalAssemblyFailed, ToolchainNotFound
from romanos_sdk.toolchain import DEFAULT_CANDIDATES, assemble_binary, probe

from conftest import FakeRunner


# =============================================================================
# Test Probing
# =============================================================================

class TestProbe:
    """Tests for probe()."""

    def test_first_candidate_wins(self):
        runner = FakeRunner(available={"nasm"})
        assert probe(runner=runner) == "nasm"
        assert runner.probed == ["nasm"]

    def test_third_candidate_wins(self):
        """Earlier failures are skipped; later candidates are never tried."""
        runner = FakeRunner(available={"c", "d"})
        assert probe(["a", "b", "c", "d"], runner=runner) == "c"
        assert runner.probed == ["a", "b", "c"]

    def test_default_order(self):
        runner = FakeRunner(available=set())
        with pytest.raises(ToolchainNotFound):
            probe(runner=runner)
        assert runner.probed == list(DEFAULT_CANDIDATES)

    def test_not_found_lists_every_candidate(self):
        runner = FakeRunner(available=set())
        with pytest.raises(ToolchainNotFound) as exc_info:
            probe(["x", "y"], runner=runner)
        assert exc_info.value.candidates == ["x", "y"]
        assert "  - x" in str(exc_info.value)
        assert "apt-get install nasm" in str(exc_info.value)

    def test_missing_executable_skipped(self):
        """A candidate that cannot be started is just another failure."""
        runner = FakeRunner(available={"b"}, missing={"a"})
        assert probe(["a", "b"], runner=runner) == "b"

    def test_probe_timeout_skipped(self):
        def runner(command, **kwargs):
            if command[0] == "slow":
                raise subprocess.TimeoutExpired(command, kwargs["timeout"])
            return subprocess.CompletedProcess(command, 0)

        assert probe(["slow", "fast"], runner=runner, timeout=1.0) == "fast"

    def test_probe_output_suppressed(self):
        runner = FakeRunner(available={"nasm"})
        probe(["nasm"], runner=runner, timeout=5.0)
        command, kwargs = runner.calls[0]
        assert command == ["nasm", "--version"]
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert kwargs["stderr"] is subprocess.DEVNULL
        assert kwargs["timeout"] == 5.0


# =============================================================================
# Test Assembling
# =============================================================================

class TestAssembleBinary:
    """Tests for assemble_binary()."""

    def test_command_line(self, tmp_path):
        runner = FakeRunner(binary=b"\xEB\xFE")
        source = tmp_path / "hello-world.asm"
        output = tmp_path / "hello-world.bin"

        result = assemble_binary("nasm", source, output, runner=runner, timeout=30.0)

        assert result == output
        command, kwargs = runner.calls[0]
        assert command == ["nasm", "-f", "bin", "-o", str(output), str(source)]
        assert kwargs == {"timeout": 30.0}
        assert output.read_bytes() == b"\xEB\xFE"

    def test_nonzero_exit(self, tmp_path):
        runner = FakeRunner(assemble_returncode=1)
        with pytest.raises(ExternalAssemblyFailed) as exc_info:
            assemble_binary("nasm", tmp_path / "a.asm", tmp_path / "a.bin", runner=runner)
        assert exc_info.value.returncode == 1
        assert not exc_info.value.timed_out
        assert "exited with status 1" in str(exc_info.value)

    def test_timeout(self, tmp_path):
        runner = FakeRunner(timeout_on_assemble=True)
        with pytest.raises(ExternalAssemblyFailed) as exc_info:
            assemble_binary(
                "nasm", tmp_path / "a.asm", tmp_path / "a.bin",
                runner=runner, timeout=0.5,
            )
        assert exc_info.value.timed_out
        assert exc_info.value.returncode is None
        assert "timed out" in str(exc_info.value)

    def test_no_timeout(self, tmp_path):
        runner = FakeRunner()
        assemble_binary("nasm", Path("a.asm"), tmp_path / "a.bin", runner=runner, timeout=None)
        _, kwargs = runner.calls[0]
        assert kwargs["timeout"] is None
