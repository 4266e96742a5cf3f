"""
RomanOS SDK - Test Configuration
================================

Shared fixtures and fakes for the build pipeline tests.

The real source assembler, x86 generator and NASM are external to this
package, so the tests drive the pipeline with stand-ins:

- FakeAssembler: returns canned Modules (or diagnostics) per file name
- FakeNativeGenerator: records calls and returns recognisable text
- FakeRunner: replaces subprocess.run for NASM probing and assembling
"""

import subprocess
from pathlib import Path
from typing import Optional

import pytest

from romanos_sdk.backends.collaborators import AssemblyResult, Collaborators
from romanos_sdk.config import BuildConfig
from romanos_sdk.errors import Diagnostic
from romanos_sdk.linker.records import (
    DataItem,
    Instruction,
    Module,
    Opcode,
    Operand,
)


# =============================================================================
# Sample Modules
# =============================================================================

def make_primary() -> Module:
    """
    Three instructions, one data item.

    loopStart = 0 (code), msg = 3 (data, since instruction count is 3).
    """
    return Module(
        instructions=(
            Instruction(Opcode.LOAD, (Operand.register("I"), Operand.immediate(1))),
            Instruction(Opcode.CALL, (Operand.label("libFn"),)),
            Instruction(Opcode.JMP, (Operand.label(0),)),
        ),
        data=(DataItem(0, 0x48),),
        labels={"loopStart": 0, "msg": 3},
        name="hello-world.romasm",
    )


def make_library() -> Module:
    """Two instructions, no data, libFn = 0 (code)."""
    return Module(
        instructions=(
            Instruction(Opcode.INT, (Operand.immediate(0x10),)),
            Instruction(Opcode.RET),
        ),
        labels={"libFn": 0},
        name="bios.romasm",
    )


@pytest.fixture
def primary_module() -> Module:
    return make_primary()


@pytest.fixture
def library_module() -> Module:
    return make_library()


# =============================================================================
# Fake Collaborators
# =============================================================================

class FakeAssembler:
    """
    Source assembler stand-in.

    ``results`` maps a file name (not path) to either a Module or a list
    of Diagnostics. Unknown files assemble to an empty module.
    """

    def __init__(self, results: Optional[dict] = None):
        self.results = results or {}
        self.calls: list[str] = []

    def assemble(self, source: str, filename: str) -> AssemblyResult:
        name = Path(filename).name
        self.calls.append(name)
        outcome = self.results.get(name, Module())
        if isinstance(outcome, Module):
            return AssemblyResult(module=outcome)
        return AssemblyResult(diagnostics=list(outcome))


class FakeNativeGenerator:
    """x86 generator stand-in that records what it was asked to lower."""

    BOOT_TEXT = "; boot sector\nbits 16\norg 0x7C00\n"

    def __init__(self):
        self.boot_calls = []
        self.assembly_calls = []

    def generate_boot_sector(self, instructions, data, labels) -> str:
        self.boot_calls.append((tuple(instructions), tuple(data), dict(labels)))
        return self.BOOT_TEXT

    def generate_assembly(self, instructions, mode16bit: bool) -> str:
        self.assembly_calls.append((tuple(instructions), mode16bit))
        width = "16" if mode16bit else "32"
        return f"; x86 {width}-bit\nbits {width}\n"


class UppercaseOptimizer:
    def optimize(self, text: str) -> str:
        return text.upper()


# =============================================================================
# Fake Process Runner
# =============================================================================

class FakeRunner:
    """
    ``subprocess.run`` stand-in.

    Version probes succeed only for executables in ``available``. An
    assemble command writes ``binary`` to its ``-o`` path and returns
    ``assemble_returncode``. Every call is recorded.
    """

    def __init__(
        self,
        available=("nasm",),
        binary: bytes = b"\xEB\xFE",
        assemble_returncode: int = 0,
        missing=(),
        timeout_on_assemble: bool = False,
    ):
        self.available = set(available)
        self.missing = set(missing)
        self.binary = binary
        self.assemble_returncode = assemble_returncode
        self.timeout_on_assemble = timeout_on_assemble
        self.calls: list[tuple[list, dict]] = []

    def __call__(self, command, **kwargs):
        command = list(command)
        self.calls.append((command, kwargs))
        executable = command[0]

        if executable in self.missing:
            raise FileNotFoundError(executable)

        if command[1:] == ["--version"]:
            code = 0 if executable in self.available else 1
            return subprocess.CompletedProcess(command, code)

        if self.timeout_on_assemble:
            raise subprocess.TimeoutExpired(command, kwargs.get("timeout"))

        if self.assemble_returncode == 0:
            output = Path(command[command.index("-o") + 1])
            output.write_bytes(self.binary)
        return subprocess.CompletedProcess(command, self.assemble_returncode)

    @property
    def probed(self) -> list[str]:
        return [cmd[0] for cmd, _ in self.calls if cmd[1:] == ["--version"]]

    @property
    def assembled(self) -> list[list]:
        return [cmd for cmd, _ in self.calls if "-f" in cmd]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


# =============================================================================
# Project Layout
# =============================================================================

VM_TEMPLATE = """\
bits 16
org 0x7C00
start:
    call vm_run
    jmp $
bytecode_start:
    ; program bytecode goes here
bytecode_end:
times 510-($-$$) db 0
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """
    A project root with the standard layout:

        examples/hello-world.romasm
        stdlib/bios.romasm
        vm/romasm-vm-bootloader.asm
    """
    (tmp_path / "examples").mkdir()
    (tmp_path / "stdlib").mkdir()
    (tmp_path / "vm").mkdir()
    (tmp_path / "examples" / "hello-world.romasm").write_text(
        "loopStart:\n    L I, 1\n    CA libFn\n    V loopStart\nmsg: db 'H'\n"
    )
    (tmp_path / "stdlib" / "bios.romasm").write_text("libFn:\n    INT 0x10\n    R\n")
    (tmp_path / "vm" / "romasm-vm-bootloader.asm").write_text(VM_TEMPLATE)
    return tmp_path


@pytest.fixture
def config(project: Path) -> BuildConfig:
    return BuildConfig(root=project)


@pytest.fixture
def collaborators() -> Collaborators:
    return Collaborators(
        assembler=FakeAssembler({
            "hello-world.romasm": make_primary(),
            "bios.romasm": make_library(),
        }),
        native_generator=FakeNativeGenerator(),
    )


def diagnostics(*lines: int) -> list[Diagnostic]:
    return [Diagnostic(line, "unknown mnemonic", f"BAD{line}") for line in lines]
