"""
RomanOS SDK Error Hierarchy
===========================

This module defines the exception hierarchy for the RomanOS build pipeline.
All exceptions inherit from RomanOSError, allowing callers to catch every
build-related failure with a single except clause.

Exception Hierarchy
-------------------
RomanOSError (base)
├── SourceNotFound - missing primary/library source unit or template
├── AssemblyError - one or more assembler diagnostics (batched)
├── RelocationError - linker misuse (re-merging, duplicate labels)
├── GenerationError - backend failure
│   └── TemplateError - bootloader placeholder missing or duplicated
├── ToolchainNotFound - no external assembler answered a version probe
├── ExternalAssemblyFailed - external assembler exited non-zero
└── CollaboratorError - a configured collaborator cannot be loaded

Design Philosophy
-----------------
Assembly diagnostics are collected as a batch so the user sees every problem
in a source unit at once. Every other stage fails fast on its first error.

Error messages follow this format:
    error: description
      Line 12: unknown mnemonic 'MOVX'
        Code: MOVX I, 3
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union


# =============================================================================
# Base Exception Class
# =============================================================================

class RomanOSError(Exception):
    """
    Base exception for all RomanOS SDK errors.

        try:
            pipeline.run()
        except RomanOSError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Units
# =============================================================================

class SourceNotFound(RomanOSError):
    """
    A required input file does not exist.

    Raised for a missing primary source unit, an explicitly requested
    library source unit, or the VM bootloader template.

    Attributes:
        path: The path that was looked up
        role: What the file was needed for ("source", "library", "template")
    """

    def __init__(self, path: Union[str, Path], role: str = "source"):
        self.path = Path(path)
        self.role = role
        super().__init__(f"{role} file not found: {self.path}")


# =============================================================================
# Assembly Diagnostics
# =============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """
    A single problem reported by the source assembler.

    Attributes:
        line: Line number in the source unit (1-indexed)
        message: Description of the problem
        code: The offending source fragment
    """
    line: int
    message: str
    code: str = ""

    def __str__(self) -> str:
        text = f"Line {self.line}: {self.message}"
        if self.code:
            text += f"\n    Code: {self.code}"
        return text


class AssemblyError(RomanOSError):
    """
    Assembling a source unit produced one or more diagnostics.

    The full batch is carried so the caller can report all of them
    together instead of stopping at the first.

    Attributes:
        filename: Source unit that failed to assemble
        diagnostics: Every diagnostic reported for it
    """

    def __init__(self, filename: str, diagnostics: Sequence[Diagnostic]):
        self.filename = filename
        self.diagnostics = list(diagnostics)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        count = len(self.diagnostics)
        word = "error" if count == 1 else "errors"
        parts = [f"assembly of {self.filename} failed with {count} {word}"]
        for diagnostic in self.diagnostics:
            parts.append(f"  {diagnostic}")
        return "\n".join(parts)


# =============================================================================
# Linking
# =============================================================================

class RelocationError(RomanOSError):
    """
    The relocator was asked to do something that would corrupt addresses.

    Raised when:
    - An already linked program is passed as the library side of a merge
    - Two modules define the same label name
    """
    pass


# =============================================================================
# Code Generation
# =============================================================================

class GenerationError(RomanOSError):
    """
    A backend failed to lower the linked program.

    Raised for unknown opcodes or registers, labels that cannot be
    resolved, and values that do not fit the target encoding.
    """
    pass


class TemplateError(GenerationError):
    """
    The VM bootloader template has no usable placeholder region.

    The template must contain exactly one start/end marker pair.
    Zero or multiple occurrences are rejected rather than silently
    replacing the first or every match.
    """

    def __init__(self, message: str, template: Optional[Path] = None):
        self.template = template
        if template is not None:
            message = f"{template}: {message}"
        super().__init__(message)


# =============================================================================
# External Toolchain
# =============================================================================

class ToolchainNotFound(RomanOSError):
    """
    None of the candidate assembler executables answered a version probe.

    Attributes:
        candidates: Every identifier that was tried, in probe order
    """

    def __init__(self, candidates: Sequence[str]):
        self.candidates = list(candidates)
        tried = "\n".join(f"  - {c}" for c in self.candidates)
        super().__init__(
            "no working assembler found. Tried:\n"
            f"{tried}\n"
            "Install NASM with: apt-get install nasm (Linux) or brew install nasm (Mac)"
        )


class ExternalAssemblyFailed(RomanOSError):
    """
    The external assembler did not produce a binary.

    Attributes:
        command: The command line that was run
        returncode: Process exit status (None if the process timed out)
        timed_out: True if the run was stopped by the configured timeout
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        timed_out: bool = False,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.timed_out = timed_out
        if timed_out:
            reason = "timed out"
        else:
            reason = f"exited with status {returncode}"
        super().__init__(f"external assembler {reason}: {' '.join(self.command)}")


# =============================================================================
# Configuration
# =============================================================================

class CollaboratorError(RomanOSError):
    """
    A collaborator (assembler, generator, optimizer) cannot be loaded.

    Raised when no import path is configured for a required collaborator,
    or when the configured path does not resolve to an importable object.
    """
    pass
