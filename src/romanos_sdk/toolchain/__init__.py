"""
External Toolchain
==================

Finding and running the external x86 assembler (NASM).
"""

from romanos_sdk.toolchain.nasm import (
    DEFAULT_ASSEMBLE_TIMEOUT,
    DEFAULT_CANDIDATES,
    DEFAULT_PROBE_TIMEOUT,
    assemble_binary,
    probe,
)

__all__ = [
    "DEFAULT_ASSEMBLE_TIMEOUT",
    "DEFAULT_CANDIDATES",
    "DEFAULT_PROBE_TIMEOUT",
    "assemble_binary",
    "probe",
]
