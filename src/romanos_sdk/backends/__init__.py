"""
Code Generation Backends
========================

- **dispatcher**: picks the NATIVE or VM path and writes its artifacts
- **bytecode**: built-in encoder for the Romasm VM bytecode format
- **template**: splices bytecode into the VM bootloader template
- **collaborators**: contracts and loading for pluggable components
"""

from romanos_sdk.backends.bytecode import RomasmBytecodeGenerator
from romanos_sdk.backends.collaborators import (
    AssemblyResult,
    BytecodeGenerator,
    Collaborators,
    NativeGenerator,
    Optimizer,
    PassThroughOptimizer,
    SourceAssembler,
    load_collaborator,
)
from romanos_sdk.backends.dispatcher import (
    BuildMode,
    GeneratedArtifacts,
    dispatch,
    log_program_layout,
)
from romanos_sdk.backends.template import format_data_bytes, splice_bytecode

__all__ = [
    "AssemblyResult",
    "BuildMode",
    "BytecodeGenerator",
    "Collaborators",
    "GeneratedArtifacts",
    "NativeGenerator",
    "Optimizer",
    "PassThroughOptimizer",
    "RomasmBytecodeGenerator",
    "SourceAssembler",
    "dispatch",
    "format_data_bytes",
    "load_collaborator",
    "log_program_layout",
    "splice_bytecode",
]
