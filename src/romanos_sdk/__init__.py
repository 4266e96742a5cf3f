"""
RomanOS SDK - Build and Link Toolchain for RomanOS
==================================================

This package turns assembled Romasm program modules into a single bootable
1.44MB floppy image, through either a native x86 backend or the portable
Romasm VM bytecode backend.

Main Components
---------------
- **linker**: Module records and the relocator that folds modules into one
    linked program with a consistent address space

- **backends**: NATIVE/VM dispatch, the built-in bytecode encoder, VM
    bootloader template splicing, and collaborator contracts

- **toolchain**: Locating and running the external assembler (NASM)

- **image**: Packaging a raw boot sector into a floppy image

- **pipeline**: The build orchestrator tying the stages together

Quick Start
-----------
Link two assembled modules:
    >>> from romanos_sdk.linker import link
    >>> program = link([main_module, bios_module])

Package a raw binary:
    >>> from romanos_sdk.image import build_boot_image
    >>> image = build_boot_image(raw)
    >>> image.write_to_file("hello-world.img")

Or use the command-line tools:
    $ rosbuild hello-world
    $ rosbuild hello-world --vm
    $ rosconv program.romasm program.asm --32bit
    $ rosrun hello-world

Version History
---------------
1.0.0 - Initial release with linker, dual backends and image builder
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from romanos_sdk.errors import (
    RomanOSError,
    SourceNotFound,
    Diagnostic,
    AssemblyError,
    RelocationError,
    GenerationError,
    TemplateError,
    ToolchainNotFound,
    ExternalAssemblyFailed,
    CollaboratorError,
)

from romanos_sdk.linker import (
    Opcode,
    OperandKind,
    Resolution,
    Operand,
    Instruction,
    DataItem,
    Module,
    LinkedProgram,
    link,
    merge,
)

from romanos_sdk.backends import (
    AssemblyResult,
    BuildMode,
    Collaborators,
    RomasmBytecodeGenerator,
    dispatch,
    splice_bytecode,
)

from romanos_sdk.image import BootImage, FLOPPY_SIZE, build_boot_image
from romanos_sdk.toolchain import assemble_binary, probe
from romanos_sdk.config import BuildConfig
from romanos_sdk.pipeline import BuildPipeline, BuildResult

__all__ = [
    "__version__",
    # Errors
    "RomanOSError",
    "SourceNotFound",
    "Diagnostic",
    "AssemblyError",
    "RelocationError",
    "GenerationError",
    "TemplateError",
    "ToolchainNotFound",
    "ExternalAssemblyFailed",
    "CollaboratorError",
    # Linker
    "Opcode",
    "OperandKind",
    "Resolution",
    "Operand",
    "Instruction",
    "DataItem",
    "Module",
    "LinkedProgram",
    "link",
    "merge",
    # Backends
    "AssemblyResult",
    "BuildMode",
    "Collaborators",
    "RomasmBytecodeGenerator",
    "dispatch",
    "splice_bytecode",
    # Image
    "BootImage",
    "FLOPPY_SIZE",
    "build_boot_image",
    # Toolchain
    "assemble_binary",
    "probe",
    # Pipeline
    "BuildConfig",
    "BuildPipeline",
    "BuildResult",
]
