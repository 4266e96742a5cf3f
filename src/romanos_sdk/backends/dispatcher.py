"""
Backend Dispatch
================

Chooses exactly one code-generation path for a linked program and writes
the resulting assembly text artifact.

    NATIVE (default)
        native generator -> optimizer -> <name>.asm

    VM
        bytecode generator -> <name>.rombin
        bootloader template + bytecode -> <name>-vm.asm

Either way the result is one assembly file ready for the external
assembler. The path not chosen is never touched, so a build leaves no
artifacts from the other backend.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from romanos_sdk.backends.collaborators import Collaborators
from romanos_sdk.backends.template import splice_bytecode
from romanos_sdk.errors import GenerationError, RomanOSError, SourceNotFound
from romanos_sdk.linker.records import LinkedProgram

logger = logging.getLogger(__name__)


class BuildMode(Enum):
    """Code generation strategy."""
    NATIVE = "native"
    VM = "vm"


@dataclass(frozen=True)
class GeneratedArtifacts:
    """
    Files written by the backend.

    Attributes:
        mode: Which backend ran
        assembly: Assembly text file for the external assembler
        bytecode: Bytecode blob (VM mode only)
    """
    mode: BuildMode
    assembly: Path
    bytecode: Optional[Path] = None


# =============================================================================
# Diagnostics
# =============================================================================

def log_program_layout(program: LinkedProgram) -> None:
    """Log instruction, data and label counts, and each label's segment."""
    logger.info(f"  Instruction count: {program.instruction_count}")
    logger.info(f"  Data count: {program.data_count}")
    logger.info(f"  Labels: {len(program.labels)}")
    threshold = program.instruction_count
    for name, address in program.labels.items():
        if address >= threshold:
            logger.debug(f"  {name} -> data address {address - threshold}")
        else:
            logger.debug(f"  {name} -> instruction address {address}")


# =============================================================================
# Backends
# =============================================================================

def generate_native(
    program: LinkedProgram,
    collaborators: Collaborators,
    output: Path,
) -> GeneratedArtifacts:
    """Lower to x86 boot-sector assembly, optimize it, and write it."""
    generator = collaborators.require_native_generator()

    logger.info("Generating x86 assembly...")
    text = call_backend(
        "x86 generator",
        generator.generate_boot_sector,
        program.instructions,
        program.data,
        program.labels,
    )

    logger.info("Optimizing x86 assembly...")
    text = call_backend("optimizer", collaborators.optimizer.optimize, text)

    output.write_text(text, encoding="utf-8")
    logger.info(f"✓ Generated x86 assembly: {output}")
    return GeneratedArtifacts(mode=BuildMode.NATIVE, assembly=output)


def generate_vm(
    program: LinkedProgram,
    collaborators: Collaborators,
    bytecode_output: Path,
    assembly_output: Path,
    template: Path,
) -> GeneratedArtifacts:
    """Encode bytecode, write it, and splice it into the VM bootloader."""
    if not template.is_file():
        raise SourceNotFound(template, role="template")

    logger.info("Generating Romasm bytecode...")
    blob = call_backend(
        "bytecode generator",
        collaborators.bytecode_generator.generate,
        program,
    )
    bytecode_output.write_bytes(blob)
    logger.info(f"✓ Generated bytecode: {bytecode_output} ({len(blob)} bytes)")

    logger.info("Creating VM bootloader image...")
    bootloader = template.read_text(encoding="utf-8")
    spliced = splice_bytecode(bootloader, blob, template_path=template)
    assembly_output.write_text(spliced, encoding="utf-8")
    logger.info(f"✓ Generated VM bootloader: {assembly_output}")

    return GeneratedArtifacts(
        mode=BuildMode.VM,
        assembly=assembly_output,
        bytecode=bytecode_output,
    )


def dispatch(
    program: LinkedProgram,
    mode: BuildMode,
    collaborators: Collaborators,
    build_dir: Path,
    name: str,
    template: Optional[Path] = None,
) -> GeneratedArtifacts:
    """
    Run the backend selected by ``mode``.

    Args:
        program: The linked program
        mode: NATIVE or VM
        collaborators: Generators and optimizer to use
        build_dir: Directory for output artifacts
        name: Base name for artifact files
        template: VM bootloader template (required in VM mode)

    Raises:
        GenerationError: If a backend fails
        TemplateError: If the VM template has no single placeholder region
        SourceNotFound: If the VM template is missing
    """
    log_program_layout(program)

    if mode is BuildMode.VM:
        if template is None:
            raise GenerationError("VM mode requires a bootloader template")
        return generate_vm(
            program,
            collaborators,
            bytecode_output=build_dir / f"{name}.rombin",
            assembly_output=build_dir / f"{name}-vm.asm",
            template=template,
        )

    return generate_native(program, collaborators, build_dir / f"{name}.asm")


def call_backend(what: str, func, *args):
    """Call a collaborator, wrapping foreign exceptions as GenerationError."""
    try:
        return func(*args)
    except RomanOSError:
        raise
    except Exception as e:
        raise GenerationError(f"{what} failed: {e}") from e
