"""
Collaborator Contracts
======================

The build pipeline drives four pluggable components that live outside
this package's core:

- **SourceAssembler**: Romasm source text -> Module (or diagnostics)
- **NativeGenerator**: linked program -> x86 boot-sector assembly text
- **Optimizer**: x86 assembly text -> optimized x86 assembly text
- **BytecodeGenerator**: linked program -> VM bytecode blob

Only their contracts are defined here. Concrete implementations are
named by import path (``package.module:attribute``) in the build
configuration and loaded on demand. The attribute may be a class (it is
instantiated with no arguments) or a ready-made object.

The bytecode generator and the optimizer have built-in defaults; the
source assembler and native generator must be configured.
"""

import importlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from romanos_sdk.errors import CollaboratorError, Diagnostic
from romanos_sdk.linker.records import DataItem, Instruction, LinkedProgram, Module

if TYPE_CHECKING:
    from romanos_sdk.config import BuildConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================

@dataclass
class AssemblyResult:
    """
    Outcome of assembling one source unit.

    Attributes:
        module: The assembled module (None when assembly failed)
        diagnostics: Every problem found, in source order
    """
    module: Optional[Module] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.module is not None and not self.diagnostics


# =============================================================================
# Protocols
# =============================================================================

@runtime_checkable
class SourceAssembler(Protocol):
    """Turns Romasm source text into a Module."""

    def assemble(self, source: str, filename: str) -> AssemblyResult:
        ...


@runtime_checkable
class NativeGenerator(Protocol):
    """Lowers Romasm instructions to x86 assembly text."""

    def generate_boot_sector(
        self,
        instructions: Sequence[Instruction],
        data: Sequence[DataItem],
        labels: Mapping[str, int],
    ) -> str:
        ...

    def generate_assembly(
        self,
        instructions: Sequence[Instruction],
        mode16bit: bool,
    ) -> str:
        ...


@runtime_checkable
class Optimizer(Protocol):
    """Pure text-to-text transform over generated assembly."""

    def optimize(self, text: str) -> str:
        ...


@runtime_checkable
class BytecodeGenerator(Protocol):
    """Encodes a linked program as a VM bytecode blob."""

    def generate(self, program: LinkedProgram) -> bytes:
        ...


class PassThroughOptimizer:
    """Optimizer that returns its input unchanged."""

    def optimize(self, text: str) -> str:
        return text


# =============================================================================
# Loading
# =============================================================================

def load_collaborator(import_path: str) -> Any:
    """
    Resolve a ``package.module:attribute`` path to a collaborator object.

    Classes are instantiated with no arguments; any other object is
    returned as-is.

    Raises:
        CollaboratorError: If the path is malformed or cannot be imported
    """
    module_name, sep, attribute = import_path.partition(":")
    if not sep or not module_name or not attribute:
        raise CollaboratorError(
            f"invalid collaborator path '{import_path}': "
            f"expected 'package.module:attribute'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise CollaboratorError(f"cannot import '{module_name}': {e}") from e

    target = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise CollaboratorError(
                f"'{module_name}' has no attribute '{attribute}'"
            ) from None

    if isinstance(target, type):
        target = target()

    logger.debug(f"Loaded collaborator {import_path}")
    return target


@dataclass
class Collaborators:
    """
    The set of collaborators one build uses.

    ``assembler`` and ``native_generator`` may be None until needed;
    the ``require_*`` accessors raise a clear error at that point.
    """
    assembler: Optional[SourceAssembler] = None
    native_generator: Optional[NativeGenerator] = None
    optimizer: Optimizer = field(default_factory=PassThroughOptimizer)
    bytecode_generator: Optional[BytecodeGenerator] = None

    def __post_init__(self) -> None:
        if self.bytecode_generator is None:
            from romanos_sdk.backends.bytecode import RomasmBytecodeGenerator
            self.bytecode_generator = RomasmBytecodeGenerator()

    @classmethod
    def from_config(cls, config: "BuildConfig") -> "Collaborators":
        """Load every collaborator named in the configuration."""
        collaborators = cls()
        if config.assembler:
            collaborators.assembler = load_collaborator(config.assembler)
        if config.native_generator:
            collaborators.native_generator = load_collaborator(config.native_generator)
        if config.optimizer:
            collaborators.optimizer = load_collaborator(config.optimizer)
        if config.bytecode_generator:
            collaborators.bytecode_generator = load_collaborator(config.bytecode_generator)
        return collaborators

    def require_assembler(self) -> SourceAssembler:
        if self.assembler is None:
            raise CollaboratorError(
                "no Romasm source assembler configured "
                "(set ROMANOS_ASSEMBLER or pass --assembler)"
            )
        return self.assembler

    def require_native_generator(self) -> NativeGenerator:
        if self.native_generator is None:
            raise CollaboratorError(
                "no x86 code generator configured "
                "(set ROMANOS_NATIVE_GENERATOR or pass --generator)"
            )
        return self.native_generator
