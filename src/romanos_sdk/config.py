"""
RomanOS Build Configuration
===========================

Paths, toolchain settings and collaborator import paths for a build.
Configuration can come from:
- Default values (defined here)
- Environment variables (``BuildConfig.from_env()``)
- Command-line options (applied by the CLI on top of the above)

Project Layout
--------------
All input paths are relative to ``root``:

    examples/<name>.romasm           primary source units
    stdlib/bios.romasm               runtime library, merged when present
    vm/romasm-vm-bootloader.asm      VM bootloader template
    build/                           output artifacts
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os

from romanos_sdk.toolchain.nasm import (
    DEFAULT_ASSEMBLE_TIMEOUT,
    DEFAULT_CANDIDATES,
    DEFAULT_PROBE_TIMEOUT,
)

DEFAULT_EXAMPLE = "hello-world"
SOURCE_SUFFIX = ".romasm"


@dataclass
class BuildConfig:
    """
    Configuration for one build invocation.

    Attributes:
        root: Project root that the relative paths below hang off
        examples_dir: Directory holding primary source units
        build_dir: Output directory (relative to root unless absolute)
        libraries: Library source units merged after the primary, in order.
            Missing default libraries are skipped.
        libraries_required: If True, a missing library is an error instead
            of being skipped (set when libraries are named explicitly)
        bootloader_template: VM bootloader template path
        nasm_candidates: External assembler executables to probe, in order
        nasm_timeout: Seconds before the external assembler is abandoned
        probe_timeout: Seconds allowed for each version probe
        assembler: Import path of the Romasm source assembler
        native_generator: Import path of the x86 code generator
        optimizer: Import path of the x86 optimizer (default: pass-through)
        bytecode_generator: Import path of the bytecode generator
            (default: built-in)
    """

    root: Path = field(default_factory=Path.cwd)
    examples_dir: Path = Path("examples")
    build_dir: Path = Path("build")
    libraries: List[Path] = field(
        default_factory=lambda: [Path("stdlib/bios.romasm")]
    )
    libraries_required: bool = False
    bootloader_template: Path = Path("vm/romasm-vm-bootloader.asm")

    nasm_candidates: List[str] = field(
        default_factory=lambda: list(DEFAULT_CANDIDATES)
    )
    nasm_timeout: Optional[float] = DEFAULT_ASSEMBLE_TIMEOUT
    probe_timeout: Optional[float] = DEFAULT_PROBE_TIMEOUT

    assembler: Optional[str] = None
    native_generator: Optional[str] = None
    optimizer: Optional[str] = None
    bytecode_generator: Optional[str] = None

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "BuildConfig":
        """
        Create BuildConfig from environment variables.

        Environment variables (all optional):
            ROMANOS_ROOT: Project root directory
            ROMANOS_BUILD_DIR: Output directory
            ROMANOS_NASM: Assembler executable, probed before the defaults
            ROMANOS_NASM_TIMEOUT: Assembler timeout in seconds (0 = none)
            ROMANOS_ASSEMBLER: Source assembler import path
            ROMANOS_NATIVE_GENERATOR: x86 generator import path
            ROMANOS_OPTIMIZER: Optimizer import path
            ROMANOS_BYTECODE_GENERATOR: Bytecode generator import path
        """
        config = cls()

        if root := os.environ.get("ROMANOS_ROOT"):
            config.root = Path(root)

        if build_dir := os.environ.get("ROMANOS_BUILD_DIR"):
            config.build_dir = Path(build_dir)

        if nasm := os.environ.get("ROMANOS_NASM"):
            config.nasm_candidates.insert(0, nasm)

        if timeout := os.environ.get("ROMANOS_NASM_TIMEOUT"):
            try:
                seconds = float(timeout)
            except ValueError:
                raise ValueError(
                    f"ROMANOS_NASM_TIMEOUT must be a number of seconds, got {timeout!r}"
                ) from None
            config.nasm_timeout = seconds if seconds > 0 else None

        config.assembler = os.environ.get("ROMANOS_ASSEMBLER") or config.assembler
        config.native_generator = (
            os.environ.get("ROMANOS_NATIVE_GENERATOR") or config.native_generator
        )
        config.optimizer = os.environ.get("ROMANOS_OPTIMIZER") or config.optimizer
        config.bytecode_generator = (
            os.environ.get("ROMANOS_BYTECODE_GENERATOR") or config.bytecode_generator
        )

        return config

    # ═══════════════════════════════════════════════════════════════════════════
    # PATH HELPERS
    # ═══════════════════════════════════════════════════════════════════════════

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path against the project root."""
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def source_path(self, example: str) -> Path:
        return self.resolve(self.examples_dir) / f"{example}{SOURCE_SUFFIX}"

    def library_paths(self) -> List[Path]:
        return [self.resolve(lib) for lib in self.libraries]

    def template_path(self) -> Path:
        return self.resolve(self.bootloader_template)

    def output_dir(self) -> Path:
        return self.resolve(self.build_dir)
