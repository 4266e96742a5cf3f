"""
RomanOS Build Pipeline
======================

Sequences one build from Romasm source to bootable floppy image:

    ┌──────────┐     ┌──────────┐     ┌──────────┐     ┌──────────┐     ┌──────────┐
    │ .romasm  │────▶│  Module  │────▶│  Linked  │────▶│   .asm   │────▶│   .bin   │──▶ .img
    │ + stdlib │ asm │ (each)   │link │ program  │ gen │ (x86/VM) │nasm │  (raw)   │
    └──────────┘     └──────────┘     └──────────┘     └──────────┘     └──────────┘

Stages run strictly in order; the first failure aborts the build and no
image is written. Library units that are absent or fail to assemble are
skipped with a warning and the primary is linked without them.

Every run is a cold start: each stage builds fresh values from the files
on disk and nothing is cached between builds. Artifacts written before a
failure stay on disk for inspection.
"""

import logging
import subprocess
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from romanos_sdk.backends.collaborators import Collaborators, SourceAssembler
from romanos_sdk.backends.dispatcher import BuildMode, GeneratedArtifacts, dispatch
from romanos_sdk.config import BuildConfig, DEFAULT_EXAMPLE
from romanos_sdk.errors import AssemblyError, Diagnostic, SourceNotFound
from romanos_sdk.image.builder import BootImage, build_boot_image
from romanos_sdk.linker.records import LinkedProgram, Module
from romanos_sdk.linker.relocator import link
from romanos_sdk.toolchain.nasm import Runner, assemble_binary, probe

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================

@dataclass
class BuildResult:
    """
    Everything one successful build produced.

    Attributes:
        example: Name of the primary source unit
        mode: Backend that ran
        program: The linked program handed to the backend
        artifacts: Backend output files
        binary: Raw binary written by the external assembler
        image_path: Final floppy image on disk
        image: The image itself
        warnings: Non-fatal conditions met along the way
    """
    example: str
    mode: BuildMode
    program: LinkedProgram
    artifacts: GeneratedArtifacts
    binary: Path
    image_path: Path
    image: BootImage
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Assembly Stage Helpers
# =============================================================================

def assemble_file(assembler: SourceAssembler, path: Path, role: str = "source") -> Module:
    """
    Read and assemble one source unit.

    Raises:
        SourceNotFound: If the file does not exist
        AssemblyError: With every diagnostic the assembler reported
    """
    if not path.is_file():
        raise SourceNotFound(path, role=role)

    source = path.read_text(encoding="utf-8")
    result = assembler.assemble(source, str(path))

    if not result.success:
        found = result.diagnostics or [Diagnostic(0, "assembler produced no module")]
        raise AssemblyError(path.name, found)

    module = result.module
    if module.name == "<module>":
        module = replace(module, name=path.name)
    return module


# =============================================================================
# Pipeline
# =============================================================================

class BuildPipeline:
    """
    Orchestrates one build invocation.

    Example:
        >>> config = BuildConfig.from_env()
        >>> pipeline = BuildPipeline(config, Collaborators.from_config(config))
        >>> result = pipeline.run("hello-world", BuildMode.NATIVE)
        >>> result.image_path
        PosixPath('build/hello-world.img')
    """

    def __init__(
        self,
        config: BuildConfig,
        collaborators: Collaborators,
        runner: Runner = subprocess.run,
    ):
        self.config = config
        self.collaborators = collaborators
        self._runner = runner

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def assemble_primary(self, example: str) -> Module:
        path = self.config.source_path(example)
        logger.info(f"Reading source: {path}")
        logger.info("Assembling Romasm...")
        module = assemble_file(self.collaborators.require_assembler(), path)
        logger.info(f"✓ Assembled {module.instruction_count} instructions")
        logger.info(f"✓ Found {len(module.labels)} labels")
        return module

    def assemble_libraries(self, warnings: list[str]) -> list[Module]:
        """
        Assemble every configured library that is available.

        Missing libraries are an error only when ``libraries_required`` is
        set. A library that fails to assemble is skipped with a warning.
        """
        modules = []
        assembler = self.collaborators.require_assembler()

        for path in self.config.library_paths():
            if not path.is_file():
                if self.config.libraries_required:
                    raise SourceNotFound(path, role="library")
                logger.debug(f"  No library at {path}, skipping")
                continue

            logger.info(f"  Loading library {path.name}...")
            try:
                module = assemble_file(assembler, path, role="library")
            except AssemblyError as e:
                message = f"library {path.name} failed to assemble; linking without it"
                logger.warning(message)
                for diagnostic in e.diagnostics:
                    logger.warning(f"  {diagnostic}")
                warnings.append(message)
                continue

            logger.info(
                f"  ✓ Loaded {path.name} ({module.instruction_count} instructions)"
            )
            modules.append(module)

        return modules

    def link_modules(self, primary: Module, libraries: list[Module]) -> LinkedProgram:
        logger.info("Linking with standard library...")
        return link([primary, *libraries])

    def assemble_native(self, artifacts: GeneratedArtifacts, binary: Path) -> Path:
        logger.info("Assembling with NASM...")
        nasm = probe(
            self.config.nasm_candidates,
            runner=self._runner,
            timeout=self.config.probe_timeout,
        )
        assemble_binary(
            nasm,
            artifacts.assembly,
            binary,
            runner=self._runner,
            timeout=self.config.nasm_timeout,
        )
        logger.info(f"✓ Assembled to: {binary}")
        return binary

    def package_image(self, binary: Path, image_path: Path, warnings: list[str]) -> BootImage:
        logger.info("Creating bootable image...")
        image = build_boot_image(binary.read_bytes())
        if image.truncated:
            warnings.append(
                f"boot sector is {image.boot_code_size} bytes; "
                f"only the first 512 were written to the image"
            )
        image.write_to_file(image_path)
        logger.info(f"✓ Created bootable image: {image_path}")
        return image

    # -------------------------------------------------------------------------
    # Driver
    # -------------------------------------------------------------------------

    def run(
        self,
        example: str = DEFAULT_EXAMPLE,
        mode: BuildMode = BuildMode.NATIVE,
    ) -> BuildResult:
        """
        Build ``example`` with the chosen backend.

        Raises:
            RomanOSError: From whichever stage fails first
        """
        label = "VM (Native Romasm)" if mode is BuildMode.VM else "Native x86"
        logger.info(f"Build mode: {label}")

        warnings: list[str] = []

        primary = self.assemble_primary(example)
        libraries = self.assemble_libraries(warnings)
        program = self.link_modules(primary, libraries)

        build_dir = self.config.output_dir()
        build_dir.mkdir(parents=True, exist_ok=True)

        template: Optional[Path] = None
        if mode is BuildMode.VM:
            template = self.config.template_path()

        artifacts = dispatch(
            program,
            mode,
            self.collaborators,
            build_dir=build_dir,
            name=example,
            template=template,
        )

        binary = self.assemble_native(artifacts, build_dir / f"{example}.bin")

        image_path = build_dir / f"{example}.img"
        image = self.package_image(binary, image_path, warnings)

        return BuildResult(
            example=example,
            mode=mode,
            program=program,
            artifacts=artifacts,
            binary=binary,
            image_path=image_path,
            image=image,
            warnings=warnings,
        )
