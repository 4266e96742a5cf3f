"""
rosbuild - RomanOS Build Tool
=============================

Builds a bootable RomanOS floppy image from a Romasm example program.

Pipeline:

    examples/<name>.romasm ─┐
                            ├─▶ link ─▶ x86 asm / VM bootloader ─▶ nasm ─▶ .bin ─▶ .img
    stdlib/bios.romasm ─────┘

Usage Examples
--------------
Build the default hello-world example (native x86 backend):
    $ rosbuild

Build another example through the portable VM backend:
    $ rosbuild counter --vm

Verbose output (per-label layout diagnostics, NASM probing):
    $ rosbuild -v hello-world

Link extra libraries (required to exist) instead of the default BIOS:
    $ rosbuild demo -L stdlib/bios.romasm -L stdlib/math.romasm

Label Names
-----------
The example and every linked library share one label table. A name
defined in more than one of them (for example a program routine called
like a BIOS routine) fails the build with a relocation error naming both
units; rename one side or build with --no-library.

Collaborators
-------------
The Romasm source assembler and the x86 code generator are loaded from
``package.module:attribute`` import paths given with --assembler and
--generator, or via ROMANOS_ASSEMBLER and ROMANOS_NATIVE_GENERATOR.

Output
------
Artifacts are written to build/ under the project root:
    <name>.asm                 native mode
    <name>.rombin, <name>-vm.asm   VM mode
    <name>.bin                 raw binary from NASM
    <name>.img                 1.44MB bootable floppy image

Exit Codes
----------
0 - Success
1 - Build failed (assembly, linking, generation or NASM error)
2 - Invalid arguments, missing source files or missing configuration
3 - Internal error
"""

from pathlib import Path
from typing import Optional

import click

from romanos_sdk import __version__
from romanos_sdk.backends import BuildMode, Collaborators
from romanos_sdk.cli.context import (
    apply_collaborator_options,
    collaborator_options,
    setup_logging,
)
from romanos_sdk.cli.errors import handle_cli_exception
from romanos_sdk.config import DEFAULT_EXAMPLE, BuildConfig
from romanos_sdk.pipeline import BuildPipeline


@click.command()
@click.argument("example", default=DEFAULT_EXAMPLE)
@click.option(
    "--vm",
    is_flag=True,
    help="Use the Romasm VM backend (bytecode + VM bootloader) instead of native x86.",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root holding examples/, stdlib/ and vm/ (env: ROMANOS_ROOT; default: cwd).",
)
@click.option(
    "--build-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (env: ROMANOS_BUILD_DIR; default: build/).",
)
@click.option(
    "-L", "--library",
    multiple=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Library source unit to link, in order (can be repeated). "
         "Replaces the default stdlib/bios.romasm and must exist.",
)
@click.option(
    "--no-library",
    is_flag=True,
    help="Do not link any library.",
)
@click.option(
    "--nasm",
    default=None,
    help="NASM executable to try before the default locations (env: ROMANOS_NASM).",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to wait for NASM before giving up (0 = wait forever).",
)
@collaborator_options
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show detailed progress and layout diagnostics",
)
@click.version_option(version=__version__, prog_name="rosbuild")
def main(
    example: str,
    vm: bool,
    root: Optional[Path],
    build_dir: Optional[Path],
    library: tuple[Path, ...],
    no_library: bool,
    nasm: Optional[str],
    timeout: Optional[float],
    assembler: Optional[str],
    generator: Optional[str],
    optimizer: Optional[str],
    verbose: bool,
) -> None:
    """
    Build a bootable RomanOS image from a Romasm example.

    EXAMPLE is the name of a program in examples/ (without .romasm).
    Default: hello-world.

    \b
    Examples:
        rosbuild                      # hello-world, native x86
        rosbuild hello-world --vm     # VM backend
        rosbuild -v counter           # Verbose output
        rosbuild --no-library demo    # Do not link the BIOS library
    """
    setup_logging(verbose)

    try:
        if library and no_library:
            raise click.BadParameter(
                "--library and --no-library cannot be used together",
                param_hint="--library",
            )

        try:
            config = BuildConfig.from_env()
        except ValueError as e:
            raise click.BadParameter(str(e)) from e

        if root is not None:
            config.root = root
        if build_dir is not None:
            config.build_dir = build_dir
        if library:
            config.libraries = list(library)
            config.libraries_required = True
        elif no_library:
            config.libraries = []
        if nasm:
            config.nasm_candidates.insert(0, nasm)
        if timeout is not None:
            config.nasm_timeout = timeout if timeout > 0 else None
        apply_collaborator_options(config, assembler, generator, optimizer)

        mode = BuildMode.VM if vm else BuildMode.NATIVE

        click.echo("RomanOS Build System")
        click.echo("====================")

        pipeline = BuildPipeline(config, Collaborators.from_config(config))
        result = pipeline.run(example, mode)

        for warning in result.warnings:
            click.echo(f"Warning: {warning}", err=True)

        click.echo()
        click.echo("Build complete!")
        click.echo(f"Output: {result.image_path}")
        click.echo()
        click.echo("Run with:")
        click.echo(f"  rosrun {example}")
        click.echo("  or")
        click.echo(
            f"  qemu-system-x86_64 -drive file={result.image_path},format=raw,if=floppy"
        )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Build")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
