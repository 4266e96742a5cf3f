"""
rosconv - Romasm to x86 Converter
=================================

Converts a single Romasm source file to x86 assembly text. No library
linking and no image building: this is the quick way to inspect what the
native generator makes of one module.

Usage Examples
--------------
16-bit (boot sector) output, the default:
    $ rosconv program.romasm program.asm
    # also writes program_boot.asm (boot sector version)

32-bit output:
    $ rosconv program.romasm program.asm --32bit

Exit Codes
----------
0 - Success
1 - Assembly or generation error
2 - Invalid arguments, missing input or missing configuration
3 - Internal error
"""

import logging
from pathlib import Path
from typing import Optional

import click

from romanos_sdk import __version__
from romanos_sdk.backends import Collaborators
from romanos_sdk.backends.dispatcher import call_backend
from romanos_sdk.cli.context import (
    apply_collaborator_options,
    collaborator_options,
    setup_logging,
)
from romanos_sdk.cli.errors import handle_cli_exception
from romanos_sdk.config import BuildConfig
from romanos_sdk.pipeline import assemble_file

logger = logging.getLogger(__name__)


def boot_sector_path(output: Path) -> Path:
    """program.asm -> program_boot.asm"""
    return output.with_name(f"{output.stem}_boot{output.suffix or '.asm'}")


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--16bit/--32bit", "mode16bit",
    default=True,
    help="Target width. 16-bit (default) also writes a boot sector version.",
)
@collaborator_options
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="rosconv")
def main(
    input_file: Path,
    output_file: Path,
    mode16bit: bool,
    assembler: Optional[str],
    generator: Optional[str],
    optimizer: Optional[str],
    verbose: bool,
) -> None:
    """
    Convert a Romasm source file to x86 assembly.

    INPUT_FILE is the .romasm source; OUTPUT_FILE receives the assembly.
    """
    setup_logging(verbose)

    try:
        try:
            config = BuildConfig.from_env()
        except ValueError as e:
            raise click.BadParameter(str(e)) from e
        apply_collaborator_options(config, assembler, generator, optimizer)
        collaborators = Collaborators.from_config(config)

        logger.info("Assembling Romasm...")
        module = assemble_file(collaborators.require_assembler(), input_file)
        logger.info(f"Assembled {module.instruction_count} instructions")
        logger.info(f"Found {len(module.labels)} labels")

        width = "16-bit" if mode16bit else "32-bit"
        logger.info(f"Generating x86 {width} assembly...")
        native = collaborators.require_native_generator()
        text = call_backend(
            "x86 generator", native.generate_assembly, module.instructions, mode16bit
        )

        output_file.write_text(text, encoding="utf-8")
        click.echo(f"Output written to: {output_file}")

        if mode16bit:
            boot_file = boot_sector_path(output_file)
            boot_text = call_backend(
                "x86 generator",
                native.generate_boot_sector,
                module.instructions,
                module.data,
                module.labels,
            )
            boot_file.write_text(boot_text, encoding="utf-8")
            click.echo(f"Boot sector version written to: {boot_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Conversion")


if __name__ == "__main__":
    main()
