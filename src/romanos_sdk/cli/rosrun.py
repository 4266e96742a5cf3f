"""
rosrun - Boot a RomanOS Image in QEMU
=====================================

Starts ``qemu-system-x86_64`` with a built floppy image attached as a raw
floppy drive.

Usage Examples
--------------
    $ rosbuild hello-world && rosrun hello-world
    $ rosrun --qemu /opt/qemu/bin/qemu-system-i386 counter

Exit Codes
----------
0 - QEMU exited normally
1 - QEMU exited with an error
2 - Image not found (build it first) or QEMU not installed
"""

import subprocess
import sys
from pathlib import Path
from typing import Optional

import click

from romanos_sdk import __version__
from romanos_sdk.cli.errors import ExitCode, handle_cli_exception
from romanos_sdk.config import DEFAULT_EXAMPLE, BuildConfig
from romanos_sdk.errors import SourceNotFound

DEFAULT_QEMU = "qemu-system-x86_64"


def qemu_command(qemu: str, image: Path) -> list[str]:
    return [qemu, "-drive", f"file={image},format=raw,if=floppy"]


@click.command()
@click.argument("example", default=DEFAULT_EXAMPLE)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (env: ROMANOS_ROOT; default: cwd).",
)
@click.option(
    "--build-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding built images (default: build/).",
)
@click.option(
    "--qemu",
    default=DEFAULT_QEMU,
    show_default=True,
    help="QEMU system emulator to run.",
)
@click.version_option(version=__version__, prog_name="rosrun")
def main(
    example: str,
    root: Optional[Path],
    build_dir: Optional[Path],
    qemu: str,
) -> None:
    """
    Boot EXAMPLE's floppy image in QEMU.

    The image must already exist; build it with: rosbuild EXAMPLE
    """
    try:
        config = BuildConfig.from_env()
        if root is not None:
            config.root = root
        if build_dir is not None:
            config.build_dir = build_dir

        image = config.output_dir() / f"{example}.img"
        if not image.is_file():
            click.echo(f"Please build first with: rosbuild {example}", err=True)
            raise SourceNotFound(image, role="image")

        click.echo(f"Running RomanOS example: {example}")
        click.echo("================================")
        result = subprocess.run(qemu_command(qemu, image))

    except Exception as e:
        handle_cli_exception(e, error_type="Run")

    if result.returncode != 0:
        sys.exit(ExitCode.BUILD_ERROR)


if __name__ == "__main__":
    main()
