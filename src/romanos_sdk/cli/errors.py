"""
Unified CLI Error Handling
==========================

Maps RomanOS build failures to exit codes shared by rosbuild, rosconv
and rosrun.

    Exit  Raised by
    ----  ------------------------------------------------------------
    1     AssemblyError, RelocationError, GenerationError/TemplateError,
          ToolchainNotFound, ExternalAssemblyFailed
    2     SourceNotFound (example, library, template, image),
          CollaboratorError, bad options, OS-level missing files
    3     anything else (a bug; traceback shown with -v)
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Process exit status for the RomanOS command-line tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Source, link, backend or NASM stage failed
    INVALID_ARGS = 2     # Nothing to build from: bad input or setup
    INTERNAL_ERROR = 3


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception on stderr and exit with its ExitCode.

    Stage failures are prefixed with ``error_type`` ("Build error: ...",
    "Conversion error: ...") so the operator can tell a broken program
    from a broken setup.

    Args:
        error: The exception that escaped the command
        verbose: Print the traceback for internal errors
        error_type: Stage-failure prefix, e.g. "Build" or "Run"

    Raises:
        SystemExit: Always
    """
    from romanos_sdk.errors import CollaboratorError, RomanOSError, SourceNotFound

    if isinstance(error, (SourceNotFound, CollaboratorError)):
        # The build never started: missing .romasm/.img or no assembler set up
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, RomanOSError):
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        # Includes qemu-system-x86_64 not being installed
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
