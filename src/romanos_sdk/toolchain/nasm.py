"""
External Assembler (NASM) Support
=================================

Locates a working NASM executable and runs it to turn generated x86
assembly text into a flat binary.

Locating
--------
``probe()`` tries each candidate in order by running ``<candidate>
--version`` with output suppressed, and returns the first one that exits
with status zero. A candidate that is missing, not executable, or exits
non-zero is skipped. Nothing else is touched.

Running
-------
``assemble_binary()`` runs ``<nasm> -f bin -o <binary> <source>`` with the
console inherited so the operator sees NASM's own messages. A non-zero
exit, or running past the timeout, raises ExternalAssemblyFailed.

Both functions take a ``runner`` argument (``subprocess.run`` by default)
so callers and tests can substitute the process launcher.
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from romanos_sdk.errors import ExternalAssemblyFailed, ToolchainNotFound

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Probe order: PATH first, then common Windows installs, then WSL locations
DEFAULT_CANDIDATES = (
    "nasm",
    "C:/Program Files/NASM/nasm.exe",
    "C:/Program Files (x86)/NASM/nasm.exe",
    "/usr/bin/nasm",
    "/usr/local/bin/nasm",
)

DEFAULT_PROBE_TIMEOUT = 10.0      # seconds
DEFAULT_ASSEMBLE_TIMEOUT = 120.0  # seconds

Runner = Callable[..., subprocess.CompletedProcess]


# =============================================================================
# Locating
# =============================================================================

def probe(
    candidates: Sequence[str] = DEFAULT_CANDIDATES,
    runner: Runner = subprocess.run,
    timeout: Optional[float] = DEFAULT_PROBE_TIMEOUT,
) -> str:
    """
    Return the first candidate whose version query succeeds.

    Args:
        candidates: Executable names or paths, in priority order
        runner: Process launcher with the ``subprocess.run`` signature
        timeout: Per-candidate limit for the version query

    Returns:
        The winning candidate, exactly as given

    Raises:
        ToolchainNotFound: If no candidate answers, carrying all of them
    """
    for candidate in candidates:
        try:
            result = runner(
                [candidate, "--version"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Assembler candidate {candidate!r} unusable: {e}")
            continue

        if result.returncode == 0:
            logger.info(f"  Found NASM at: {candidate}")
            return candidate

        logger.debug(
            f"Assembler candidate {candidate!r} exited with {result.returncode}"
        )

    raise ToolchainNotFound(candidates)


# =============================================================================
# Running
# =============================================================================

def assemble_binary(
    executable: str,
    source: Path,
    output: Path,
    runner: Runner = subprocess.run,
    timeout: Optional[float] = DEFAULT_ASSEMBLE_TIMEOUT,
) -> Path:
    """
    Assemble x86 source text to a flat binary.

    Args:
        executable: NASM command, as returned by ``probe()``
        source: Generated assembly text file
        output: Where NASM should write the raw binary
        runner: Process launcher with the ``subprocess.run`` signature
        timeout: Seconds to wait before giving up (None waits forever)

    Returns:
        The output path

    Raises:
        ExternalAssemblyFailed: On non-zero exit or timeout
    """
    command = [executable, "-f", "bin", "-o", str(output), str(source)]
    logger.debug(f"Running: {' '.join(command)}")

    try:
        result = runner(command, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise ExternalAssemblyFailed(command, timed_out=True)

    if result.returncode != 0:
        raise ExternalAssemblyFailed(command, returncode=result.returncode)

    return output
