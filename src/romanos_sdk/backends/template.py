"""
VM Bootloader Template Splicing
===============================

The VM bootloader is an x86 assembly template containing one placeholder
region for the program's bytecode:

    bytecode_start:
        ; anything here is replaced
    bytecode_end:

``splice_bytecode()`` replaces that region with a single ``db`` directive
listing the bytecode bytes in hex. The template must contain exactly one
start marker and one end marker, start first. Anything else is a
TemplateError; there is no replace-first or replace-all fallback.
"""

import re
from pathlib import Path
from typing import Optional

from romanos_sdk.errors import TemplateError

START_MARKER = "bytecode_start:"
END_MARKER = "bytecode_end:"

_REGION = re.compile(re.escape(START_MARKER) + r".*?" + re.escape(END_MARKER), re.DOTALL)


def format_data_bytes(blob: bytes) -> str:
    """Render bytes as a NASM ``db`` directive, e.g. ``db 0x52, 0x4d``."""
    return "db " + ", ".join(f"0x{b:02x}" for b in blob)


def splice_bytecode(
    template: str,
    blob: bytes,
    template_path: Optional[Path] = None,
) -> str:
    """
    Replace the template's placeholder region with the bytecode.

    Args:
        template: Bootloader assembly text
        blob: Bytecode to embed (must not be empty)
        template_path: Used only to make error messages point at the file

    Returns:
        The spliced assembly text

    Raises:
        TemplateError: If the marker pair is missing, duplicated, or out
            of order, or the blob is empty
    """
    starts = template.count(START_MARKER)
    ends = template.count(END_MARKER)

    if starts == 0 or ends == 0:
        raise TemplateError(
            f"placeholder region not found (need '{START_MARKER}' ... '{END_MARKER}')",
            template_path,
        )
    if starts > 1 or ends > 1:
        raise TemplateError(
            f"placeholder region must occur exactly once "
            f"(found {starts} start and {ends} end markers)",
            template_path,
        )

    match = _REGION.search(template)
    if match is None:
        raise TemplateError(
            f"'{END_MARKER}' appears before '{START_MARKER}'",
            template_path,
        )
    if not blob:
        raise TemplateError("cannot embed empty bytecode", template_path)

    replacement = f"{START_MARKER}\n    {format_data_bytes(blob)}\n{END_MARKER}"
    return template[:match.start()] + replacement + template[match.end():]
