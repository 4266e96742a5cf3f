"""
Module Relocator
================

Merges assembled Romasm modules into one linked program with a single
consistent address space.

Merging is pairwise: ``merge(primary, library)`` appends the library's
instructions after the primary's, then the library's data after the
primary's data. Because the data segment sits after all code, appending
library instructions moves every primary data address up by the library's
instruction count, and the library's own addresses move by the primary's
sizes. Linking N modules is a left fold of ``merge`` over the modules,
primary first.

Layout of ``merge(P, L)``:

    0 .. Pi-1                 P code       (unchanged)
    Pi .. Pi+Li-1             L code       (L code address + Pi)
    Pi+Li .. Pi+Li+Pd-1       P data       (P data address + Li)
    Pi+Li+Pd .. end           L data       (L data address + Pi + Pd)

Rebasing Rules
--------------
An address is rebased only when it is known to point into the module's
own code or data. Labels and label operands may carry an explicit
Resolution tag, which always decides. Untagged addresses fall back to
range checks against the module's pre-merge layout; anything outside
both ranges is left untouched (treated as absolute or external) and is
tagged ABSOLUTE in the result, so later merges in a fold keep it fixed
even when the grown address space covers it.

Untagged operands are only rewritten on control-transfer instructions
(CALL and the jump family), where a resolved numeric target inside the
library's instruction range is a library code address.

Merging is not idempotent: feeding an already merged program back in as
the library would shift its addresses a second time, so that is rejected.
"""

import logging
from dataclasses import replace
from functools import reduce
from typing import Iterable, Optional

from romanos_sdk.errors import RelocationError
from romanos_sdk.linker.records import (
    DataItem,
    Instruction,
    LinkedProgram,
    Module,
    Operand,
    Resolution,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Address Classification
# =============================================================================

def _classify(
    address: int,
    tag: Optional[Resolution],
    instruction_count: int,
    data_count: int,
) -> Resolution:
    """
    Decide how an address relates to a module laid out with the given sizes.

    Explicit tags win. Untagged addresses inside the code range are CODE,
    inside the data range are DATA, and everything else is ABSOLUTE.
    """
    if tag is not None:
        return tag
    if 0 <= address < instruction_count:
        return Resolution.CODE
    if instruction_count <= address < instruction_count + data_count:
        return Resolution.DATA
    return Resolution.ABSOLUTE


def _rebase_library_operand(
    operand: Operand,
    control_transfer: bool,
    base: int,
    library: Module,
    data_base: int,
) -> Operand:
    """Rebase one library operand into the merged address space."""
    if not operand.is_resolved_label:
        return operand

    if operand.resolution is None:
        # Untagged: only jump/call targets inside the library's own code
        if control_transfer and 0 <= operand.value < library.instruction_count:
            return replace(operand, value=operand.value + base)
        return operand

    if operand.resolution is Resolution.CODE:
        return replace(operand, value=operand.value + base)
    if operand.resolution is Resolution.DATA:
        offset = operand.value - library.instruction_count
        return replace(operand, value=data_base + offset)
    return operand


def _rebase_primary_operand(operand: Operand, library_count: int) -> Operand:
    """Primary code does not move; only explicitly tagged data targets shift."""
    if operand.is_resolved_label and operand.resolution is Resolution.DATA:
        return replace(operand, value=operand.value + library_count)
    return operand


# =============================================================================
# Pairwise Merge
# =============================================================================

def merge(primary: Module, library: Module) -> LinkedProgram:
    """
    Merge a library module into a primary module (or linked program).

    Args:
        primary: The module whose code stays at address 0. May itself be
            the result of an earlier merge.
        library: A freshly assembled module to append.

    Returns:
        A new LinkedProgram; neither input is modified.

    Raises:
        RelocationError: If ``library`` is already a linked program, or a
            label name is defined by both sides.
    """
    if isinstance(library, LinkedProgram):
        raise RelocationError(
            f"cannot merge linked program '{library.name}' as a library: "
            f"its addresses have already been rebased"
        )

    base = primary.instruction_count
    orig_instruction_count = base
    orig_data_count = primary.data_count
    library_count = library.instruction_count

    # Library code first, while "value < library count" still means
    # "points into the library's own code"
    new_instruction_count = base + library_count
    library_data_base = new_instruction_count + orig_data_count

    library_instructions = []
    for instr in library.instructions:
        operands = tuple(
            _rebase_library_operand(
                op,
                control_transfer=instr.is_control_transfer and index == 0,
                base=base,
                library=library,
                data_base=library_data_base,
            )
            for index, op in enumerate(instr.operands)
        )
        library_instructions.append(instr.with_operands(operands))

    primary_instructions = [
        instr.with_operands(tuple(
            _rebase_primary_operand(op, library_count) for op in instr.operands
        ))
        for instr in primary.instructions
    ]
    instructions: tuple[Instruction, ...] = (
        tuple(primary_instructions) + tuple(library_instructions)
    )

    resolutions = dict(primary.label_resolutions)
    resolutions.update(library.label_resolutions)

    # Primary data labels move past the library code. This runs before the
    # library labels go in so nothing is shifted twice.
    labels: dict[str, int] = {}
    for name, address in primary.labels.items():
        kind = _classify(
            address,
            primary.label_resolutions.get(name),
            orig_instruction_count,
            orig_data_count,
        )
        if kind is Resolution.DATA:
            labels[name] = new_instruction_count + (address - orig_instruction_count)
        else:
            labels[name] = address
        if kind is Resolution.ABSOLUTE:
            # Pinned so a later merge never reads it against a larger layout
            resolutions[name] = Resolution.ABSOLUTE

    for name, address in library.labels.items():
        if name in labels:
            raise RelocationError(
                f"label '{name}' is defined in both '{primary.name}' "
                f"and '{library.name}'"
            )
        kind = _classify(
            address,
            library.label_resolutions.get(name),
            library_count,
            library.data_count,
        )
        if kind is Resolution.CODE:
            labels[name] = base + address
        elif kind is Resolution.DATA:
            labels[name] = library_data_base + (address - library_count)
        else:
            labels[name] = address
            resolutions[name] = kind

    data_offset = len(primary.data)
    data = tuple(primary.data) + tuple(
        DataItem(address=data_offset + item.address, value=item.value)
        for item in library.data
    )

    if isinstance(primary, LinkedProgram):
        sources = primary.sources + (library.name,)
    else:
        sources = (primary.name, library.name)

    logger.debug(
        f"Merged '{library.name}' into '{primary.name}': "
        f"{library_count} instructions at {base}, "
        f"{library.data_count} data items at offset {data_offset}"
    )

    return LinkedProgram(
        instructions=instructions,
        data=data,
        labels=labels,
        label_resolutions=resolutions,
        name=primary.name,
        sources=sources,
    )


# =============================================================================
# Fold Over Many Modules
# =============================================================================

def link(modules: Iterable[Module]) -> LinkedProgram:
    """
    Link modules in order, primary first, as a left fold of ``merge``.

    A single module is returned wrapped as a LinkedProgram, unmerged.

    Raises:
        RelocationError: If no modules are given, or any merge fails.
    """
    modules = list(modules)
    if not modules:
        raise RelocationError("nothing to link: no modules given")

    first, rest = modules[0], modules[1:]
    return reduce(merge, rest, LinkedProgram.from_module(first))
