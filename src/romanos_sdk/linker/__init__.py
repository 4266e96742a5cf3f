"""
Romasm Module Linker
====================

Records describing assembled Romasm modules, and the relocator that folds
several modules into one linked program.

Example:
    >>> from romanos_sdk.linker import link
    >>> program = link([main_module, bios_module])
    >>> program.instruction_count
    42
"""

from romanos_sdk.linker.records import (
    CONTROL_TRANSFER_OPCODES,
    DataItem,
    Instruction,
    LinkedProgram,
    Module,
    Opcode,
    Operand,
    OperandKind,
    Resolution,
)
from romanos_sdk.linker.relocator import link, merge

__all__ = [
    "CONTROL_TRANSFER_OPCODES",
    "DataItem",
    "Instruction",
    "LinkedProgram",
    "Module",
    "Opcode",
    "Operand",
    "OperandKind",
    "Resolution",
    "link",
    "merge",
]
