"""
Romasm Program Records
======================

Data structures shared by the relocator and the backends: assembled
modules, their instructions and operands, data items, and the linked
program produced by folding modules together.

Address Space
-------------
Within one module, addresses are plain integers:

    [0, instruction_count)                            instructions by index
    [instruction_count, instruction_count + data_count)  data items

A data item at data-segment offset ``k`` therefore has address
``instruction_count + k``. Every merge preserves this layout for the
combined program.

Immutability
------------
All records are frozen dataclasses holding tuples. The relocator never
mutates its inputs; it builds new records with rebased addresses.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Optional, Union


# =============================================================================
# Opcodes
# =============================================================================

class Opcode(Enum):
    """Romasm VM opcodes (value is the short mnemonic the assembler emits)."""
    NOP = "NOP"
    LOAD = "L"
    STORE = "X"
    ADD = "A"
    SUB = "S"
    MUL = "M"
    DIV = "DI"
    INC = "I"
    DEC = "D"
    CMP = "C"
    JMP = "V"
    JEQ = "JE"
    JNE = "JN"
    JLT = "JL"
    JGT = "JG"
    JLE = "JLE"
    JGE = "JGE"
    CALL = "CA"
    RET = "R"
    PUSH = "P"
    POP = "PO"
    INT = "INT"
    MOV_SEG = "MSEG"
    CLI = "CLI"
    STI = "STI"
    IRET = "IRET"
    HLT = "HLT"


# Opcodes whose first operand is a jump or call target
CONTROL_TRANSFER_OPCODES = frozenset({
    Opcode.CALL,
    Opcode.JMP,
    Opcode.JEQ,
    Opcode.JNE,
    Opcode.JLT,
    Opcode.JGT,
    Opcode.JLE,
    Opcode.JGE,
})


# =============================================================================
# Operands
# =============================================================================

class OperandKind(Enum):
    """Operand variants produced by the assembler."""
    IMMEDIATE = "immediate"
    REGISTER = "register"
    LABEL = "label"
    MEMORY = "memory"
    SEGMENT = "segment"


class Resolution(Enum):
    """
    Explicit classification of an address.

    Carried optionally by label operands and module labels. When present
    it tells the relocator exactly how to treat the address; when absent
    the relocator falls back to range checks against the module layout.
    """
    CODE = "code"            # index into the owning module's instructions
    DATA = "data"            # address inside the owning module's data segment
    ABSOLUTE = "absolute"    # fixed address, never rebased
    UNRESOLVED = "unresolved"  # not yet bound, never rebased


@dataclass(frozen=True)
class Operand:
    """
    One instruction operand.

    Attributes:
        kind: Which variant this is
        value: Immediate value, register name, resolved address, or for
            memory operands either a base register name or an absolute
            address
        label_name: Symbolic target for label operands not yet resolved
            to a number
        resolution: Optional explicit classification of a numeric label
            target
    """
    kind: OperandKind
    value: Union[int, str, None] = None
    label_name: Optional[str] = None
    resolution: Optional[Resolution] = None

    @classmethod
    def immediate(cls, value: int) -> "Operand":
        return cls(OperandKind.IMMEDIATE, value)

    @classmethod
    def register(cls, name: str) -> "Operand":
        return cls(OperandKind.REGISTER, name)

    @classmethod
    def label(
        cls,
        target: Union[int, str],
        resolution: Optional[Resolution] = None,
    ) -> "Operand":
        """Label reference, by name (str) or by resolved address (int)."""
        if isinstance(target, str):
            return cls(OperandKind.LABEL, None, label_name=target,
                       resolution=resolution)
        return cls(OperandKind.LABEL, target, resolution=resolution)

    @classmethod
    def memory(cls, base: Union[int, str]) -> "Operand":
        return cls(OperandKind.MEMORY, base)

    @classmethod
    def segment(cls, name: str) -> "Operand":
        return cls(OperandKind.SEGMENT, name)

    @property
    def is_resolved_label(self) -> bool:
        """True for a label operand whose target is already a number."""
        return (
            self.kind is OperandKind.LABEL
            and self.label_name is None
            and isinstance(self.value, int)
        )


@dataclass(frozen=True)
class Instruction:
    """An opcode plus its ordered operands."""
    opcode: Opcode
    operands: tuple[Operand, ...] = ()

    @property
    def is_control_transfer(self) -> bool:
        return self.opcode in CONTROL_TRANSFER_OPCODES

    def with_operands(self, operands: tuple[Operand, ...]) -> "Instruction":
        return replace(self, operands=operands)


# =============================================================================
# Data
# =============================================================================

@dataclass(frozen=True)
class DataItem:
    """
    One data-segment entry.

    Attributes:
        address: Offset within the owning module's data segment
        value: Scalar value or literal bytes
    """
    address: int
    value: Union[int, bytes]


# =============================================================================
# Modules
# =============================================================================

@dataclass(frozen=True)
class Module:
    """
    One assembled translation unit.

    Attributes:
        instructions: Instructions in address order
        data: Data items in data-segment order
        labels: Label name to address, following the module address space
        label_resolutions: Optional explicit classification per label name
        name: Human-readable origin (usually the source file name)
    """
    instructions: tuple[Instruction, ...] = ()
    data: tuple[DataItem, ...] = ()
    labels: Mapping[str, int] = field(default_factory=dict)
    label_resolutions: Mapping[str, Resolution] = field(default_factory=dict)
    name: str = "<module>"

    @property
    def instruction_count(self) -> int:
        return len(self.instructions)

    @property
    def data_count(self) -> int:
        return len(self.data)

    @property
    def address_space_size(self) -> int:
        return self.instruction_count + self.data_count

    def is_code_address(self, address: int) -> bool:
        return 0 <= address < self.instruction_count

    def is_data_address(self, address: int) -> bool:
        return self.instruction_count <= address < self.address_space_size

    def classify_label(self, label: str) -> Resolution:
        """
        Classify a label against this module's layout.

        An explicit resolution tag wins. Otherwise the address is checked
        against the code and data ranges; anything outside both is treated
        as absolute.
        """
        tag = self.label_resolutions.get(label)
        if tag is not None:
            return tag
        address = self.labels[label]
        if self.is_code_address(address):
            return Resolution.CODE
        if self.is_data_address(address):
            return Resolution.DATA
        return Resolution.ABSOLUTE


@dataclass(frozen=True)
class LinkedProgram(Module):
    """
    Result of folding one or more modules into one address space.

    Same shape as Module. ``sources`` lists the names of the folded
    modules, primary first.
    """
    sources: tuple[str, ...] = ()

    @classmethod
    def from_module(cls, module: Module) -> "LinkedProgram":
        """Wrap a single unmerged module as a linked program."""
        if isinstance(module, LinkedProgram):
            return module
        return cls(
            instructions=module.instructions,
            data=module.data,
            labels=dict(module.labels),
            label_resolutions=dict(module.label_resolutions),
            name=module.name,
            sources=(module.name,),
        )
