"""
Romasm Bytecode Generator
=========================

Encodes a linked Romasm program as the compact binary bytecode executed by
the Romasm VM bootloader.

Bytecode Format (little-endian)
-------------------------------
    Offset  Size  Field
    0       4     Magic "RMSM"
    4       2     Version (major, minor) = 1, 0
    6       2     Instruction count
    8       ...   Instructions: opcode byte, then encoded operands
    ...     2     Data count
    ...     n     One byte per data item
    ...     2     Label count
    ...     ...   Labels: name length (1), UTF-8 name, address (2)

Operand Encoding
----------------
    Register        [reg]                       reg = 0x00-0x07
    Immediate       [0x80] [lo] [hi]
    Label           [0xA0] [lo] [hi]
    Segment         [0xB0] [seg]                seg = 0x00-0x05 (CS..GS)
    Memory (reg)    [0x90] [reg] [0x00]
    Memory (abs)    [0x90] [0xFF] [lo] [hi]

Registers use the Romasm numeral names I..VIII for R0..R7.
"""

import logging
from typing import Mapping

from romanos_sdk.errors import GenerationError
from romanos_sdk.linker.records import (
    DataItem,
    Instruction,
    LinkedProgram,
    Opcode,
    Operand,
    OperandKind,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Encoding Tables
# =============================================================================

MAGIC = b"RMSM"
VERSION = (1, 0)

OPCODE_BYTES: dict[Opcode, int] = {
    Opcode.NOP: 0x00,
    Opcode.LOAD: 0x01,
    Opcode.STORE: 0x02,
    Opcode.ADD: 0x03,
    Opcode.SUB: 0x04,
    Opcode.MUL: 0x05,
    Opcode.DIV: 0x06,
    Opcode.INC: 0x07,
    Opcode.DEC: 0x08,
    Opcode.CMP: 0x09,
    Opcode.JMP: 0x0A,
    Opcode.JEQ: 0x0B,
    Opcode.JNE: 0x0C,
    Opcode.JLT: 0x0D,
    Opcode.JGT: 0x0E,
    Opcode.JLE: 0x0F,
    Opcode.JGE: 0x10,
    Opcode.CALL: 0x11,
    Opcode.RET: 0x12,
    Opcode.PUSH: 0x13,
    Opcode.POP: 0x14,
    Opcode.INT: 0x15,
    Opcode.MOV_SEG: 0x16,
    Opcode.CLI: 0x17,
    Opcode.STI: 0x18,
    Opcode.IRET: 0x19,
    Opcode.HLT: 0x1A,
}

REGISTER_BYTES = {
    "I": 0x00,      # R0
    "II": 0x01,     # R1
    "III": 0x02,    # R2
    "IV": 0x03,     # R3
    "V": 0x04,      # R4
    "VI": 0x05,     # R5
    "VII": 0x06,    # R6
    "VIII": 0x07,   # R7
}

SEGMENT_BYTES = {
    "CS": 0x00,
    "DS": 0x01,
    "ES": 0x02,
    "SS": 0x03,
    "FS": 0x04,
    "GS": 0x05,
}

IMMEDIATE_FLAG = 0x80
MEMORY_FLAG = 0x90
LABEL_FLAG = 0xA0
SEGMENT_FLAG = 0xB0
ABSOLUTE_MARKER = 0xFF


def _u16(value: int, what: str) -> bytes:
    """Encode an unsigned 16-bit field, rejecting values that do not fit."""
    if not 0 <= value <= 0xFFFF:
        raise GenerationError(f"{what} {value} does not fit in 16 bits")
    return value.to_bytes(2, "little")


# =============================================================================
# Generator
# =============================================================================

class RomasmBytecodeGenerator:
    """
    Default VM backend.

    Stateless; one instance can encode any number of programs.
    """

    def generate(self, program: LinkedProgram) -> bytes:
        """
        Encode a linked program.

        Raises:
            GenerationError: For unknown opcodes, registers or labels, and
                for counts, addresses or names that exceed their fields
        """
        out = bytearray()
        out += MAGIC
        out += bytes(VERSION)

        out += _u16(program.instruction_count, "instruction count")
        for index, instr in enumerate(program.instructions):
            try:
                out += self.encode_instruction(instr, program.labels)
            except GenerationError as e:
                raise GenerationError(f"instruction {index}: {e}") from e

        out += _u16(program.data_count, "data count")
        for item in program.data:
            out.append(self.encode_data_item(item))

        out += _u16(len(program.labels), "label count")
        for name, address in program.labels.items():
            encoded = name.encode("utf-8")
            if len(encoded) > 0xFF:
                raise GenerationError(f"label name '{name}' is longer than 255 bytes")
            out.append(len(encoded))
            out += encoded
            out += _u16(address, f"label '{name}' address")

        logger.debug(
            f"Encoded {program.instruction_count} instructions, "
            f"{program.data_count} data items, {len(program.labels)} labels "
            f"into {len(out)} bytes"
        )
        return bytes(out)

    def encode_instruction(
        self,
        instruction: Instruction,
        labels: Mapping[str, int],
    ) -> bytes:
        """Encode the opcode byte followed by every operand."""
        opcode_byte = OPCODE_BYTES.get(instruction.opcode)
        if opcode_byte is None:
            raise GenerationError(f"unknown opcode: {instruction.opcode}")

        out = bytearray([opcode_byte])
        for operand in instruction.operands:
            out += self.encode_operand(operand, labels)
        return bytes(out)

    def encode_operand(self, operand: Operand, labels: Mapping[str, int]) -> bytes:
        kind = operand.kind

        if kind is OperandKind.REGISTER:
            return bytes([self._register(operand.value)])

        if kind is OperandKind.IMMEDIATE:
            if not isinstance(operand.value, int):
                raise GenerationError(f"immediate operand is not a number: {operand.value!r}")
            # Negative immediates wrap to two's complement
            return bytes([IMMEDIATE_FLAG]) + (operand.value & 0xFFFF).to_bytes(2, "little")

        if kind is OperandKind.LABEL:
            if operand.label_name is not None:
                if operand.label_name not in labels:
                    raise GenerationError(f"unknown label: {operand.label_name}")
                address = labels[operand.label_name]
            elif isinstance(operand.value, int):
                address = operand.value
            elif isinstance(operand.value, str) and operand.value in labels:
                address = labels[operand.value]
            else:
                raise GenerationError(f"unknown label: {operand.value!r}")
            return bytes([LABEL_FLAG]) + _u16(address, "label address")

        if kind is OperandKind.SEGMENT:
            segment = SEGMENT_BYTES.get(str(operand.value).upper())
            if segment is None:
                raise GenerationError(f"unknown segment register: {operand.value}")
            return bytes([SEGMENT_FLAG, segment])

        if kind is OperandKind.MEMORY:
            if isinstance(operand.value, int):
                return (
                    bytes([MEMORY_FLAG, ABSOLUTE_MARKER])
                    + _u16(operand.value, "memory address")
                )
            return bytes([MEMORY_FLAG, self._register(operand.value), 0x00])

        raise GenerationError(f"unsupported operand type: {kind}")

    def encode_data_item(self, item: DataItem) -> int:
        """Each data item occupies exactly one byte cell."""
        if isinstance(item.value, int):
            return item.value & 0xFF
        if len(item.value) == 1:
            return item.value[0]
        raise GenerationError(
            f"data item at offset {item.address} is {len(item.value)} bytes; "
            f"the VM data segment holds one byte per item"
        )

    @staticmethod
    def _register(name) -> int:
        register = REGISTER_BYTES.get(name)
        if register is None:
            raise GenerationError(f"unknown register: {name}")
        return register
