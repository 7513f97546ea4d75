"""
ChipP Instruction Set Definition
================================

This module defines the ChipP virtual machine instruction set: the opcode
tags, the operand layout of each instruction, and the encoders that turn
operand tokens into bytes.

Encoding
--------
Every instruction is a one-byte opcode tag followed by its operand fields,
with no padding and no alignment:

- **REGISTER**: register index, 1 byte
- **VALUE**: 32-bit immediate or memory address, 4 bytes big-endian
- **LABEL**: absolute module offset of a label, 4 bytes big-endian

Example: `mov 3 10` -> $01 $03 $00 $00 $00 $0A

Because the width of an instruction is derived from its operand kinds,
the size used for label layout and the number of bytes the encoder
produces are the same by construction.

Operand Syntax
--------------
Registers and values are decimal integers (an optional sign is allowed
for values; negative values are stored in two's complement). Label
operands are bare label names defined elsewhere in the module with
`label <name>`.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Mapping, Optional, Sequence
import difflib
import re
import struct

from chipp_sdk.config import DEFAULT_REGISTER_COUNT
from chipp_sdk.errors import (
    MalformedOperandError,
    OperandCountError,
    SourceLocation,
    UndefinedLabelError,
)


DECIMAL_PATTERN = re.compile(r"[+-]?[0-9]+")

VALUE_MIN = -(1 << 31)
VALUE_MAX = (1 << 32) - 1


# =============================================================================
# Opcode Enumeration
# =============================================================================

class Opcode(IntEnum):
    """
    ChipP opcode tags.

    The mnemonic of each opcode is its lower-cased member name.
    """
    MOV = 0x01
    STORE_I = 0x02
    LOAD_I = 0x03
    STORE = 0x04
    LOAD = 0x05
    ADD = 0x06
    ADD_I = 0x07
    SUB = 0x08
    SUB_I = 0x09
    MUL = 0x0A
    DIV = 0x0B
    JMP = 0x0C
    JEQ = 0x0D
    JNE = 0x0E
    STORE_STR = 0x0F
    PRINT_STR_MEM = 0x10
    PRINT_STR_ROM = 0x11
    CALL = 0x12
    RETURN = 0x13
    SWAP_BUFFERS = 0x14
    DRAW_PIXEL = 0x15
    DRAW_SPRITE = 0x16
    JGT = 0x17
    JLT = 0x18
    JGE = 0x19
    JLE = 0x1A

    @property
    def mnemonic(self) -> str:
        return self.name.lower()


class OperandKind(Enum):
    """Kinds of operand field."""
    REGISTER = auto()
    VALUE = auto()
    LABEL = auto()

    @property
    def width(self) -> int:
        """Encoded width in bytes."""
        return 1 if self is OperandKind.REGISTER else 4

    def __str__(self) -> str:
        return {
            OperandKind.REGISTER: "reg",
            OperandKind.VALUE: "value",
            OperandKind.LABEL: "label",
        }[self]


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Encoding contract of a single instruction.

    Attributes:
        opcode: The opcode tag byte
        operands: Operand field kinds, in source and encoding order
        description: One-line summary of what the VM does with it
    """
    opcode: Opcode
    operands: tuple[OperandKind, ...]
    description: str

    @property
    def mnemonic(self) -> str:
        return self.opcode.mnemonic

    @property
    def operand_size(self) -> int:
        """Number of bytes following the opcode tag."""
        return sum(kind.width for kind in self.operands)

    @property
    def size(self) -> int:
        """Total encoded size including the opcode tag."""
        return 1 + self.operand_size

    @property
    def usage(self) -> str:
        return " ".join([self.mnemonic] + [f"<{kind}>" for kind in self.operands])

    @property
    def references_label(self) -> bool:
        return OperandKind.LABEL in self.operands

    def __repr__(self) -> str:
        return f"InstructionInfo(opcode=${int(self.opcode):02X}, {self.usage!r}, size={self.size})"


_R = OperandKind.REGISTER
_V = OperandKind.VALUE
_L = OperandKind.LABEL

# Operand layout of every opcode. Kept keyed by Opcode so that the
# completeness check below can compare it against the enumeration.
_LAYOUTS: dict[Opcode, tuple[tuple[OperandKind, ...], str]] = {
    Opcode.MOV: ((_R, _V), "load an immediate into a register"),
    Opcode.STORE_I: ((_R, _V), "store a register at a memory address"),
    Opcode.LOAD_I: ((_R, _V), "load a register from a memory address"),
    Opcode.STORE: ((_R, _R), "store reg1 at the address held in reg2"),
    Opcode.LOAD: ((_R, _R), "load reg1 from the address held in reg2"),
    Opcode.ADD: ((_R, _R), "reg1 = reg1 + reg2"),
    Opcode.ADD_I: ((_R, _V), "reg1 = reg1 + immediate"),
    Opcode.SUB: ((_R, _R), "reg1 = reg1 - reg2"),
    Opcode.SUB_I: ((_R, _V), "reg1 = reg1 - immediate"),
    Opcode.MUL: ((_R, _R), "reg1 = reg1 * reg2"),
    Opcode.DIV: ((_R, _R), "reg1 = reg1 / reg2"),
    Opcode.JMP: ((_L,), "jump to label"),
    Opcode.JEQ: ((_R, _R, _L), "jump if reg1 == reg2"),
    Opcode.JNE: ((_R, _R, _L), "jump if reg1 != reg2"),
    Opcode.STORE_STR: ((_V, _V), "copy a null-terminated ROM string into memory"),
    Opcode.PRINT_STR_MEM: ((_V,), "print a null-terminated string from memory"),
    Opcode.PRINT_STR_ROM: ((_L,), "print a null-terminated string from ROM"),
    Opcode.CALL: ((_L,), "push the return address and jump to label"),
    Opcode.RETURN: ((), "pop the return address"),
    Opcode.SWAP_BUFFERS: ((), "swap the drawing and display buffers"),
    Opcode.DRAW_PIXEL: ((_R, _R, _V), "draw an ARGB pixel at (reg1, reg2)"),
    Opcode.DRAW_SPRITE: ((_R, _R, _L), "draw the ROM sprite at label at (reg1, reg2)"),
    Opcode.JGT: ((_R, _R, _L), "jump if reg1 > reg2"),
    Opcode.JLT: ((_R, _R, _L), "jump if reg1 < reg2"),
    Opcode.JGE: ((_R, _R, _L), "jump if reg1 >= reg2"),
    Opcode.JLE: ((_R, _R, _L), "jump if reg1 <= reg2"),
}

_missing = [op.name for op in Opcode if op not in _LAYOUTS]
if _missing:
    raise RuntimeError(f"opcodes without an operand layout: {', '.join(_missing)}")


# =============================================================================
# Opcode Table
# =============================================================================
# Key: mnemonic as written in source (lower case)
# Value: InstructionInfo
# =============================================================================

OPCODE_TABLE: dict[str, InstructionInfo] = {
    op.mnemonic: InstructionInfo(op, operands, description)
    for op, (operands, description) in _LAYOUTS.items()
}

MNEMONICS = frozenset(OPCODE_TABLE)

# Pseudo-ops: affect layout but are not machine instructions
LABEL_DIRECTIVE = "label"
STRING_DIRECTIVE = "string"
BYTES_DIRECTIVE = "bytes"
DIRECTIVES = frozenset({LABEL_DIRECTIVE, STRING_DIRECTIVE, BYTES_DIRECTIVE})


def get_instruction_info(mnemonic: str) -> Optional[InstructionInfo]:
    """Look up the encoding contract of a mnemonic, or None if unknown."""
    return OPCODE_TABLE.get(mnemonic)


def is_valid_instruction(mnemonic: str) -> bool:
    return mnemonic in OPCODE_TABLE


def similar_mnemonics(name: str) -> list[str]:
    """Suggest known mnemonics and directives close to an unknown name."""
    candidates = sorted(MNEMONICS | DIRECTIVES)
    return difflib.get_close_matches(name.lower(), candidates, n=3)


# =============================================================================
# Operand Encoders
# =============================================================================

def parse_decimal(
    token: str,
    what: str = "operand",
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> int:
    """
    Parse a decimal integer operand.

    Raises:
        MalformedOperandError: If the token is not a decimal integer
    """
    if not DECIMAL_PATTERN.fullmatch(token):
        raise MalformedOperandError(
            f"{what} '{token}' is not a decimal integer",
            location=location,
            source_line=source_line,
        )
    return int(token)


def encode_register(
    token: str,
    register_count: int = DEFAULT_REGISTER_COUNT,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> bytes:
    """Encode a register index as one byte."""
    index = parse_decimal(token, "register", location, source_line)
    if not 0 <= index < register_count:
        raise MalformedOperandError(
            f"register {index} out of range",
            location=location,
            hint=f"registers are 0 to {register_count - 1}",
            source_line=source_line,
        )
    return bytes([index])


def encode_value(
    token: str,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> bytes:
    """Encode a 32-bit value, most significant byte first."""
    value = parse_decimal(token, "value", location, source_line)
    if not VALUE_MIN <= value <= VALUE_MAX:
        raise MalformedOperandError(
            f"value {value} does not fit in 32 bits",
            location=location,
            hint=f"values range from {VALUE_MIN} to {VALUE_MAX}",
            source_line=source_line,
        )
    return struct.pack(">I", value & 0xFFFFFFFF)


def encode_label(
    name: str,
    labels: Mapping[str, int],
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> bytes:
    """Encode the module offset of a label, most significant byte first."""
    if name not in labels:
        raise UndefinedLabelError(
            name,
            location=location,
            source_line=source_line,
            similar_labels=difflib.get_close_matches(name, list(labels), n=3),
        )
    return struct.pack(">I", labels[name])


def encode_instruction(
    info: InstructionInfo,
    operands: Sequence[str],
    labels: Mapping[str, int],
    register_count: int = DEFAULT_REGISTER_COUNT,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> bytes:
    """
    Encode one instruction.

    Args:
        info: Encoding contract of the instruction
        operands: Operand tokens as written in source
        labels: Complete label table (name -> module offset)
        register_count: Number of valid registers
        location: Source location for error reporting
        source_line: Source text for error reporting

    Returns:
        The opcode tag followed by exactly info.operand_size operand bytes

    Raises:
        OperandCountError: Wrong number of operands
        MalformedOperandError: Operand is not a valid integer
        UndefinedLabelError: Label operand not in the label table
    """
    if len(operands) != len(info.operands):
        raise OperandCountError(
            info.mnemonic,
            expected=len(info.operands),
            actual=len(operands),
            location=location,
            source_line=source_line,
            usage=info.usage,
        )

    code = bytearray([info.opcode])
    for kind, token in zip(info.operands, operands):
        if kind is OperandKind.REGISTER:
            code += encode_register(token, register_count, location, source_line)
        elif kind is OperandKind.VALUE:
            code += encode_value(token, location, source_line)
        else:
            code += encode_label(token, labels, location, source_line)
    return bytes(code)
