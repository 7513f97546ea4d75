"""
ChipP Disassembler
==================

Disassembles ChipP modules back into assembly source syntax. This is the
inverse of the assembler's encoding pass.

A module mixes instructions with inline string and byte data and carries
no section information, so this is a linear sweep: every byte is decoded
as an instruction when its value is a known opcode tag, and as a `bytes`
line otherwise. Data placed between instructions can therefore show up as
spurious instructions.

Usage:
    disasm = ChipPDisassembler(symbol_table={0x1C: "loop"})
    for instr in disasm.disassemble(module):
        print(instr)
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import struct

from ..assembler.opcodes import OPCODE_TABLE, InstructionInfo, OperandKind
from ..config import DEFAULT_REGISTER_COUNT


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled ChipP instruction.

    Attributes:
        address: Module offset of the instruction
        opcode: The opcode tag byte
        mnemonic: The instruction mnemonic, or "bytes" for undecodable data
        operands: Formatted operand tokens
        size: Total size in bytes
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (e.g. unknown opcode)
    """
    address: int
    opcode: int
    mnemonic: str
    operands: List[str] = field(default_factory=list)
    size: int = 1
    raw_bytes: bytes = b""
    comment: str = ""

    @property
    def operand_str(self) -> str:
        return " ".join(self.operands)

    @property
    def source(self) -> str:
        """The instruction as an assembly source line."""
        return " ".join([self.mnemonic] + self.operands)

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  SOURCE ; COMMENT"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes[:9]).ljust(26)
        if self.comment:
            return f"${self.address:08X}: {hex_bytes}  {self.source:<32} ; {self.comment}"
        return f"${self.address:08X}: {hex_bytes}  {self.source}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:08X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "operands": list(self.operands),
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# =============================================================================
# ChipP Disassembler
# =============================================================================

class ChipPDisassembler:
    """
    Disassembler for ChipP modules.

    Builds a reverse lookup table from the assembler's OPCODE_TABLE, so the
    two always agree on the encoding.

    Attributes:
        _reverse_table: Maps opcode tag to InstructionInfo
        _symbol_table: Maps module offsets to label names
    """

    def __init__(
        self,
        symbol_table: Optional[Dict[int, str]] = None,
        register_count: int = DEFAULT_REGISTER_COUNT,
    ):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional dict mapping offsets to label names.
                          Label operands at known offsets are shown by name,
                          and no instruction is decoded across a known offset.
            register_count: Number of VM registers. An instruction whose
                            register field is out of range is shown as data.
        """
        self._symbol_table = dict(symbol_table or {})
        self._register_count = register_count
        self._reverse_table: Dict[int, InstructionInfo] = {
            int(info.opcode): info for info in OPCODE_TABLE.values()
        }

    def disassemble_one(self, data: bytes, offset: int = 0) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Bytes that cannot be an instruction the assembler would emit are
        returned as a `bytes` line, so the source form always reassembles
        to the same bytes.

        Args:
            data: Module bytes
            offset: Offset of the instruction within data

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        info = self._reverse_table.get(opcode)

        if info is None:
            return self._data(data, offset, offset + 1, "unknown opcode")

        end = offset + info.size
        split = self._next_symbol(offset, end)
        if split is not None:
            return self._data(data, offset, split, f"label inside {info.mnemonic}")

        if end > len(data):
            return self._data(data, offset, len(data), f"incomplete {info.mnemonic}")

        raw_bytes = bytes(data[offset:end])
        operands = []
        comment = ""
        pos = 1
        for kind in info.operands:
            if kind is OperandKind.REGISTER:
                register = raw_bytes[pos]
                if register >= self._register_count:
                    return self._data(data, offset, offset + 1, "invalid register")
                operands.append(str(register))
            else:
                (value,) = struct.unpack(">I", raw_bytes[pos:pos + 4])
                if kind is OperandKind.LABEL:
                    name = self._symbol_table.get(value)
                    if name is None:
                        operands.append(f"${value:08X}")
                        comment = "unnamed label"
                    else:
                        operands.append(name)
                else:
                    operands.append(str(value))
            pos += kind.width

        return DisassembledInstruction(
            address=offset,
            opcode=opcode,
            mnemonic=info.mnemonic,
            operands=operands,
            size=info.size,
            raw_bytes=raw_bytes,
            comment=comment,
        )

    def _data(self, data: bytes, start: int, end: int, comment: str) -> DisassembledInstruction:
        """Wrap data[start:end] as a `bytes` line."""
        raw = bytes(data[start:end])
        return DisassembledInstruction(
            address=start,
            opcode=raw[0],
            mnemonic="bytes",
            operands=[str(b) for b in raw],
            size=len(raw),
            raw_bytes=raw,
            comment=comment,
        )

    def _next_symbol(self, start: int, end: int) -> Optional[int]:
        """Return the lowest known offset strictly between start and end."""
        inside = [addr for addr in self._symbol_table if start < addr < end]
        return min(inside) if inside else None

    def disassemble(
        self,
        data: bytes,
        count: Optional[int] = None,
        max_bytes: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Module bytes
            count: Maximum number of instructions (None = all)
            max_bytes: Maximum number of bytes to process (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0

        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            if max_bytes is not None and offset >= max_bytes:
                break

            instr = self.disassemble_one(data, offset)
            result.append(instr)
            offset += instr.size

        return result

    def disassemble_to_text(self, data: bytes, count: Optional[int] = None) -> str:
        """Disassemble and return a listing, with label lines at known offsets."""
        lines = []
        end = 0
        for instr in self.disassemble(data, count):
            name = self._symbol_table.get(instr.address)
            if name is not None:
                lines.append(f"label {name}")
            lines.append(str(instr))
            end = instr.address + instr.size
        # A label may sit at the very end of the module
        if end == len(data) and end in self._symbol_table:
            lines.append(f"label {self._symbol_table[end]}")
        return "\n".join(lines)

    def add_symbols(self, symbols: Dict[int, str]) -> None:
        """
        Add multiple symbols to the symbol table.

        Args:
            symbols: Dictionary mapping offsets to names
        """
        self._symbol_table.update(symbols)


def load_symbol_file(path) -> Dict[int, str]:
    """
    Read a label table written by `pasm -s`.

    Format: one `name $offset` pair per line; lines starting with '#' are
    comments. When several labels share an offset, the first one wins.

    Raises:
        ValueError: If a line is not a name/offset pair
    """
    symbols: Dict[int, str] = {}
    with open(path) as f:
        for number, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            if len(parts) != 2 or not parts[1].startswith("$"):
                raise ValueError(f"{path}:{number}: expected 'name $offset', got {line!r}")
            offset = int(parts[1][1:], 16)
            symbols.setdefault(offset, parts[0])
    return symbols
