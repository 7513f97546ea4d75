"""
ChipP Code Generator
====================

This module turns tokenized source lines into a ChipP module. It
implements a two-pass assembly process:

Pass 1 (Sizing)
---------------
- Scan all lines sequentially
- Calculate the size of every line
- Build the label table with the module offset of each `label`

Pass 2 (Encoding)
-----------------
- Encode every instruction, resolving labels through the complete table
- Emit string and byte literals
- Check each line emits exactly the size pass 1 attributed to it

Line Kinds
----------
| Line                | Size                         | Emits                  |
|---------------------|------------------------------|------------------------|
| label <name>        | 0                            | nothing                |
| string "<text>"     | len(text) + 1                | characters, then $00   |
| bytes <b1> <b2> ... | number of operands           | one byte per operand   |
| <mnemonic> ...      | 1 + declared operand width   | opcode tag + operands  |

Output Format
-------------
The module is a flat byte sequence: no header, no magic number, no length
prefix. Label offsets are positions in this sequence, which the VM uses
directly as ROM addresses.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
import logging

from chipp_sdk.config import DEFAULT_REGISTER_COUNT
from chipp_sdk.errors import (
    AssemblerError,
    DuplicateLabelError,
    MalformedOperandError,
    MissingLabelOperandError,
    SourceLocation,
    UnknownMnemonicError,
)
from chipp_sdk.assembler.lexer import SourceLine
from chipp_sdk.assembler.opcodes import (
    BYTES_DIRECTIVE,
    LABEL_DIRECTIVE,
    STRING_DIRECTIVE,
    encode_instruction,
    get_instruction_info,
    parse_decimal,
    similar_mnemonics,
)

logger = logging.getLogger(__name__)

# Escape expanded inside `string` literals: backslash followed by 'n'
NEWLINE_ESCAPE = "\\n"

# Listing shows at most this many code bytes per line
LISTING_MAX_BYTES = 8


# =============================================================================
# Label Table Entry
# =============================================================================

@dataclass
class Label:
    """
    Label table entry.

    Attributes:
        name: Label name, case-sensitive
        offset: Byte offset within the module
        location: Where the label was defined
    """
    name: str
    offset: int
    location: SourceLocation


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates a ChipP module from tokenized source lines.

    The code generator maintains, for one generate() call:
    - Label table with the offset of each label
    - Program counter (current module offset)
    - Output code buffer
    - Listing lines

    Usage:
        codegen = CodeGenerator()
        code = codegen.generate(lines)
        labels = codegen.get_labels()
    """

    def __init__(self, register_count: int = DEFAULT_REGISTER_COUNT):
        """
        Initialize the code generator.

        Args:
            register_count: Number of VM registers; register operands must
                            lie in 0 .. register_count-1
        """
        self._register_count = register_count
        self._filename = "<input>"
        self._labels: dict[str, Label] = {}
        self._line_sizes: dict[int, int] = {}
        self._code = bytearray()
        self._pc = 0
        self._listing_lines: list[str] = []

    # =========================================================================
    # Public Interface
    # =========================================================================

    def generate(self, lines: Iterable[SourceLine], filename: str = "<input>") -> bytes:
        """
        Generate a module from tokenized lines.

        This is the main entry point for code generation. State from any
        previous call is discarded first.

        Args:
            lines: Tokenized source lines in program order
            filename: Source name used in error locations

        Returns:
            The assembled module

        Raises:
            AssemblerError: On the first fatal error; nothing is returned
        """
        lines = [line for line in lines if not line.is_empty]

        self._filename = filename
        self._labels = {}
        self._line_sizes = {}
        self._code = bytearray()
        self._pc = 0
        self._listing_lines = []

        try:
            self._pass1(lines)
            logger.debug(
                f"Pass 1: {len(lines)} lines, {self._pc} bytes, {len(self._labels)} labels"
            )
            self._pass2(lines)
        except AssemblerError:
            self._labels = {}
            self._code = bytearray()
            self._listing_lines = []
            raise

        logger.debug(f"Pass 2: emitted {len(self._code)} bytes")
        return bytes(self._code)

    def get_code(self) -> bytes:
        """Return the assembled module."""
        return bytes(self._code)

    def get_labels(self) -> dict[str, int]:
        """Return a dictionary of label names to module offsets."""
        return {name: label.offset for name, label in self._labels.items()}

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing offsets, generated bytes, and source lines,
            followed by the label table.
        """
        lines = []
        lines.append("ChipP Assembler Listing")
        lines.append("=" * 72)
        lines.append("")
        lines.append(f"{'Offset':9s}  {'Code':26s}  {'Line':>4s}  Source")
        lines.append("-" * 72)
        lines.extend(self._listing_lines)
        lines.append("")
        lines.append("Label Table")
        lines.append("-" * 30)
        for name, label in sorted(self._labels.items()):
            lines.append(f"{name:20s} = ${label.offset:08X}")
        return "\n".join(lines)

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing file."""
        with open(filepath, "w") as f:
            f.write(self.get_listing())
            f.write("\n")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write the label table file.

        Format: name $offset (one per line, sorted by name)
        """
        with open(filepath, "w") as f:
            f.write("# Label table\n")
            f.write("# Generated by pasm\n")
            for name, label in sorted(self._labels.items()):
                f.write(f"{name} ${label.offset:08X}\n")

    # =========================================================================
    # Pass 1: Sizing
    # =========================================================================

    def _pass1(self, lines: list[SourceLine]) -> None:
        """
        First pass: compute sizes and label offsets.

        Every line's size is recorded by line number so pass 2 can verify
        that it emits exactly the same number of bytes.
        """
        self._pc = 0

        for line in lines:
            size = self._pass1_line(line)
            self._line_sizes[line.number] = size
            self._pc += size

    def _pass1_line(self, line: SourceLine) -> int:
        """Process a single line in pass 1 and return its size."""
        mnemonic = line.mnemonic

        if mnemonic == LABEL_DIRECTIVE:
            self._define_label(line)
            return 0

        if mnemonic == STRING_DIRECTIVE:
            return len(self._string_literal(line)) + 1

        if mnemonic == BYTES_DIRECTIVE:
            return len(line.operands)

        info = get_instruction_info(mnemonic)
        if info is None:
            raise UnknownMnemonicError(
                mnemonic,
                location=self._location(line),
                source_line=line.text,
                similar_mnemonics=similar_mnemonics(mnemonic),
            )
        return info.size

    def _define_label(self, line: SourceLine) -> None:
        """Define a label at the current offset."""
        if len(line.operands) != 1:
            raise MissingLabelOperandError(
                len(line.operands),
                location=self._location(line),
                source_line=line.text,
            )

        name = line.operands[0]
        if name in self._labels:
            raise DuplicateLabelError(
                name,
                location=self._location(line),
                original_location=self._labels[name].location,
                source_line=line.text,
            )

        self._labels[name] = Label(name, self._pc, self._location(line))
        logger.debug(f"Label '{name}' = ${self._pc:08X}")

    def _string_literal(self, line: SourceLine) -> str:
        """Return the escape-expanded literal of a `string` line."""
        if len(line.operands) != 1:
            raise MalformedOperandError(
                f"string directive takes one literal, got {len(line.operands)}",
                location=self._location(line),
                hint='quote the text: string "hello world"',
                source_line=line.text,
            )
        return line.operands[0].replace(NEWLINE_ESCAPE, "\n")

    # =========================================================================
    # Pass 2: Encoding
    # =========================================================================

    def _pass2(self, lines: list[SourceLine]) -> None:
        """
        Second pass: emit the module.

        Labels are already in the table, so every reference resolves or
        fails here.
        """
        self._pc = 0
        labels = self.get_labels()

        for line in lines:
            code = self._pass2_line(line, labels)

            expected = self._line_sizes[line.number]
            if len(code) != expected:
                raise AssemblerError(
                    f"internal error: line sized as {expected} bytes "
                    f"but encoded as {len(code)}",
                    location=self._location(line),
                    source_line=line.text,
                )

            if line.mnemonic != LABEL_DIRECTIVE:
                self._add_listing_line(line, code)

            self._code.extend(code)
            self._pc += len(code)

    def _pass2_line(self, line: SourceLine, labels: dict[str, int]) -> bytes:
        """Encode a single line in pass 2."""
        mnemonic = line.mnemonic

        if mnemonic == LABEL_DIRECTIVE:
            return b""

        if mnemonic == STRING_DIRECTIVE:
            return self._encode_string(line)

        if mnemonic == BYTES_DIRECTIVE:
            return self._encode_bytes(line)

        # Unknown mnemonics were rejected in pass 1
        info = get_instruction_info(mnemonic)
        return encode_instruction(
            info,
            line.operands,
            labels,
            register_count=self._register_count,
            location=self._location(line),
            source_line=line.text,
        )

    def _encode_string(self, line: SourceLine) -> bytes:
        """Emit one byte per character and a null terminator."""
        text = self._string_literal(line)
        code = bytearray()
        for char in text:
            if ord(char) > 0xFF:
                raise MalformedOperandError(
                    f"character {char!r} does not fit in one byte",
                    location=self._location(line),
                    source_line=line.text,
                )
            code.append(ord(char))
        code.append(0)
        return bytes(code)

    def _encode_bytes(self, line: SourceLine) -> bytes:
        """Emit each operand truncated to one byte."""
        location = self._location(line)
        code = bytearray()
        for token in line.operands:
            value = parse_decimal(token, "byte", location, line.text)
            if not 0 <= value <= 0xFF:
                logger.warning(f"{location}: byte value {value} truncated to {value & 0xFF}")
            code.append(value & 0xFF)
        return bytes(code)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _location(self, line: SourceLine) -> SourceLocation:
        return SourceLocation(self._filename, line.number)

    def _add_listing_line(self, line: SourceLine, code: bytes) -> None:
        hex_str = " ".join(f"{b:02X}" for b in code[:LISTING_MAX_BYTES])
        if len(code) > LISTING_MAX_BYTES:
            hex_str += " .."
        self._listing_lines.append(
            f"${self._pc:08X}  {hex_str:26s}  {line.number:4d}  {line.text.strip()}"
        )
