"""
ChipP SDK Error Hierarchy
=========================

This module defines the exception hierarchy for the ChipP SDK. All
exceptions inherit from ChipPError, allowing callers to catch every
SDK-related error with a single except clause.

Exception Hierarchy
-------------------
ChipPError (base)
└── AssemblerError (assembler-related)
    ├── MissingLabelOperandError - label directive without exactly one name
    ├── UndefinedLabelError - reference to a label that is never defined
    ├── MalformedOperandError - operand that is not the required integer
    │   └── OperandCountError - wrong number of operands for a mnemonic
    ├── UnknownMnemonicError - first token is not a directive or mnemonic
    └── DuplicateLabelError - label defined more than once

Assembly is all-or-nothing: every AssemblerError is fatal and no module is
produced once one has been raised.

Error messages follow this format:
    filename:line: error: description
        source_line_text
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class ChipPError(Exception):
    """
    Base exception for all ChipP SDK errors.

        try:
            assembler.assemble_file("main.p16")
        except ChipPError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a line in a source file for error reporting.

    Source is line-oriented, so a location is a filename plus a 1-based
    line number.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
    """
    filename: str
    line: int

    def __str__(self) -> str:
        """Format as 'filename:line' for error messages."""
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(ChipPError):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """The 1-based source line number, if known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            main.p16:15: error: undefined label 'lop'
                jmp lop
            hint: did you mean 'loop'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line.strip()}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class MissingLabelOperandError(AssemblerError):
    """
    A `label` directive without exactly one name token.

    Examples:
        label            ; no name
        label a b        ; two names
    """

    def __init__(
        self,
        count: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.count = count
        super().__init__(
            f"label directive needs exactly one name, got {count}",
            location=location,
            hint="write one label per line: label <name>",
            source_line=source_line,
        )


class UndefinedLabelError(AssemblerError):
    """
    Reference to a label that no `label` directive defines.

    Raised during the encoding pass, once the label table is complete.
    Similarly-named labels are suggested to help catch typos.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        if not hint and self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MalformedOperandError(AssemblerError):
    """
    Operand that cannot be parsed as the integer the instruction requires.

    Examples:
        mov r3 10        ; register must be a decimal index
        add_i 1 0x10     ; only decimal literals are accepted
        mov 40 1         ; register index out of range
    """
    pass


class OperandCountError(MalformedOperandError):
    """Wrong number of operands for an instruction or directive."""

    def __init__(
        self,
        mnemonic: str,
        expected: int,
        actual: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        usage: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.expected = expected
        self.actual = actual

        hint = f"usage: {usage}" if usage else None
        word = "operand" if expected == 1 else "operands"
        super().__init__(
            f"'{mnemonic}' takes {expected} {word}, got {actual}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnknownMnemonicError(AssemblerError):
    """
    First token of a line is neither a directive nor a known mnemonic.
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_mnemonics: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.similar_mnemonics = similar_mnemonics or []

        hint = None
        if self.similar_mnemonics:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_mnemonics[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown mnemonic '{mnemonic}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateLabelError(AssemblerError):
    """
    Label defined more than once.

    Includes the location of the original definition in the hint.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )
