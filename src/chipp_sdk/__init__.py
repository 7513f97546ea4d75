"""
ChipP SDK - Toolchain for the ChipP Virtual Machine
===================================================

This package provides the tools for building programs for the ChipP
virtual machine, a 32-register bytecode machine with a double-buffered
320x240 display. Programs are flat ROM modules: a sequence of opcode tags,
big-endian operands and inline string or byte data, addressed by offset.

Main Components
---------------
- **assembler**: two-pass assembler (pasm)
    Converts assembly source (.p16) into a ROM module (.p)

- **disassembler**: linear-sweep disassembler (pdisasm)
    Decodes a module back into assembly syntax

Quick Start
-----------
Assemble a program:
    >>> from chipp_sdk.assembler import Assembler
    >>> asm = Assembler()
    >>> code = asm.assemble_file("main.p16")
    >>> asm.write_binary("out.p")

Or use the command-line tools:
    $ pasm main.p16 -o out.p
    $ pdisasm out.p

Version History
---------------
1.0.0 - Initial release with assembler and disassembler
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from chipp_sdk.assembler import Assembler, assemble, assemble_file
from chipp_sdk.config import AssemblerConfig
from chipp_sdk.errors import (
    ChipPError,
    AssemblerError,
    MissingLabelOperandError,
    UndefinedLabelError,
    MalformedOperandError,
    OperandCountError,
    UnknownMnemonicError,
    DuplicateLabelError,
    SourceLocation,
)
from chipp_sdk.disassembler import ChipPDisassembler, DisassembledInstruction

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    "assemble_file",
    "AssemblerConfig",
    # Disassembler
    "ChipPDisassembler",
    "DisassembledInstruction",
    # Exception hierarchy
    "ChipPError",
    "AssemblerError",
    "MissingLabelOperandError",
    "UndefinedLabelError",
    "MalformedOperandError",
    "OperandCountError",
    "UnknownMnemonicError",
    "DuplicateLabelError",
    "SourceLocation",
]
