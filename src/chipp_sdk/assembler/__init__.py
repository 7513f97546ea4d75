"""
ChipP Assembler
===============

This module provides a two-pass assembler for the ChipP virtual machine.
It converts line-oriented assembly source into a flat module the VM loads
as its ROM.

Main Components
---------------
- **Assembler**: Main assembler class that orchestrates the assembly process
- **Lexer**: Splits source lines into tokens
- **CodeGenerator**: Sizes, lays out and encodes the module
- **OPCODE_TABLE**: The instruction set and its encoding contract

Assembly Process
----------------
1. **Tokenizing (Lexer)**: split each line into a mnemonic and operands
2. **Sizing (pass 1)**: compute the size of every line, record label offsets
3. **Encoding (pass 2)**: encode instructions, resolving labels

Example Usage
-------------
>>> from chipp_sdk.assembler import assemble
>>> assemble('''
... jmp start
... label message
... string "hi"
... label start
... print_str_rom message
... ''')
b'\\x0c\\x00\\x00\\x00\\x08hi\\x00\\x11\\x00\\x00\\x00\\x05'

Source Syntax
-------------
- `label <name>` binds a name to the current module offset
- `string "<text>"` embeds text plus a null terminator (`\\n` is a newline)
- `bytes <b1> <b2> ...` embeds decimal byte values
- `<mnemonic> <operands...>` encodes an instruction
- `;` starts a comment
"""

from chipp_sdk.assembler.assembler import Assembler, assemble, assemble_file
from chipp_sdk.assembler.lexer import Lexer, SourceLine, tokenize_line, tokenize_source
from chipp_sdk.assembler.codegen import CodeGenerator
from chipp_sdk.assembler.opcodes import (
    Opcode,
    OperandKind,
    InstructionInfo,
    OPCODE_TABLE,
    MNEMONICS,
    DIRECTIVES,
    encode_instruction,
    get_instruction_info,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "SourceLine",
    "tokenize_line",
    "tokenize_source",
    # Code generator
    "CodeGenerator",
    # Opcodes
    "Opcode",
    "OperandKind",
    "InstructionInfo",
    "OPCODE_TABLE",
    "MNEMONICS",
    "DIRECTIVES",
    "encode_instruction",
    "get_instruction_info",
]
