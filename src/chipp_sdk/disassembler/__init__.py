"""
ChipP SDK Disassembler Module
=============================

Decodes ChipP modules back into assembly source syntax, for checking
assembler output and inspecting ROM images.

Usage:
    from chipp_sdk.disassembler import ChipPDisassembler

    disasm = ChipPDisassembler()
    instructions = disasm.disassemble(module_bytes)
"""

from .chipp import ChipPDisassembler, DisassembledInstruction, load_symbol_file

__all__ = [
    "ChipPDisassembler",
    "DisassembledInstruction",
    "load_symbol_file",
]
