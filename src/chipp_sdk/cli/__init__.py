"""
ChipP SDK Command-Line Interface
================================

This package provides command-line tools for the ChipP SDK:

- **pasm**: assembler
- **pdisasm**: disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["pasm", "pdisasm"]
