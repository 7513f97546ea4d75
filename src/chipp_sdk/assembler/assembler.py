"""
ChipP Assembler - Main Interface
================================

This module provides the main Assembler class, which is the primary interface
for assembling ChipP source code. It coordinates the lexer and the code
generator to produce a module the ChipP virtual machine loads as its ROM.

Example Usage
-------------
>>> from chipp_sdk.assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... mov 0 0
... label loop
... add_i 0 1
... jmp loop
... ''')
>>> print(f"Generated {len(code)} bytes")
Generated 17 bytes
>>>
>>> asm.write_binary("out.p")

Command-Line Usage
------------------
The assembler can also be invoked from the command line:

    $ pasm main.p16 -o out.p -l main.lst -s main.sym

Options:
    -o, --output FILE      Output module file
    -l, --listing FILE     Generate listing file
    -s, --symbols FILE     Generate label table file
    -v, --verbose          Verbose output
"""

from pathlib import Path
from typing import Iterable, Optional
import logging

from chipp_sdk.config import AssemblerConfig
from chipp_sdk.assembler.lexer import Lexer, SourceLine, tokenize_line
from chipp_sdk.assembler.codegen import CodeGenerator

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main ChipP assembler class.

    Each assemble call starts from an empty label table, so one instance
    can assemble any number of programs and separate instances never
    share state.

    Attributes:
        config: Assembler configuration (register count, file defaults)
        verbose: If True, log progress at INFO level
    """

    def __init__(self, config: Optional[AssemblerConfig] = None, verbose: bool = False):
        """
        Initialize the assembler.

        Args:
            config: Assembler configuration; defaults to AssemblerConfig()
            verbose: Enable progress messages
        """
        self.config = config or AssemblerConfig()
        self.verbose = verbose
        self._source_file: Optional[Path] = None
        self._codegen = CodeGenerator(register_count=self.config.register_count)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, source: str | Iterable[str], filename: str = "<input>") -> bytes:
        """
        Assemble source given as a string or as a sequence of lines.

        Args:
            source: Complete source text, or its lines in program order
            filename: Virtual filename for error messages

        Returns:
            The assembled module

        Raises:
            AssemblerError: If assembly fails
        """
        if isinstance(source, str):
            return self.assemble_string(source, filename)
        return self.assemble_lines(source, filename)

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The assembled module

        Raises:
            AssemblerError: If assembly fails
        """
        lines = list(Lexer(source, filename).tokenize())
        return self._generate(lines, filename)

    def assemble_lines(self, lines: Iterable[str], filename: str = "<input>") -> bytes:
        """
        Assemble source given as an ordered sequence of lines.

        Line numbers in errors count from 1 in the order given.
        """
        source_lines = [
            SourceLine(number, text, tuple(tokenize_line(text)))
            for number, text in enumerate(lines, start=1)
        ]
        return self._generate(source_lines, filename)

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Args:
            filepath: Path to assembly source file

        Returns:
            The assembled module

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._source_file = filepath

        self._log(f"Assembling {filepath}...")

        source = filepath.read_text(encoding=self.config.source_encoding)
        return self.assemble_string(source, str(filepath))

    def _generate(self, lines: list[SourceLine], filename: str) -> bytes:
        self._log(f"Tokenized {len(lines)} lines from {filename}")
        self._codegen = CodeGenerator(register_count=self.config.register_count)
        code = self._codegen.generate(lines, filename)
        self._log(f"Generated {len(code)} bytes, {len(self._codegen.get_labels())} labels")
        return code

    def _log(self, message: str) -> None:
        if self.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_code(self) -> bytes:
        """Get the module from the last successful assembly."""
        return self._codegen.get_code()

    def get_labels(self) -> dict[str, int]:
        """
        Get the label table.

        Returns:
            Dictionary mapping label names to module offsets
        """
        return self._codegen.get_labels()

    def get_listing(self) -> str:
        """Get the assembly listing as a string."""
        return self._codegen.get_listing()

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write the module verbatim.

        Args:
            filepath: Output file path
        """
        code = self.get_code()
        Path(filepath).write_bytes(code)
        self._log(f"Wrote {len(code)} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """
        Write assembly listing file.

        The listing file shows:
        - Module offsets
        - Generated bytes
        - Source lines
        - Label table
        """
        self._codegen.write_listing(filepath)
        self._log(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the label table file."""
        self._codegen.write_symbols(filepath)
        self._log(f"Wrote labels to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str | Iterable[str], filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Args:
        source: Source text, or its lines in program order
        filename: Virtual filename for errors

    Returns:
        The assembled module

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_file(filepath)
