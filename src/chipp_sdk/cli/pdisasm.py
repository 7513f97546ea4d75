"""
pdisasm - ChipP Disassembler Command-Line Interface
===================================================

Usage Examples
--------------
Disassemble a module:
    $ pdisasm out.p

Name label operands using the table written by `pasm -s`:
    $ pdisasm out.p -s main.sym

Limit number of instructions:
    $ pdisasm out.p --count 20

Output to file:
    $ pdisasm out.p -o listing.txt
"""

import sys
from pathlib import Path
from typing import Optional

import click

from chipp_sdk import __version__
from chipp_sdk.cli.errors import ExitCode
from chipp_sdk.config import AssemblerConfig
from chipp_sdk.disassembler import ChipPDisassembler, load_symbol_file


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Label table file written by pasm -s",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "-r", "--registers",
    type=click.IntRange(1, 256),
    default=None,
    help="Number of VM registers; out-of-range register fields are shown as data. Default: 32",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit offsets and raw bytes (emit assembly source only)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="pdisasm")
def main(
    input_file: Path,
    output: Optional[Path],
    symbols: Optional[Path],
    count: Optional[int],
    registers: Optional[int],
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a ChipP ROM module.

    INPUT_FILE is the module to disassemble.

    \b
    Examples:
        pdisasm out.p
        pdisasm out.p -s main.sym --no-bytes
    """
    data = input_file.read_bytes()

    if len(data) == 0:
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    symbol_table = {}
    if symbols:
        try:
            symbol_table = load_symbol_file(symbols)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(ExitCode.INVALID_ARGS)

    register_count = registers if registers is not None else AssemblerConfig.from_env().register_count

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
        if symbols:
            click.echo(f"Loaded {len(symbol_table)} labels from {symbols}", err=True)

    disasm = ChipPDisassembler(symbol_table=symbol_table, register_count=register_count)
    instructions = disasm.disassemble(data, count=count)

    output_lines = []
    output_lines.append(f"; Disassembly of {input_file.name}")
    output_lines.append(f"; Size: {len(data)} bytes")
    output_lines.append("")

    end = 0
    for instr in instructions:
        name = symbol_table.get(instr.address)
        if name is not None:
            output_lines.append(f"label {name}")
        if no_bytes:
            line = instr.source
            if instr.comment:
                line += f"  ; {instr.comment}"
            output_lines.append(line)
        else:
            output_lines.append(str(instr))
        end = instr.address + instr.size

    if end == len(data) and end in symbol_table:
        output_lines.append(f"label {symbol_table[end]}")

    result = "\n".join(output_lines) + "\n"

    if output:
        output.write_text(result, encoding="utf-8")
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
