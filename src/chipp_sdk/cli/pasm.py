"""
pasm - ChipP Assembler Command-Line Interface
=============================================

This module implements the command-line interface for the ChipP assembler.

Usage Examples
--------------
Basic assembly (writes main.p):
    $ pasm main.p16

With output file:
    $ pasm main.p16 -o out.p

Generate all output files:
    $ pasm main.p16 -o out.p -l main.lst -s main.sym

Verbose mode:
    $ pasm -v main.p16
"""

from pathlib import Path
from typing import Optional
import logging

import click

from chipp_sdk import __version__
from chipp_sdk.assembler import Assembler
from chipp_sdk.config import AssemblerConfig
from chipp_sdk.cli.errors import handle_cli_exception


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
    help="Output module file (default: input with .p suffix)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate label table file (readable by pdisasm -s)",
)
@click.option(
    "-r", "--registers",
    type=click.IntRange(1, 256),
    default=None,
    help="Number of VM registers accepted in register operands. Default: 32",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="pasm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    registers: Optional[int],
    verbose: bool,
) -> None:
    """
    Assemble ChipP source code into a ROM module.

    INPUT_FILE is the assembly source file (.p16) to assemble.

    The module is written verbatim: no header, no length prefix. On any
    error nothing is written and the exit code is non-zero.

    \b
    Examples:
        pasm main.p16              # Outputs main.p
        pasm main.p16 -o out.p     # Specify output file
        pasm main.p16 -s main.sym  # Also write the label table
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    config = AssemblerConfig.from_env()
    if registers is not None:
        config.register_count = registers

    asm = Assembler(config=config, verbose=verbose)

    try:
        output_file = output if output is not None else input_file.with_suffix(config.output_suffix)
        if output_file.resolve() == input_file.resolve():
            raise click.BadParameter(
                f"output file {output_file} is the input file; pass -o to choose another",
                param_hint="'-o' / '--output'",
            )

        if verbose:
            click.echo(f"Assembling {input_file}...")

        code = asm.assemble_file(input_file)
        asm.write_binary(output_file)
        if verbose:
            click.echo(f"Wrote {len(code)} bytes to {output_file}")

        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote labels to {symbols}")

        if verbose:
            click.echo(f"Assembly complete: {len(code)} bytes")
            click.echo(f"Defined {len(asm.get_labels())} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
