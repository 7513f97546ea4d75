# =============================================================================
# test_cli.py - Command-Line Tool Tests
# =============================================================================
# Tests for the pasm and pdisasm command-line tools.
#
# Test coverage includes:
#   - Default and explicit output paths
#   - Listing and label table files
#   - Exit codes for assembly errors and bad arguments
#   - Disassembly with and without a label table
# =============================================================================

import pytest
from click.testing import CliRunner

from chipp_sdk.cli.pasm import main as pasm
from chipp_sdk.cli.pdisasm import main as pdisasm


PROGRAM = """\
label start
mov 0 1
jmp start
"""

BAD_PROGRAM = """\
mov 0 1
jmp nowhere
"""


@pytest.fixture
def runner(monkeypatch):
    for name in ("CHIPP_REGISTER_COUNT", "CHIPP_OUTPUT_SUFFIX", "CHIPP_SOURCE_ENCODING"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "main.p16"
    path.write_text(PROGRAM)
    return path


# =============================================================================
# pasm Tests
# =============================================================================

class TestAssemblerCLI:
    """Tests for the pasm CLI tool."""

    def test_cli_help(self, runner):
        result = runner.invoke(pasm, ["--help"])
        assert result.exit_code == 0
        assert "Assemble ChipP source code" in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(pasm, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_default_output_path(self, runner, source):
        """Without -o the module is written next to the source as .p."""
        result = runner.invoke(pasm, [str(source)])
        assert result.exit_code == 0
        output = source.with_suffix(".p")
        assert output.read_bytes() == bytes([0x01, 0, 0, 0, 0, 1, 0x0C, 0, 0, 0, 0])

    def test_output_option(self, runner, source, tmp_path):
        output = tmp_path / "out.rom"
        result = runner.invoke(pasm, [str(source), "-o", str(output)])
        assert result.exit_code == 0
        assert output.exists()
        assert not source.with_suffix(".p").exists()

    def test_output_suffix_from_env(self, runner, source):
        result = runner.invoke(pasm, [str(source)], env={"CHIPP_OUTPUT_SUFFIX": ".rom"})
        assert result.exit_code == 0
        assert source.with_suffix(".rom").exists()

    def test_listing_and_symbols(self, runner, source, tmp_path):
        listing = tmp_path / "main.lst"
        symbols = tmp_path / "main.sym"
        result = runner.invoke(pasm, [str(source), "-l", str(listing), "-s", str(symbols)])
        assert result.exit_code == 0
        assert "jmp start" in listing.read_text()
        assert "start $00000000" in symbols.read_text()

    def test_verbose(self, runner, source):
        result = runner.invoke(pasm, [str(source), "-v"])
        assert result.exit_code == 0
        assert "Assembly complete: 11 bytes" in result.output

    def test_assembly_error(self, runner, tmp_path):
        """An assembly error names the line and writes nothing."""
        bad = tmp_path / "main.p16"
        bad.write_text(BAD_PROGRAM)
        result = runner.invoke(pasm, [str(bad)])
        assert result.exit_code == 1
        assert "main.p16:2" in result.output
        assert "undefined label 'nowhere'" in result.output
        assert not bad.with_suffix(".p").exists()

    def test_error_keeps_existing_output(self, runner, tmp_path):
        bad = tmp_path / "main.p16"
        bad.write_text(BAD_PROGRAM)
        output = tmp_path / "main.p"
        output.write_bytes(b"previous")
        result = runner.invoke(pasm, [str(bad)])
        assert result.exit_code == 1
        assert output.read_bytes() == b"previous"

    def test_missing_input(self, runner, tmp_path):
        result = runner.invoke(pasm, [str(tmp_path / "missing.p16")])
        assert result.exit_code == 2

    def test_registers_option(self, runner, tmp_path):
        path = tmp_path / "wide.p16"
        path.write_text("mov 40 1\n")
        assert runner.invoke(pasm, [str(path)]).exit_code == 1
        result = runner.invoke(pasm, [str(path), "-r", "64"])
        assert result.exit_code == 0
        assert path.with_suffix(".p").read_bytes()[1] == 40

    def test_registers_option_range(self, runner, source):
        result = runner.invoke(pasm, [str(source), "-r", "0"])
        assert result.exit_code == 2

    def test_refuses_to_overwrite_source(self, runner, tmp_path):
        """A source already named with the output suffix is left intact."""
        path = tmp_path / "main.p"
        path.write_text("return\n")
        result = runner.invoke(pasm, [str(path)])
        assert result.exit_code == 2
        assert "input file" in result.output
        assert path.read_text() == "return\n"

    def test_refuses_explicit_output_equal_to_input(self, runner, source):
        result = runner.invoke(pasm, [str(source), "-o", str(source)])
        assert result.exit_code == 2
        assert source.read_text() == PROGRAM

    def test_invalid_suffix_env_uses_default(self, runner, source):
        result = runner.invoke(pasm, [str(source)], env={"CHIPP_OUTPUT_SUFFIX": "."})
        assert result.exit_code == 0
        assert source.with_suffix(".p").exists()

    def test_unknown_encoding_env_uses_default(self, runner, source):
        result = runner.invoke(pasm, [str(source)], env={"CHIPP_SOURCE_ENCODING": "no-such-codec"})
        assert result.exit_code == 0


# =============================================================================
# pdisasm Tests
# =============================================================================

class TestDisassemblerCLI:
    """Tests for the pdisasm CLI tool."""

    @pytest.fixture
    def module(self, runner, source):
        runner.invoke(pasm, [str(source), "-s", str(source.with_suffix(".sym"))])
        return source.with_suffix(".p")

    def test_cli_help(self, runner):
        result = runner.invoke(pdisasm, ["--help"])
        assert result.exit_code == 0
        assert "Disassemble a ChipP ROM module" in result.output

    def test_basic_disassembly(self, runner, module):
        result = runner.invoke(pdisasm, [str(module)])
        assert result.exit_code == 0
        assert "; Disassembly of main.p" in result.output
        assert "; Size: 11 bytes" in result.output
        assert "mov 0 1" in result.output
        assert "jmp $00000000" in result.output

    def test_with_symbols(self, runner, module, source):
        result = runner.invoke(pdisasm, [str(module), "-s", str(source.with_suffix(".sym"))])
        assert result.exit_code == 0
        assert "label start" in result.output
        assert "jmp start" in result.output

    def test_no_bytes_is_source(self, runner, module, source, tmp_path):
        """--no-bytes output assembles back to the same module."""
        output = tmp_path / "round.p16"
        result = runner.invoke(pdisasm, [
            str(module), "-s", str(source.with_suffix(".sym")), "--no-bytes", "-o", str(output),
        ])
        assert result.exit_code == 0
        result = runner.invoke(pasm, [str(output), "-o", str(tmp_path / "round.p")])
        assert result.exit_code == 0
        assert (tmp_path / "round.p").read_bytes() == module.read_bytes()

    def test_count(self, runner, module):
        result = runner.invoke(pdisasm, [str(module), "-c", "1", "--no-bytes"])
        assert result.exit_code == 0
        assert "mov 0 1" in result.output
        assert "jmp" not in result.output

    def test_empty_file(self, runner, tmp_path):
        empty = tmp_path / "empty.p"
        empty.write_bytes(b"")
        result = runner.invoke(pdisasm, [str(empty)])
        assert result.exit_code == 1

    def test_bad_symbol_file(self, runner, module, tmp_path):
        symbols = tmp_path / "bad.sym"
        symbols.write_text("not a label table\n")
        result = runner.invoke(pdisasm, [str(module), "-s", str(symbols)])
        assert result.exit_code == 2

    @pytest.mark.parametrize("count", ["0", "-1"])
    def test_count_must_be_positive(self, runner, module, count):
        result = runner.invoke(pdisasm, [str(module), "-c", count])
        assert result.exit_code == 2

    def test_inline_data_round_trips(self, runner, tmp_path):
        """--no-bytes output of a module holding string data reassembles."""
        path = tmp_path / "msg.p16"
        path.write_text('jmp start\nlabel msg\nstring "\\nAB"\nlabel start\nprint_str_rom msg\n')
        symbols = tmp_path / "msg.sym"
        assert runner.invoke(pasm, [str(path), "-s", str(symbols)]).exit_code == 0
        module = path.with_suffix(".p")

        listing = tmp_path / "round.p16"
        result = runner.invoke(pdisasm, [
            str(module), "-s", str(symbols), "--no-bytes", "-o", str(listing),
        ])
        assert result.exit_code == 0
        assert "mul" not in listing.read_text()

        result = runner.invoke(pasm, [str(listing), "-o", str(tmp_path / "round.p")])
        assert result.exit_code == 0
        assert (tmp_path / "round.p").read_bytes() == module.read_bytes()

    def test_label_at_end_is_kept(self, runner, tmp_path):
        path = tmp_path / "tail.p16"
        path.write_text("jmp tail\nreturn\nlabel tail\n")
        symbols = tmp_path / "tail.sym"
        runner.invoke(pasm, [str(path), "-s", str(symbols)])
        result = runner.invoke(pdisasm, [str(path.with_suffix(".p")), "-s", str(symbols), "--no-bytes"])
        assert result.exit_code == 0
        assert result.output.rstrip().splitlines()[-1] == "label tail"
