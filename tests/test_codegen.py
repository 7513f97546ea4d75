# =============================================================================
# test_codegen.py - Code Generator Unit Tests
# =============================================================================
# Tests for the ChipP two-pass code generator.
#
# Test coverage includes:
#   - Label offsets from the sizing pass
#   - Forward and backward label references
#   - string and bytes directives
#   - Sizing and encoding agreement
#   - Listing and label table output
# =============================================================================

import logging

import pytest
from chipp_sdk.assembler.codegen import CodeGenerator
from chipp_sdk.assembler.lexer import tokenize_source
from chipp_sdk.errors import (
    AssemblerError,
    DuplicateLabelError,
    MalformedOperandError,
    MissingLabelOperandError,
    UndefinedLabelError,
    UnknownMnemonicError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def generate(source: str, register_count: int = 32) -> tuple[bytes, CodeGenerator]:
    """Generate a module from source and return it with its generator."""
    codegen = CodeGenerator(register_count=register_count)
    code = codegen.generate(tokenize_source(source), "test.p16")
    return code, codegen


LAYOUT_PROGRAM = """
label start
mov 3 10
label data
string "hey"
label raw
bytes 1 2 3
label end
jmp end
return
"""

ADDRESS_PROGRAM = """
jmp target
call sub
print_str_rom msg
draw_sprite 1 2 sprite
jeq 1 2 target
label msg
string "ok"
label sprite
bytes 0 1 0 1
label sub
return
label target
swap_buffers
"""


# =============================================================================
# Label Offset Tests
# =============================================================================

class TestLabelOffsets:
    """Test label offsets computed in the sizing pass."""

    def test_layout_offsets(self):
        code, codegen = generate(LAYOUT_PROGRAM)
        assert codegen.get_labels() == {"start": 0, "data": 6, "raw": 10, "end": 13}
        assert len(code) == 19

    def test_layout_bytes(self):
        code, _ = generate(LAYOUT_PROGRAM)
        assert code == bytes([
            0x01, 3, 0, 0, 0, 10,          # mov 3 10
            ord("h"), ord("e"), ord("y"), 0,
            1, 2, 3,
            0x0C, 0, 0, 0, 13,              # jmp end
            0x13,                           # return
        ])

    def test_label_offsets_do_not_move_code(self):
        """Labels occupy no space in the module."""
        with_labels, _ = generate("label a\nlabel b\nreturn\nlabel c")
        without_labels, _ = generate("return")
        assert with_labels == without_labels

    def test_label_at_end_of_module(self):
        code, codegen = generate("return\nlabel tail")
        assert codegen.get_labels()["tail"] == len(code) == 1

    def test_forward_references_resolve(self):
        code, codegen = generate(ADDRESS_PROGRAM)
        assert codegen.get_labels() == {"msg": 29, "sprite": 32, "sub": 36, "target": 37}
        assert len(code) == 38

    def test_address_fields(self):
        code, _ = generate(ADDRESS_PROGRAM)
        assert code[0:5] == bytes([0x0C, 0, 0, 0, 37])           # jmp target
        assert code[5:10] == bytes([0x12, 0, 0, 0, 36])          # call sub
        assert code[10:15] == bytes([0x11, 0, 0, 0, 29])         # print_str_rom msg
        assert code[15:22] == bytes([0x16, 1, 2, 0, 0, 0, 32])   # draw_sprite 1 2 sprite
        assert code[22:29] == bytes([0x0D, 1, 2, 0, 0, 0, 37])   # jeq 1 2 target

    def test_backward_reference(self):
        code, _ = generate("label loop\nadd_i 0 1\njmp loop")
        assert code[-5:] == bytes([0x0C, 0, 0, 0, 0])

    def test_labels_are_case_sensitive(self):
        _, codegen = generate("label Loop\nlabel loop\nreturn")
        assert codegen.get_labels() == {"Loop": 0, "loop": 0}


# =============================================================================
# Directive Tests
# =============================================================================

class TestStringDirective:
    """Test the string directive."""

    def test_null_terminated(self):
        code, _ = generate('string "abc"')
        assert code == b"abc\x00"

    def test_newline_escape(self):
        code, _ = generate(r'string "a\nb"')
        assert list(code) == [97, 10, 98, 0]

    def test_newline_escape_changes_size(self):
        """The expanded literal sizes the line, not the source text."""
        _, codegen = generate(r'string "\n\n"' + "\nlabel after")
        assert codegen.get_labels()["after"] == 3

    def test_empty_string(self):
        code, _ = generate('string ""')
        assert code == b"\x00"

    def test_spaces_kept(self):
        code, _ = generate('string "a b"')
        assert code == b"a b\x00"

    def test_latin1_character(self):
        code, _ = generate('string "é"')
        assert code == b"\xe9\x00"

    def test_wide_character_rejected(self):
        with pytest.raises(MalformedOperandError):
            generate('string "€"')

    def test_unquoted_words_rejected(self):
        with pytest.raises(MalformedOperandError) as exc_info:
            generate("string hello world")
        assert 'string "hello world"' in str(exc_info.value)

    def test_missing_literal(self):
        with pytest.raises(MalformedOperandError):
            generate("string")


class TestBytesDirective:
    """Test the bytes directive."""

    def test_one_byte_per_operand(self):
        code, _ = generate("bytes 1 2 255")
        assert code == bytes([1, 2, 255])

    def test_no_operands(self):
        code, codegen = generate("bytes\nlabel after")
        assert code == b""
        assert codegen.get_labels()["after"] == 0

    def test_truncated_to_one_byte(self):
        code, _ = generate("bytes 256 257 -1")
        assert code == bytes([0, 1, 255])

    def test_truncation_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="chipp_sdk.assembler.codegen"):
            generate("bytes 300")
        assert "test.p16:1" in caplog.text
        assert "truncated to 44" in caplog.text

    def test_in_range_does_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="chipp_sdk.assembler.codegen"):
            generate("bytes 0 128 255")
        assert caplog.text == ""

    def test_non_decimal_rejected(self):
        with pytest.raises(MalformedOperandError):
            generate("bytes 1 0xFF")


# =============================================================================
# Error Tests
# =============================================================================

class TestCodegenErrors:
    """Test fatal errors raised during generation."""

    def test_label_without_name(self):
        with pytest.raises(MissingLabelOperandError) as exc_info:
            generate("return\nlabel")
        assert exc_info.value.line == 2
        assert exc_info.value.count == 0

    def test_label_with_two_names(self):
        with pytest.raises(MissingLabelOperandError):
            generate("label a b")

    def test_duplicate_label(self):
        with pytest.raises(DuplicateLabelError) as exc_info:
            generate("label top\nreturn\nlabel top")
        assert exc_info.value.line == 3
        assert exc_info.value.original_location.line == 1
        assert "test.p16:1" in str(exc_info.value)

    def test_unknown_mnemonic(self):
        with pytest.raises(UnknownMnemonicError) as exc_info:
            generate("return\nnop")
        assert exc_info.value.mnemonic == "nop"
        assert exc_info.value.line == 2

    def test_unknown_mnemonic_is_case_sensitive(self):
        with pytest.raises(UnknownMnemonicError) as exc_info:
            generate("RETURN")
        assert "return" in exc_info.value.similar_mnemonics

    def test_undefined_label(self):
        with pytest.raises(UndefinedLabelError) as exc_info:
            generate("label loop\njmp lop")
        assert exc_info.value.line == 2
        assert "did you mean 'loop'?" in str(exc_info.value)

    def test_register_count_applies(self):
        with pytest.raises(MalformedOperandError):
            generate("mov 8 0", register_count=8)
        code, _ = generate("mov 7 0", register_count=8)
        assert code[1] == 7

    def test_failed_generation_clears_code(self):
        codegen = CodeGenerator()
        codegen.generate(tokenize_source("return"))
        assert codegen.get_code() == b"\x13"
        with pytest.raises(AssemblerError):
            codegen.generate(tokenize_source("return\njmp nowhere"))
        assert codegen.get_code() == b""

    def test_state_reset_between_runs(self):
        codegen = CodeGenerator()
        codegen.generate(tokenize_source("label old\nreturn"))
        with pytest.raises(UndefinedLabelError):
            codegen.generate(tokenize_source("jmp old"))


# =============================================================================
# Output File Tests
# =============================================================================

class TestListing:
    """Test the listing and label table output."""

    def test_listing_contents(self):
        _, codegen = generate(LAYOUT_PROGRAM)
        listing = codegen.get_listing()
        assert "ChipP Assembler Listing" in listing
        assert "$00000000  01 03 00 00 00 0A" in listing
        assert "$0000000D  0C 00 00 00 0D" in listing
        assert "jmp end" in listing
        assert "end                  = $0000000D" in listing

    def test_listing_skips_label_lines(self):
        _, codegen = generate("label start\nreturn")
        body = codegen.get_listing().split("Label Table")[0]
        assert "label start" not in body

    def test_listing_truncates_long_code(self):
        _, codegen = generate('string "abcdefghij"')
        assert "61 62 63 64 65 66 67 68 .." in codegen.get_listing()

    def test_write_symbols(self, tmp_path):
        _, codegen = generate(ADDRESS_PROGRAM)
        path = tmp_path / "out.sym"
        codegen.write_symbols(path)
        lines = path.read_text().splitlines()
        assert lines[0].startswith("#")
        assert lines[2:] == [
            "msg $0000001D",
            "sprite $00000020",
            "sub $00000024",
            "target $00000025",
        ]

    def test_write_listing(self, tmp_path):
        _, codegen = generate("return")
        path = tmp_path / "out.lst"
        codegen.write_listing(path)
        assert path.read_text().endswith("\n")
