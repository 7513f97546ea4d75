"""
ChipP Assembly Language Lexer
=============================

This module splits ChipP assembly source into lines of string tokens.
The language is line-oriented: each line holds one directive or one
instruction, with operands separated by whitespace.

Token Rules
-----------
- A token is a maximal run of characters that are neither whitespace nor
  a double quote.
- A double-quoted span is a single token with the quotes stripped and its
  interior whitespace kept verbatim.
- A bare token starting with ';' starts a comment; it and the rest of the
  line are dropped.
- No escape processing happens here. The two-character sequence `\\n` is
  expanded by the `string` directive, not by the lexer.
- An unmatched double quote is skipped rather than reported.

Example
-------
>>> from chipp_sdk.assembler.lexer import tokenize_line
>>> tokenize_line('string "Hello, world!"  ; greeting')
['string', 'Hello, world!']
>>> tokenize_line("jeq 1 2 done")
['jeq', '1', '2', 'done']
"""

from dataclasses import dataclass
from typing import Iterator
import re


# Either a bare word, or a quoted span whose contents land in group 1.
TOKEN_PATTERN = re.compile(r'[^\s"]+|"([^"]*)"')

COMMENT_CHAR = ";"


# =============================================================================
# Source Line Data Class
# =============================================================================

@dataclass(frozen=True)
class SourceLine:
    """
    One tokenized line of source.

    Attributes:
        number: Line number in the source (1-indexed)
        text: The raw line text, used for error context and listings
        tokens: Mnemonic or directive name followed by operand tokens
    """
    number: int
    text: str
    tokens: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    @property
    def mnemonic(self) -> str:
        return self.tokens[0] if self.tokens else ""

    @property
    def operands(self) -> tuple[str, ...]:
        return self.tokens[1:]


# =============================================================================
# Tokenizer
# =============================================================================

def tokenize_line(text: str) -> list[str]:
    """
    Split a single line into tokens.

    Args:
        text: One line of source text (without the trailing newline)

    Returns:
        Ordered list of tokens; empty for blank or comment-only lines
    """
    tokens = []
    for match in TOKEN_PATTERN.finditer(text):
        quoted = match.group(1)
        if quoted is not None:
            tokens.append(quoted)
            continue
        word = match.group(0)
        if word.startswith(COMMENT_CHAR):
            break
        tokens.append(word)
    return tokens


class Lexer:
    """
    Tokenizes ChipP assembly source line by line.

    Usage:
        lexer = Lexer(source_text, "main.p16")
        for line in lexer.tokenize():
            print(line.number, line.tokens)

    Lines are split on '\\n' only, so line numbers match what an editor
    shows. Blank lines are still yielded (with no tokens) so that the
    numbering of later lines is preserved.
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

    def tokenize(self) -> Iterator[SourceLine]:
        for number, text in enumerate(self.source.split("\n"), start=1):
            yield SourceLine(number, text, tuple(tokenize_line(text)))


def tokenize_source(source: str) -> list[SourceLine]:
    """Tokenize a complete source text into a list of lines."""
    return list(Lexer(source).tokenize())
