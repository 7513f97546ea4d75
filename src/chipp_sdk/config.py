"""
ChipP SDK - Configuration
=========================

Assembler configuration. Values come from:
- Default values (defined here)
- Environment variables (via AssemblerConfig.from_env)
- Explicit keyword arguments

Environment variables (all optional):
    CHIPP_REGISTER_COUNT: Number of VM registers (integer, 1-256)
    CHIPP_OUTPUT_SUFFIX: Default suffix for assembled modules (e.g. ".p")
    CHIPP_SOURCE_ENCODING: Encoding used to read source files
"""

from dataclasses import dataclass
import codecs
import os
import re


# The VM has 32 general-purpose 32-bit registers.
DEFAULT_REGISTER_COUNT = 32

# A dot followed by characters valid in a file suffix
SUFFIX_PATTERN = re.compile(r"\.[^.\/\\\s]+")


@dataclass
class AssemblerConfig:
    """
    Configuration for an assembly run.

    Attributes:
        register_count: Valid register operands are 0 .. register_count-1
        output_suffix: Suffix used by the CLI when no output path is given
        source_encoding: Text encoding of source files
    """

    register_count: int = DEFAULT_REGISTER_COUNT
    output_suffix: str = ".p"
    source_encoding: str = "utf-8"

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create an AssemblerConfig from environment variables.

        Invalid values are ignored and the default is kept.
        """
        config = cls()

        if count := os.environ.get("CHIPP_REGISTER_COUNT"):
            try:
                value = int(count)
            except ValueError:
                value = 0
            if 1 <= value <= 256:
                config.register_count = value

        if suffix := os.environ.get("CHIPP_OUTPUT_SUFFIX"):
            if not suffix.startswith("."):
                suffix = "." + suffix
            if SUFFIX_PATTERN.fullmatch(suffix):
                config.output_suffix = suffix

        if encoding := os.environ.get("CHIPP_SOURCE_ENCODING"):
            try:
                codecs.lookup(encoding)
            except LookupError:
                pass  # Ignore unknown encodings
            else:
                config.source_encoding = encoding

        return config
