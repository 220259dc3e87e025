"""sleighc: reader for Ghidra's compiled Sleigh specification format."""

from .config import DEFAULT_CONFIG, ParserConfig
from .parser import ParseError, parse, parse_rule, tokenize

__version__ = "0.1.0"

__all__ = ["parse", "parse_rule", "tokenize", "ParseError", "ParserConfig", "DEFAULT_CONFIG"]
