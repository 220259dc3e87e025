"""
Parser for compiled Sleigh specifications (`.sla`).

`parse` turns a whole document into a typed `Sleigh` tree; `parse_rule` parses a
single record fragment; `tokenize` exposes the token stream.
"""

from __future__ import annotations

from . import ast
from .errors import LexError, LiteralError, ParseError, SleighSyntaxError, SourceError
from .lexer import Token, TokenKind, tokenize
from .parser import RULES, parse, parse_rule

__all__ = [
	"ast",
	"parse",
	"parse_rule",
	"tokenize",
	"RULES",
	"Token",
	"TokenKind",
	"SourceError",
	"LexError",
	"SleighSyntaxError",
	"LiteralError",
	"ParseError",
]
