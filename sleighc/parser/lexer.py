# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Standalone token stream over `.sla` text.

The grammar engine lexes through lark directly; `tokenize` exposes the same
terminals as classified `Token`s for tools and tests. The stream is lazy: each
token is matched only when the consumer asks for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from lark.exceptions import UnexpectedCharacters

from .errors import LexError
from .parser import _PARSER


class TokenKind(Enum):
	KEYWORD = "keyword"
	IDENTIFIER = "identifier"
	LITERAL = "literal"
	PUNCTUATION = "punctuation"


@dataclass(frozen=True)
class Token:
	kind: TokenKind
	text: str
	start: int
	end: int


_PUNCTUATION = frozenset({">", "/>", "="})


def _classify(tok) -> TokenKind:
	if tok.type == "STRING" or tok.type.startswith("CT_"):
		return TokenKind.LITERAL
	value = tok.value
	if value in _PUNCTUATION:
		return TokenKind.PUNCTUATION
	if value.startswith("<"):
		return TokenKind.KEYWORD
	return TokenKind.IDENTIFIER


def tokenize(text: str) -> Iterator[Token]:
	"""
	Yield the tokens of `text`, skipping whitespace and comments.

	Element tags (`<sleigh`, `</sleigh`) are KEYWORD, attribute names are
	IDENTIFIER, quoted values are LITERAL, and `>`, `/>`, `=` are PUNCTUATION.
	Raises `LexError` at the first offset no terminal matches.
	"""
	stream = _PARSER.lex(text)
	while True:
		try:
			tok = next(stream)
		except StopIteration:
			return
		except UnexpectedCharacters as e:
			pos = e.pos_in_stream
			if text[pos] == '"':
				raise LexError("unterminated string literal", offset=pos) from None
			raise LexError(f"unrecognized input {text[pos:pos + 16]!r}", offset=pos) from None
		yield Token(kind=_classify(tok), text=tok.value, start=tok.start_pos, end=tok.end_pos)


__all__ = ["Token", "TokenKind", "tokenize"]
