# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parser error taxonomy.

Every error carries the character offset where it was detected. Errors are
collected while parsing continues past them; `ParseError` is what callers see
once the whole document has been consumed.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from sleighc.core.diagnostics import Diagnostic
from sleighc.core.span import Span


class SourceError(ValueError):
	"""Base class for errors that point at a character offset of the input."""

	code = "E-PARSE"

	def __init__(self, message: str, *, offset: int) -> None:
		super().__init__(message)
		self.offset = offset

	@property
	def message(self) -> str:
		return str(self)

	def to_diagnostic(self, text: str, *, file: Optional[str] = None, end: Optional[int] = None) -> Diagnostic:
		return Diagnostic(
			message=self.message,
			code=self.code,
			phase="parser",
			severity="error",
			span=Span.from_offsets(text, self.offset, self.offset if end is None else end, file=file),
		)


class LexError(SourceError):
	"""Input at `offset` does not start any token of the grammar."""

	code = "E-LEX"

	def __init__(self, reason: str, *, offset: int) -> None:
		super().__init__(reason, offset=offset)
		self.reason = reason


class SleighSyntaxError(SourceError):
	"""
	A token that no rule accepts at the current position.

	`expected` lists the printable forms of the tokens that would have been
	accepted; `found` is the printable form of the offending token.
	"""

	code = "E-SYNTAX"

	def __init__(self, *, offset: int, expected: Sequence[str], found: str) -> None:
		self.expected = tuple(expected)
		self.found = found
		super().__init__(_syntax_message(self.expected, found), offset=offset)


class LiteralError(SourceError):
	"""A matched attribute value that is invalid for its declared type."""

	code = "E-LITERAL"

	def __init__(self, reason: str, *, offset: int, text: str = "") -> None:
		super().__init__(reason, offset=offset)
		self.reason = reason
		self.text = text


class ParseError(ValueError):
	"""
	Raised by `parse`/`parse_rule` when any error was collected.

	The partially built tree is discarded; `errors` holds every collected error
	ordered by offset.
	"""

	def __init__(self, errors: Iterable[SourceError]) -> None:
		self.errors: List[SourceError] = sorted(errors, key=lambda e: e.offset)
		if not self.errors:
			raise ValueError("ParseError requires at least one error")
		first = self.errors[0]
		more = len(self.errors) - 1
		summary = f"offset {first.offset}: {first.message}"
		if more:
			summary += f" (and {more} more error{'s' if more > 1 else ''})"
		super().__init__(summary)

	def of_type(self, kind: type) -> List[SourceError]:
		return [e for e in self.errors if isinstance(e, kind)]

	def diagnostics(self, text: str, *, file: Optional[str] = None) -> List[Diagnostic]:
		return [e.to_diagnostic(text, file=file) for e in self.errors]


def _syntax_message(expected: Sequence[str], found: str) -> str:
	if not expected:
		return f"unexpected {found}"
	if len(expected) == 1:
		return f"expected {expected[0]}, found {found}"
	shown = ", ".join(expected[:8])
	if len(expected) > 8:
		shown += ", ..."
	return f"expected one of {shown}; found {found}"


__all__ = [
	"SourceError",
	"LexError",
	"SleighSyntaxError",
	"LiteralError",
	"ParseError",
]
