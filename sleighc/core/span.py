# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by diagnostics.

The parser works in character offsets; a Span is the user-facing form with
file/line/column info. `raw` may hold whatever location object produced it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column plus raw parser loc)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None
	raw: Any = None

	@classmethod
	def from_offsets(cls, text: str, start: int, end: Optional[int] = None, *, file: Optional[str] = None) -> "Span":
		"""Map [start, end) character offsets of `text` to 1-based lines/columns."""
		if end is None:
			end = start
		line, column = line_column(text, start)
		end_line, end_column = line_column(text, end)
		return cls(
			file=file,
			line=line,
			column=column,
			end_line=end_line,
			end_column=end_column,
			raw=(start, end),
		)


def line_column(text: str, offset: int) -> tuple[int, int]:
	offset = max(0, min(offset, len(text)))
	line = text.count("\n", 0, offset) + 1
	column = offset - (text.rfind("\n", 0, offset) + 1) + 1
	return line, column


__all__ = ["Span", "line_column"]
