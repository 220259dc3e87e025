# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Parser configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParserConfig:
	"""
	Knobs for a single `parse`/`parse_rule` call.

	- `max_errors`: error recovery stops once this many errors were collected.
	- `recover`: when False, the first lex or syntax error ends the parse.
	"""

	max_errors: int = 100
	recover: bool = True

	def __post_init__(self) -> None:
		if self.max_errors < 1:
			raise ValueError(f"max_errors must be at least 1, got {self.max_errors}")


DEFAULT_CONFIG = ParserConfig()


__all__ = ["ParserConfig", "DEFAULT_CONFIG"]
