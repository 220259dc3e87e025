# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line front end: read `.sla` files, parse them, report diagnostics.

Human-readable output goes to stderr as `file:line:column: error: message`; with
--json a single `{"exit_code": ..., "diagnostics": [...]}` object is printed to
stdout instead.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from sleighc.config import DEFAULT_CONFIG, ParserConfig
from sleighc.core.diagnostics import Diagnostic
from sleighc.core.span import Span
from sleighc.parser import ParseError, ast, parse

logger = logging.getLogger(__name__)


def _summary(tree: ast.Sleigh) -> str:
	return (
		f"{len(tree.sourcefiles.files)} source files, "
		f"{len(tree.spaces.spaces)} spaces, "
		f"{len(tree.symbol_table.symbols)} symbols"
	)


def check_file(path: Path, config: ParserConfig) -> Tuple[Optional[ast.Sleigh], List[Diagnostic]]:
	"""Parse one file; returns the tree (None on failure) and its diagnostics."""
	try:
		text = path.read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as err:
		return None, [
			Diagnostic(
				message=f"cannot read file: {err}",
				code="E-IO",
				phase="driver",
				span=Span(file=str(path)),
			)
		]
	try:
		tree = parse(text, config)
	except ParseError as err:
		logger.debug("%s: %d errors", path, len(err.errors))
		return None, err.diagnostics(text, file=str(path))
	return tree, []


def main(argv: list[str] | None = None) -> int:
	"""
	Parse each file given on the command line.

	Exit code is 0 when every file parsed cleanly, 1 otherwise.
	"""
	parser = argparse.ArgumentParser(prog="sleighc", description="Parse compiled Sleigh specifications (.sla)")
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to .sla file(s)")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/code/message/severity/file/line/column)",
	)
	parser.add_argument(
		"--max-errors",
		type=int,
		default=DEFAULT_CONFIG.max_errors,
		help="Stop collecting errors after this many per file",
	)
	parser.add_argument("--no-recover", action="store_true", help="Stop at the first syntax error in each file")
	parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
	args = parser.parse_args(argv)

	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)
	try:
		config = ParserConfig(max_errors=args.max_errors, recover=not args.no_recover)
	except ValueError as err:
		parser.error(str(err))

	diagnostics: List[Diagnostic] = []
	for path in args.source:
		tree, diags = check_file(path, config)
		diagnostics.extend(diags)
		if tree is not None and not args.json:
			print(f"{path}: {_summary(tree)}")

	exit_code = 1 if any(d.severity == "error" for d in diagnostics) else 0
	if args.json:
		payload = {
			"exit_code": exit_code,
			"diagnostics": [d.to_json() for d in diagnostics],
		}
		print(json.dumps(payload))
	else:
		for d in diagnostics:
			print(d.render(), file=sys.stderr)
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
