# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Grammar engine: LALR(1) recognition of `.sla` text with record-level recovery.

The grammar lives in `grammar.lark`. Parsing runs the lark LALR parser with the
contextual lexer, so the lexer only considers terminals the current parser
state can accept (that is how a quoted `"start"` is a const_tpl discriminator
after `<const_tpl type=` and a plain attribute value everywhere else).

On an error the parser records it and resynchronizes at the next element tag
that some enclosing record can accept, unwinding the LR stack to that record.
"""

from __future__ import annotations

import logging
import re
from copy import copy
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from lark import Lark, Token
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken
from lark.lexer import PatternStr

from sleighc.config import DEFAULT_CONFIG, ParserConfig

from . import ast as A
from .builder import build
from .errors import LexError, ParseError, SleighSyntaxError, SourceError

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

# Productions usable as entry points of `parse_rule`.
RULES: Tuple[str, ...] = (
	"sleigh",
	"sourcefiles",
	"sourcefile",
	"spaces",
	"space_entry",
	"symbol_table",
	"scope",
	"symbol_header_entry",
	"pattern_expression",
	"sleigh_symbol",
	"constructor",
	"construct_tpl",
	"handle_tpl",
	"varnode_tpl",
	"op_tpl",
	"const_tpl",
	"decision",
	"pair",
	"pat_block",
)


class _AttributeNames:
	"""
	Post-lexer that keeps `ATTR` in every contextual lexer state.

	Without it a state lexer only knows the names its state accepts, and an
	unknown `names` would lex as the known `name` followed by `s`.
	"""

	always_accept = ("ATTR",)

	def process(self, stream):
		return stream


_PARSER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    lexer="contextual",
    start=list(RULES),
    propagate_positions=True,
    maybe_placeholders=True,
    postlex=_AttributeNames(),
)

# Literal terminals by their text (`"<sleigh"` -> its terminal name).
_LITERAL_TERMINALS: Dict[str, str] = {
	t.pattern.value: t.name for t in _PARSER.terminals if isinstance(t.pattern, PatternStr)
}
_DISPLAY: Dict[str, str] = {
	t.name: f"'{t.pattern.value}'" for t in _PARSER.terminals if isinstance(t.pattern, PatternStr)
}
_DISPLAY.update({"STRING": "attribute value", "ATTR": "attribute name", "$END": "end of input"})

# A record boundary: `<name` or `</name`. Comments are matched so they can be skipped.
_BOUNDARY_RE = re.compile(r"<!--[\s\S]*?(?:-->|\Z)|<(/?)([A-Za-z_]\w*)")
# The rest of a start tag after its name, up to `>` or `/>`.
_TAG_REST_RE = re.compile(r'(?:"[^"<]*"|[^"<>/]|/(?!>))*(/?>)')


def _record_rules() -> Dict[str, Tuple[str, ...]]:
	"""
	Map each start-tag terminal to the rules that derive a whole record from it.

	`_`-prefixed rules are inlined into their parent's children, so they are
	followed up to the first named rule (`<userop_head` -> `symbol_header_entry`).
	"""
	first: Dict[str, List[str]] = {}
	for rule in _PARSER.rules:
		if rule.expansion:
			first.setdefault(rule.expansion[0].name, []).append(rule.origin.name)
	records: Dict[str, Tuple[str, ...]] = {}
	for text, term in _LITERAL_TERMINALS.items():
		if not text.startswith("<") or text.startswith("</"):
			continue
		found = set()
		seen = set()
		todo = list(first.get(term, ()))
		while todo:
			origin = todo.pop()
			if origin in seen:
				continue
			seen.add(origin)
			if origin.startswith("_"):
				todo.extend(first.get(origin, ()))
			else:
				found.add(origin)
		records[term] = tuple(sorted(found))
	return records


_RECORD_RULES = _record_rules()


def _display(name: str) -> str:
	return _DISPLAY.get(name, name)


def _found(tok: Token) -> str:
	if tok.type == "$END":
		return "end of input"
	return f"'{tok.value}'"


class _Recovery:
	"""
	`on_error` handler for one parse.

	Each call records the error and resynchronizes. An error inside a start
	tag drops that whole record (`_drop_record`); otherwise the lexer moves to
	the next record boundary and the parser stacks are truncated to the deepest
	state that can shift the boundary tag. Returning False ends the parse
	(lark re-raises the error, which `parse_rule` catches).
	"""

	def __init__(self, text: str, config: ParserConfig) -> None:
		self.text = text
		self.config = config
		self.errors: List[SourceError] = []
		self.stopped = False

	def __call__(self, e: UnexpectedInput) -> bool:
		if isinstance(e, UnexpectedToken) and e.token.type == "$END":
			return False
		self.record(e)
		if not self.config.recover:
			self.stopped = True
			return False
		if len(self.errors) >= self.config.max_errors:
			self.stopped = True
			logger.warning("stopping after %d errors", len(self.errors))
			return False
		pos = e.token.start_pos if isinstance(e, UnexpectedToken) else e.pos_in_stream
		self._resync(e, pos)
		return True

	def record(self, e: UnexpectedInput) -> None:
		self.errors.append(self.convert(e))

	def convert(self, e: UnexpectedInput) -> SourceError:
		if isinstance(e, UnexpectedCharacters):
			if self.text[e.pos_in_stream] == '"':
				return LexError("unterminated string literal", offset=e.pos_in_stream)
			return LexError(f"unrecognized input {self.text[e.pos_in_stream:e.pos_in_stream + 16]!r}", offset=e.pos_in_stream)
		if isinstance(e, UnexpectedToken):
			# `accepts()` replays the pending reductions, so the set reflects the
			# enclosing record rather than every merged LALR lookahead.
			names = e.interactive_parser.accepts() if e.interactive_parser is not None else e.expected
			expected = sorted(_display(name) for name in names)
			offset = len(self.text) if e.token.type == "$END" else e.token.start_pos
			return SleighSyntaxError(offset=offset, expected=expected, found=_found(e.token))
		raise TypeError(f"unexpected lark error {type(e).__name__}")

	def _resync(self, e: UnexpectedInput, pos: int) -> None:
		parser_state = e.interactive_parser.parser_state
		lexer_state = e.interactive_parser.lexer_thread.state
		if self._drop_record(parser_state, lexer_state, pos):
			return
		start = pos
		while True:
			m = _BOUNDARY_RE.search(self.text, start)
			if m is None:
				logger.debug("recovery at offset %d: no boundary left, skipping to end", pos)
				self._seek(lexer_state, len(self.text))
				return
			start = m.start() + 1
			if m.group(2) is None:
				start = m.end()
				continue
			term = _LITERAL_TERMINALS.get("<" + m.group(1) + m.group(2))
			if term is None:
				continue
			top = len(parser_state.state_stack)
			if m.start() == pos:
				top -= 1
			tok = Token(term, m.group(0), m.start())
			for depth in range(top, 0, -1):
				if self._feeds(self._probe(parser_state, depth), tok):
					logger.debug(
						"recovery at offset %d: resuming at %s (offset %d), unwinding %d states",
						pos, m.group(0), m.start(), len(parser_state.state_stack) - depth,
					)
					del parser_state.state_stack[depth:]
					del parser_state.value_stack[depth - 1:]
					self._seek(lexer_state, m.start())
					return

	def _drop_record(self, parser_state, lexer_state, pos: int) -> bool:
		"""
		Recover from an error inside a start tag by treating the whole record
		as parsed.

		The innermost open record is replaced on the stack by a placeholder for
		its rule and the lexer moves past its end, so a parent with a fixed
		number of children (`<varnode_tpl>` holds three `<const_tpl>`) keeps
		the remaining slots. Returns False when the record cannot be delimited
		or what follows it does not fit.
		"""
		values = parser_state.value_stack
		for k in range(len(values) - 1, -1, -1):
			tag = values[k]
			if isinstance(tag, Token) and tag.value.startswith("<"):
				break
		else:
			return False
		if tag.value.startswith("</"):
			return False
		rest = _TAG_REST_RE.match(self.text, tag.end_pos)
		if rest is None or rest.end() <= pos:
			return False
		if rest.group(1) == "/>":
			end = rest.end()
		else:
			end = self._element_end(tag.value[1:], rest.end())
		if end is None:
			return False
		follow = self._token_at(end)
		if follow is None:
			return False
		goto = parser_state.parse_conf.states[parser_state.state_stack[k]]
		for name in _RECORD_RULES.get(tag.type, ()):
			if name not in goto:
				continue
			_, state = goto[name]
			if state == parser_state.parse_conf.end_state:
				continue
			probe = self._probe(parser_state, k + 1)
			probe.state_stack.append(state)
			probe.value_stack.append(None)
			if not self._feeds(probe, follow):
				continue
			logger.debug(
				"recovery at offset %d: dropping %s record (offsets %d-%d)",
				pos, tag.value, tag.start_pos, end,
			)
			del parser_state.state_stack[k + 1:]
			del parser_state.value_stack[k:]
			parser_state.state_stack.append(state)
			parser_state.value_stack.append(None)
			self._seek(lexer_state, end)
			return True
		return False

	def _element_end(self, name: str, pos: int) -> Optional[int]:
		"""Offset just past the `</name>` closing the element whose content starts at `pos`."""
		tags = re.compile(r"<!--[\s\S]*?(?:-->|\Z)|<(/?)" + re.escape(name) + r"(?!\w)")
		depth = 1
		for m in tags.finditer(self.text, pos):
			if m.group(1) is None:
				continue
			if m.group(1):
				depth -= 1
				if depth == 0:
					close = self.text.find(">", m.end())
					return None if close < 0 else close + 1
				continue
			rest = _TAG_REST_RE.match(self.text, m.end())
			if rest is None:
				return None
			if rest.group(1) == ">":
				depth += 1
		return None

	def _token_at(self, pos: int) -> Optional[Token]:
		"""The tag token that follows `pos` past whitespace and comments, or `$END`."""
		last = pos
		for m in _BOUNDARY_RE.finditer(self.text, pos):
			if self.text[last:m.start()].strip():
				return None
			if m.group(2) is None:
				last = m.end()
				continue
			term = _LITERAL_TERMINALS.get("<" + m.group(1) + m.group(2))
			return None if term is None else Token(term, m.group(0), m.start())
		if self.text[last:].strip():
			return None
		return Token("$END", "", len(self.text))

	@staticmethod
	def _probe(parser_state, depth: int):
		"""A copy of `parser_state` cut down to `depth` states that builds no tree."""
		probe = parser_state.copy(deepcopy_values=False)
		del probe.state_stack[depth:]
		del probe.value_stack[depth - 1:]
		conf = copy(parser_state.parse_conf)
		conf.callbacks = {}
		probe.parse_conf = conf
		return probe

	@staticmethod
	def _feeds(probe, tok: Token) -> bool:
		try:
			probe.feed_token(tok, tok.type == "$END")
		except UnexpectedToken:
			return False
		return True

	def _seek(self, lexer_state, pos: int) -> None:
		ctr = lexer_state.line_ctr
		line_start = self.text.rfind("\n", 0, pos) + 1
		ctr.char_pos = pos
		ctr.line = self.text.count("\n", 0, pos) + 1
		ctr.line_start_pos = line_start
		ctr.column = pos - line_start + 1


def parse_rule(rule: str, text: str, config: Optional[ParserConfig] = None) -> A.Node:
	"""
	Parse `text` as exactly one instance of the production `rule`.

	Raises `ParseError` carrying every lex, syntax and literal error found.
	"""
	if rule not in RULES:
		raise ValueError(f"unknown rule {rule!r}; expected one of {', '.join(RULES)}")
	config = config or DEFAULT_CONFIG
	logger.debug("parsing %s (%d characters)", rule, len(text))
	recovery = _Recovery(text, config)
	tree = None
	try:
		tree = _PARSER.parse(text, start=rule, on_error=recovery)
	except UnexpectedInput as err:
		if not recovery.stopped and len(recovery.errors) < config.max_errors:
			recovery.record(err)
	errors: List[SourceError] = list(recovery.errors)
	node = None
	if tree is not None:
		node, literal_errors = build(tree)
		errors.extend(literal_errors[: max(0, config.max_errors - len(errors))])
	if errors:
		logger.debug("parse of %s failed with %d errors", rule, len(errors))
		raise ParseError(errors)
	if logger.isEnabledFor(logging.DEBUG):
		logger.debug("parsed %s: %d nodes", rule, sum(1 for _ in A.walk(node)))
	return node


def parse(text: str, config: Optional[ParserConfig] = None) -> A.Sleigh:
	"""Parse a whole `.sla` document."""
	return parse_rule("sleigh", text, config)


__all__ = ["RULES", "parse", "parse_rule"]
