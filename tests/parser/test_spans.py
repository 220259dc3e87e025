# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from sleighc.core.span import line_column
from sleighc.parser import ast, parse, parse_rule, tokenize


def test_root_span_covers_every_token(sample_text: str) -> None:
	tree = parse(sample_text)
	toks = list(tokenize(sample_text))
	assert tree.loc.start == toks[0].start == 0
	assert tree.loc.end == toks[-1].end
	assert all(tree.loc.start <= t.start and t.end <= tree.loc.end for t in toks)


def test_children_nest_and_siblings_do_not_overlap(sample_text: str) -> None:
	tree = parse(sample_text)
	for node in ast.walk(tree):
		kids = list(ast.children(node))
		for kid in kids:
			assert node.loc.start <= kid.loc.start <= kid.loc.end <= node.loc.end, (node, kid)
		for left, right in zip(kids, kids[1:]):
			assert left.loc.end <= right.loc.start, (left, right)


def test_every_token_has_one_innermost_node(sample_text: str) -> None:
	tree = parse(sample_text)
	nodes = list(ast.walk(tree))
	for tok in tokenize(sample_text):
		owners = [n for n in nodes if n.loc.start <= tok.start and tok.end <= n.loc.end]
		# Owners form a chain, so the innermost one is strictly inside all the others.
		innermost = min(owners, key=lambda n: n.loc.end - n.loc.start)
		assert all(o.loc.start <= innermost.loc.start and innermost.loc.end <= o.loc.end for o in owners)


def test_line_and_column_match_offsets(sample_text: str) -> None:
	tree = parse(sample_text)
	for node in ast.walk(tree):
		assert (node.loc.line, node.loc.column) == line_column(sample_text, node.loc.start)


def test_span_includes_delimiters() -> None:
	text = '  <intb val="5"/>  '
	node = parse_rule("pattern_expression", text)
	assert text[node.loc.start:node.loc.end] == '<intb val="5"/>'


def test_walk_is_document_order(sample_text: str) -> None:
	tree = parse(sample_text)
	starts = [n.loc.start for n in ast.walk(tree)]
	assert starts == sorted(starts)


def test_walk_handles_deep_nesting() -> None:
	depth = 3000
	text = "<not_exp>" * depth + '<intb val="1"/>' + "</not_exp>" * depth
	node = parse_rule("pattern_expression", text)
	assert sum(1 for _ in ast.walk(node)) == depth + 1
	leaf = node
	while isinstance(leaf, ast.UnaryExpression):
		leaf = leaf.operand
	assert leaf.val == 1
