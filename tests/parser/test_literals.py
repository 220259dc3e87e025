# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest
from lark import Token

from sleighc.parser import LiteralError, ParseError, ast, parse_rule
from sleighc.parser import literals


def _tok(value: str, start: int = 0) -> Token:
	return Token("STRING", f'"{value}"', start)


def test_hex_and_decimal_values() -> None:
	assert literals.decode_hex(_tok("0x10")) == 16
	assert literals.decode_hex(_tok("0xFFFFFFFFFFFFFFFF")) == (1 << 64) - 1
	assert literals.decode_dec(_tok("-1")) == -1
	assert literals.decode_dec(_tok("9223372036854775807")) == (1 << 63) - 1


@pytest.mark.parametrize(
	"decode, value",
	[
		(literals.decode_dec, "9223372036854775808"),
		(literals.decode_dec, "-9223372036854775809"),
		(literals.decode_hex, "0x10000000000000000"),
	],
)
def test_out_of_range_integers_are_errors(decode, value: str) -> None:
	with pytest.raises(LiteralError) as exc:
		decode(_tok(value, start=7))
	assert exc.value.offset == 7
	assert "does not fit" in exc.value.reason


@pytest.mark.parametrize("value", ["", "0x", "16", "0X10", "0xg1", " 0x1"])
def test_malformed_hex(value: str) -> None:
	with pytest.raises(LiteralError):
		literals.decode_hex(_tok(value))


@pytest.mark.parametrize("value", ["", "+1", "1.0", "0x1", "1 "])
def test_malformed_decimal(value: str) -> None:
	with pytest.raises(LiteralError):
		literals.decode_dec(_tok(value))


def test_booleans_follow_the_keyword() -> None:
	assert literals.decode_bool(_tok("true")) is True
	assert literals.decode_bool(_tok("false")) is False
	for bad in ("True", "1", "yes", ""):
		with pytest.raises(LiteralError):
			literals.decode_bool(_tok(bad))


def test_opcode_table_covers_every_operation() -> None:
	assert len(literals.OPCODES) == 74
	assert literals.decode_opcode(_tok("BLANK")) is ast.OpCode.BLANK
	assert literals.decode_opcode(_tok("INT_ADD")) is ast.OpCode.INT_ADD
	assert literals.decode_opcode(_tok("LZCOUNT")).value == 73
	with pytest.raises(LiteralError) as exc:
		literals.decode_opcode(_tok("int_add"))
	assert "unknown p-code operation" in exc.value.reason


def test_handle_selectors() -> None:
	assert literals.decode_selector(_tok("offset_plus")) is ast.HandleSelector.OFFSET_PLUS
	with pytest.raises(LiteralError):
		literals.decode_selector(_tok("ptr"))


def test_line_pair() -> None:
	assert literals.decode_line(_tok("3:1402")) == (3, 1402)
	for bad in ("3", "3:", ":4", "a:b", "3:4:5"):
		with pytest.raises(LiteralError):
			literals.decode_line(_tok(bad))


def test_string_entities_are_unescaped() -> None:
	assert literals.decode_string(_tok("a &amp; b")) == "a & b"
	assert literals.decode_string(_tok("&lt;&gt;&quot;&apos;")) == "<>\"'"
	assert literals.decode_string(_tok("&#65;&#x42;")) == "AB"
	assert literals.decode_string(_tok("plain")) == "plain"


@pytest.mark.parametrize("value, at", [("a & b", 3), ("&nbsp;", 1), ("x&#0;", 2), ("&#xD800;", 1), ("&amp", 1)])
def test_invalid_escapes_point_at_the_escape(value: str, at: int) -> None:
	with pytest.raises(LiteralError) as exc:
		literals.decode_string(_tok(value, start=10))
	assert exc.value.offset == 10 + at


def test_literal_errors_are_collected_from_one_record() -> None:
	text = '<tokenfield bigendian="maybe" signbit="false" bitstart="x" bitend="7" bytestart="0" byteend="0" shift="0"/>'
	with pytest.raises(ParseError) as exc:
		parse_rule("pattern_expression", text)
	errors = exc.value.errors
	assert all(isinstance(e, LiteralError) for e in errors)
	assert [e.offset for e in errors] == [text.index('"maybe"'), text.index('"x"')]


def test_decimal_overflow_in_a_document(document) -> None:
	text = document('<userop name="u" id="0x5" scope="0x0" index="99999999999999999999"/>')
	with pytest.raises(ParseError) as exc:
		parse_rule("sleigh", text)
	(err,) = exc.value.errors
	assert isinstance(err, LiteralError)
	assert err.offset == text.index('"99999999999999999999"')
	assert err.text == '"99999999999999999999"'


def test_unknown_opcode_in_template() -> None:
	text = '<op_tpl code="FROB"><null/></op_tpl>'
	with pytest.raises(ParseError) as exc:
		parse_rule("op_tpl", text)
	assert exc.value.errors[0].offset == text.index('"FROB"')
