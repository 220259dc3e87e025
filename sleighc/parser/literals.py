# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Typed decoding of attribute values.

Every attribute value reaches the builder as a quoted STRING token; the record
layout decides which decoder applies. Decoders raise `LiteralError` pointing at
the token (or at the offending escape inside it).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Mapping, Tuple, TypeVar

from lark import Token

from .ast import HandleSelector, OpCode
from .errors import LiteralError

E = TypeVar("E", bound=Enum)

I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1
U64_MAX = (1 << 64) - 1

_DEC_RE = re.compile(r"-?[0-9]+")
_HEX_RE = re.compile(r"0x([0-9a-fA-F]+)")
_LINE_RE = re.compile(r"(-?[0-9]+):(-?[0-9]+)")
_REFERENCE_RE = re.compile(r"&(?:#x([0-9a-fA-F]+)|#([0-9]+)|([A-Za-z]+));")

_ENTITIES = {
	"amp": "&",
	"lt": "<",
	"gt": ">",
	"quot": '"',
	"apos": "'",
}

BOOLEANS: Mapping[str, bool] = {"true": True, "false": False}
OPCODES: Mapping[str, OpCode] = {op.name: op for op in OpCode}
HANDLE_SELECTORS: Mapping[str, HandleSelector] = {sel.value: sel for sel in HandleSelector}


def _content(tok: Token) -> str:
	return tok.value[1:-1]  # strip quotes


def _error(tok: Token, reason: str, *, at: int = 0) -> LiteralError:
	return LiteralError(reason, offset=tok.start_pos + at, text=tok.value)


def decode_dec(tok: Token) -> int:
	"""Signed decimal, 64-bit range."""
	raw = _content(tok)
	if not _DEC_RE.fullmatch(raw):
		raise _error(tok, f"expected a decimal integer, found {tok.value}")
	value = int(raw)
	if not I64_MIN <= value <= I64_MAX:
		raise _error(tok, f"decimal integer {raw} does not fit in a signed 64-bit value")
	return value


def decode_hex(tok: Token) -> int:
	"""`0x`-prefixed hexadecimal, unsigned 64-bit range."""
	raw = _content(tok)
	m = _HEX_RE.fullmatch(raw)
	if m is None:
		raise _error(tok, f"expected a 0x-prefixed hexadecimal integer, found {tok.value}")
	value = int(m.group(1), 16)
	if value > U64_MAX:
		raise _error(tok, f"hexadecimal integer {raw} does not fit in an unsigned 64-bit value")
	return value


def decode_bool(tok: Token) -> bool:
	raw = _content(tok)
	try:
		return BOOLEANS[raw]
	except KeyError:
		raise _error(tok, f"expected \"true\" or \"false\", found {tok.value}") from None


def decode_enum(tok: Token, table: Mapping[str, E], what: str) -> E:
	raw = _content(tok)
	try:
		return table[raw]
	except KeyError:
		raise _error(tok, f"unknown {what} {tok.value}") from None


def decode_opcode(tok: Token) -> OpCode:
	return decode_enum(tok, OPCODES, "p-code operation")


def decode_selector(tok: Token) -> HandleSelector:
	return decode_enum(tok, HANDLE_SELECTORS, "handle selector")


def decode_line(tok: Token) -> Tuple[int, int]:
	"""Constructor `line="<sourcefile>:<line>"` pair."""
	raw = _content(tok)
	m = _LINE_RE.fullmatch(raw)
	if m is None:
		raise _error(tok, f"expected \"<int>:<int>\", found {tok.value}")
	pair = (int(m.group(1)), int(m.group(2)))
	for value in pair:
		if not I64_MIN <= value <= I64_MAX:
			raise _error(tok, f"line component {value} does not fit in a signed 64-bit value")
	return pair


def decode_string(tok: Token) -> str:
	"""
	XML-unescape a quoted value.

	Supports the five predefined entities plus decimal/hex character
	references. A bare `&`, an unknown entity, or a reference to an invalid
	code point is an error.
	"""
	raw = _content(tok)
	if "&" not in raw:
		return raw
	parts: list[str] = []
	pos = 0
	while True:
		amp = raw.find("&", pos)
		if amp < 0:
			parts.append(raw[pos:])
			break
		parts.append(raw[pos:amp])
		m = _REFERENCE_RE.match(raw, amp)
		if m is None:
			raise _error(tok, f"invalid escape sequence {raw[amp:amp + 12]!r}", at=1 + amp)
		parts.append(_resolve_reference(tok, m, at=1 + amp))
		pos = m.end()
	return "".join(parts)


def _resolve_reference(tok: Token, m: re.Match, *, at: int) -> str:
	hex_digits, dec_digits, entity = m.groups()
	if entity is not None:
		try:
			return _ENTITIES[entity]
		except KeyError:
			raise _error(tok, f"unknown entity &{entity};", at=at) from None
	code = int(hex_digits, 16) if hex_digits is not None else int(dec_digits)
	if code == 0 or code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
		raise _error(tok, f"character reference {m.group(0)} is not a valid code point", at=at)
	return chr(code)


__all__ = [
	"decode_dec",
	"decode_hex",
	"decode_bool",
	"decode_enum",
	"decode_opcode",
	"decode_selector",
	"decode_line",
	"decode_string",
	"BOOLEANS",
	"OPCODES",
	"HANDLE_SELECTORS",
]
