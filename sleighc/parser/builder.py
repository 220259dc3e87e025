# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parse tree -> typed AST.

`TreeBuilder` is a non-recursive lark transformer: it walks the tree with an
explicit stack, so the deepest decision trees in real .sla files cannot hit
the interpreter recursion limit. Each method corresponds to one grammar rule and
receives the rule's kept children in grammar order (`None` for an optional
attribute that was absent).

Literal conversion errors do not stop the walk. They are collected in
`errors` and the offending field is left as `None`; callers must check
`errors` before trusting the result.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, TypeVar

from lark import Token, Transformer_NonRecursive, v_args

from . import ast as A
from .errors import LiteralError
from .literals import (
	decode_bool,
	decode_dec,
	decode_hex,
	decode_line,
	decode_opcode,
	decode_selector,
	decode_string,
)

T = TypeVar("T")


def _loc(meta) -> A.Located:
	return A.Located(line=meta.line, column=meta.column, start=meta.start_pos, end=meta.end_pos)


def _tag(tok: Token) -> str:
	"""`<space_base` -> `space_base`."""
	return tok.value[1:]


@v_args(meta=True)
class TreeBuilder(Transformer_NonRecursive):
	"""Builds `sleighc.parser.ast` nodes from a lark parse tree."""

	def __init__(self) -> None:
		super().__init__(visit_tokens=False)
		self.errors: List[LiteralError] = []

	# ---- literal helpers ----

	def _convert(self, decode: Callable[[Token], T], tok: Optional[Token]) -> Optional[T]:
		if tok is None:
			return None
		try:
			return decode(tok)
		except LiteralError as err:
			self.errors.append(err)
			return None

	def _dec(self, tok: Optional[Token]) -> Optional[int]:
		return self._convert(decode_dec, tok)

	def _hex(self, tok: Optional[Token]) -> Optional[int]:
		return self._convert(decode_hex, tok)

	def _bool(self, tok: Optional[Token]) -> Optional[bool]:
		return self._convert(decode_bool, tok)

	def _str(self, tok: Optional[Token]) -> Optional[str]:
		return self._convert(decode_string, tok)

	# ---- document ----

	def sleigh(self, meta, items) -> A.Sleigh:
		version, bigendian, align, uniqbase, maxdelay, uniqmask, numsections, sourcefiles, spaces, symtab = items
		return A.Sleigh(
			loc=_loc(meta),
			version=self._dec(version),
			bigendian=self._bool(bigendian),
			align=self._dec(align),
			uniqbase=self._hex(uniqbase),
			maxdelay=self._hex(maxdelay),
			uniqmask=self._hex(uniqmask),
			numsections=self._hex(numsections),
			sourcefiles=sourcefiles,
			spaces=spaces,
			symbol_table=symtab,
		)

	def sourcefiles(self, meta, items) -> A.SourceFiles:
		return A.SourceFiles(loc=_loc(meta), files=list(items))

	def sourcefile(self, meta, items) -> A.SourceFile:
		name, index = items
		return A.SourceFile(loc=_loc(meta), name=self._str(name), index=self._dec(index))

	# ---- address spaces ----

	def spaces(self, meta, items) -> A.Spaces:
		defaultspace, *entries = items
		return A.Spaces(loc=_loc(meta), defaultspace=self._str(defaultspace), spaces=entries)

	def space_entry(self, meta, items) -> A.SpaceEntry:
		tag, space = items
		return A.SpaceEntry(loc=_loc(meta), kind=A.SpaceKind(_tag(tag)), space=space)

	def addr_space(self, meta, items) -> A.AddrSpace:
		name, index, bigendian, delay, deadcodedelay, size, wordsize, physical = items
		return A.AddrSpace(
			loc=_loc(meta),
			name=self._str(name),
			index=self._dec(index),
			bigendian=self._bool(bigendian),
			delay=self._dec(delay),
			deadcodedelay=self._dec(deadcodedelay),
			size=self._dec(size),
			wordsize=self._dec(wordsize),
			physical=self._bool(physical),
		)

	# ---- symbol table ----

	def symbol_table(self, meta, items) -> A.SymbolTable:
		scopesize, symbolsize, *rest = items
		return A.SymbolTable(
			loc=_loc(meta),
			scopesize=self._dec(scopesize),
			symbolsize=self._dec(symbolsize),
			scopes=[n for n in rest if isinstance(n, A.Scope)],
			headers=[n for n in rest if isinstance(n, A.SymbolHeaderEntry)],
			symbols=[n for n in rest if isinstance(n, A.SleighSymbol)],
		)

	def scope(self, meta, items) -> A.Scope:
		id_, parent = items
		return A.Scope(loc=_loc(meta), id=self._hex(id_), parent=self._hex(parent))

	def symbol_header(self, meta, items) -> A.SymbolHeader:
		name, id_, scope = items
		return A.SymbolHeader(loc=_loc(meta), name=self._str(name), id=self._hex(id_), scope=self._hex(scope))

	def symbol_header_entry(self, meta, items) -> A.SymbolHeaderEntry:
		tag, header = items
		kind = A.SymbolKind(_tag(tag)[: -len("_head")])
		return A.SymbolHeaderEntry(loc=_loc(meta), kind=kind, header=header)

	# ---- pattern expressions ----

	def tokenfield(self, meta, items) -> A.TokenField:
		bigendian, signbit, bitstart, bitend, bytestart, byteend, shift = items
		return A.TokenField(
			loc=_loc(meta),
			bigendian=self._bool(bigendian),
			signbit=self._bool(signbit),
			bitstart=self._dec(bitstart),
			bitend=self._dec(bitend),
			bytestart=self._dec(bytestart),
			byteend=self._dec(byteend),
			shift=self._dec(shift),
		)

	def contextfield(self, meta, items) -> A.ContextField:
		signbit, startbit, endbit, startbyte, endbyte, shift = items
		return A.ContextField(
			loc=_loc(meta),
			signbit=self._bool(signbit),
			startbit=self._dec(startbit),
			endbit=self._dec(endbit),
			startbyte=self._dec(startbyte),
			endbyte=self._dec(endbyte),
			shift=self._dec(shift),
		)

	def intb(self, meta, items) -> A.ConstantValue:
		(val,) = items
		return A.ConstantValue(loc=_loc(meta), val=self._dec(val))

	def operand_exp(self, meta, items) -> A.OperandValue:
		index, table, ct = items
		return A.OperandValue(loc=_loc(meta), index=self._dec(index), table=self._hex(table), ct=self._hex(ct))

	def instruction_value(self, meta, items) -> A.InstructionValue:
		(tag,) = items
		return A.InstructionValue(loc=_loc(meta), kind=A.InstructionValueKind(_tag(tag)))

	def binary_expression(self, meta, items) -> A.BinaryExpression:
		tag, left, right = items
		return A.BinaryExpression(loc=_loc(meta), op=A.BinaryOp(_tag(tag)), left=left, right=right)

	def unary_expression(self, meta, items) -> A.UnaryExpression:
		tag, operand = items
		return A.UnaryExpression(loc=_loc(meta), op=A.UnaryOp(_tag(tag)), operand=operand)

	# ---- symbols ----

	def userop(self, meta, items) -> A.UserOpSymbol:
		header, index = items
		return A.UserOpSymbol(loc=_loc(meta), header=header, index=self._dec(index))

	def subtable_sym(self, meta, items) -> A.SubtableSymbol:
		header, numct, *constructors, decision = items
		return A.SubtableSymbol(
			loc=_loc(meta),
			header=header,
			numct=self._dec(numct),
			constructors=constructors,
			decision=decision,
		)

	def valuemap_sym(self, meta, items) -> A.ValueMapSymbol:
		header, patval, *values = items
		return A.ValueMapSymbol(loc=_loc(meta), header=header, patval=patval, values=values)

	def valuetab(self, meta, items) -> A.ValueTableEntry:
		(val,) = items
		return A.ValueTableEntry(loc=_loc(meta), val=self._dec(val))

	def name_sym(self, meta, items) -> A.NameSymbol:
		header, patval, *names = items
		return A.NameSymbol(loc=_loc(meta), header=header, patval=patval, names=names)

	def nametab(self, meta, items) -> A.NameTableEntry:
		(name,) = items
		return A.NameTableEntry(loc=_loc(meta), name=self._str(name))

	def context_sym(self, meta, items) -> A.ContextSymbol:
		header, varnode, low, high, flow, patval = items
		return A.ContextSymbol(
			loc=_loc(meta),
			header=header,
			varnode=self._hex(varnode),
			low=self._dec(low),
			high=self._dec(high),
			flow=self._bool(flow),
			patval=patval,
		)

	def varlist_sym(self, meta, items) -> A.VarNodeListSymbol:
		header, patval, *varnodes = items
		return A.VarNodeListSymbol(loc=_loc(meta), header=header, patval=patval, varnodes=varnodes)

	def var(self, meta, items) -> A.VarNodeRef:
		(id_,) = items
		return A.VarNodeRef(loc=_loc(meta), id=self._hex(id_))

	def null(self, meta, items) -> A.NullEntry:
		return A.NullEntry(loc=_loc(meta))

	def value_sym(self, meta, items) -> A.ValueSymbol:
		header, patval = items
		return A.ValueSymbol(loc=_loc(meta), header=header, patval=patval)

	def epsilon_sym(self, meta, items) -> A.EpsilonSymbol:
		(header,) = items
		return A.EpsilonSymbol(loc=_loc(meta), header=header)

	def varnode_sym(self, meta, items) -> A.VarNodeSymbol:
		header, space, offset, size = items
		return A.VarNodeSymbol(
			loc=_loc(meta),
			header=header,
			space=self._str(space),
			offset=self._hex(offset),
			size=self._dec(size),
		)

	def operand_sym(self, meta, items) -> A.OperandSymbol:
		header, subsym, off, base, minlen, code, index, localexp, defexp = items
		return A.OperandSymbol(
			loc=_loc(meta),
			header=header,
			subsym=self._hex(subsym),
			off=self._dec(off),
			base=self._dec(base),
			minlen=self._dec(minlen),
			code=self._bool(code),
			index=self._dec(index),
			localexp=localexp,
			defexp=defexp,
		)

	def start_sym(self, meta, items) -> A.StartSymbol:
		return A.StartSymbol(loc=_loc(meta), header=items[0])

	def end_sym(self, meta, items) -> A.EndSymbol:
		return A.EndSymbol(loc=_loc(meta), header=items[0])

	def next2_sym(self, meta, items) -> A.Next2Symbol:
		return A.Next2Symbol(loc=_loc(meta), header=items[0])

	def flowdest_sym(self, meta, items) -> A.FlowDestSymbol:
		return A.FlowDestSymbol(loc=_loc(meta), header=items[0])

	def flowref_sym(self, meta, items) -> A.FlowRefSymbol:
		return A.FlowRefSymbol(loc=_loc(meta), header=items[0])

	# ---- constructors ----

	def constructor(self, meta, items) -> A.Constructor:
		parent, first, length, line, *body = items
		templates = [n for n in body if isinstance(n, A.ConstructTpl)]
		# The main template carries no section; named sections are numbered.
		templ = next((t for t in templates if t.section is None), None)
		return A.Constructor(
			loc=_loc(meta),
			parent=self._hex(parent),
			first=self._dec(first),
			length=self._dec(length),
			line=self._convert(decode_line, line),
			operands=[n for n in body if isinstance(n, A.ConstructorOperand)],
			printpieces=[n for n in body if isinstance(n, (A.OperandPrint, A.Print))],
			context_changes=[n for n in body if isinstance(n, (A.ContextOp, A.Commit))],
			templ=templ,
			namedtempl=[t for t in templates if t is not templ],
		)

	def oper(self, meta, items) -> A.ConstructorOperand:
		(id_,) = items
		return A.ConstructorOperand(loc=_loc(meta), id=self._hex(id_))

	def opprint(self, meta, items) -> A.OperandPrint:
		(id_,) = items
		return A.OperandPrint(loc=_loc(meta), id=self._dec(id_))

	def print(self, meta, items) -> A.Print:
		(piece,) = items
		return A.Print(loc=_loc(meta), piece=self._str(piece))

	def context_op(self, meta, items) -> A.ContextOp:
		i, shift, mask, patexp = items
		return A.ContextOp(
			loc=_loc(meta),
			i=self._dec(i),
			shift=self._dec(shift),
			mask=self._hex(mask),
			patexp=patexp,
		)

	def commit(self, meta, items) -> A.Commit:
		id_, num, mask, flow = items
		return A.Commit(
			loc=_loc(meta),
			id=self._hex(id_),
			num=self._dec(num),
			mask=self._hex(mask),
			flow=self._bool(flow),
		)

	# ---- p-code templates ----

	def construct_tpl(self, meta, items) -> A.ConstructTpl:
		section, delay, labels, result, *ops = items
		return A.ConstructTpl(
			loc=_loc(meta),
			section=self._dec(section),
			delay=self._dec(delay),
			labels=self._dec(labels),
			result=result,
			ops=ops,
		)

	def handle_tpl(self, meta, items) -> A.HandleTpl:
		space, size, ptrspace, ptroffset, ptrsize, temp_space, temp_offset = items
		return A.HandleTpl(
			loc=_loc(meta),
			space=space,
			size=size,
			ptrspace=ptrspace,
			ptroffset=ptroffset,
			ptrsize=ptrsize,
			temp_space=temp_space,
			temp_offset=temp_offset,
		)

	def varnode_tpl(self, meta, items) -> A.VarnodeTpl:
		space, offset, size = items
		return A.VarnodeTpl(loc=_loc(meta), space=space, offset=offset, size=size)

	def op_tpl(self, meta, items) -> A.OpTpl:
		code, output, *inputs = items
		return A.OpTpl(loc=_loc(meta), code=self._convert(decode_opcode, code), output=output, inputs=inputs)

	def real_const(self, meta, items) -> A.RealConst:
		_, val = items
		return A.RealConst(loc=_loc(meta), val=self._hex(val))

	def handle_const(self, meta, items) -> A.HandleConst:
		_, val, select, plus = items
		return A.HandleConst(
			loc=_loc(meta),
			val=self._dec(val),
			select=self._convert(decode_selector, select),
			plus=self._hex(plus),
		)

	def symbolic_const(self, meta, items) -> A.SymbolicConst:
		(kind,) = items
		return A.SymbolicConst(loc=_loc(meta), kind=A.ConstKind(kind.value.strip('"')))

	def spaceid_const(self, meta, items) -> A.SpaceIdConst:
		_, name = items
		return A.SpaceIdConst(loc=_loc(meta), name=self._str(name))

	def relative_const(self, meta, items) -> A.RelativeConst:
		_, val = items
		return A.RelativeConst(loc=_loc(meta), val=self._hex(val))

	# ---- decision trees ----

	def decision(self, meta, items) -> A.DecisionNode:
		number, context, start, size, *rest = items
		return A.DecisionNode(
			loc=_loc(meta),
			number=self._dec(number),
			context=self._bool(context),
			start=self._dec(start),
			size=self._dec(size),
			pairs=[n for n in rest if isinstance(n, A.DecisionPair)],
			children=[n for n in rest if isinstance(n, A.DecisionNode)],
		)

	def pair(self, meta, items) -> A.DecisionPair:
		id_, pattern = items
		return A.DecisionPair(loc=_loc(meta), id=self._dec(id_), pattern=pattern)

	def instruct_pat(self, meta, items) -> A.InstructionPattern:
		return A.InstructionPattern(loc=_loc(meta), block=items[0])

	def context_pat(self, meta, items) -> A.ContextPattern:
		return A.ContextPattern(loc=_loc(meta), block=items[0])

	def combine_pat(self, meta, items) -> A.CombinePattern:
		context, instruction = items
		return A.CombinePattern(loc=_loc(meta), context=context, instruction=instruction)

	def pat_block(self, meta, items) -> A.PatBlock:
		offset, nonzero, *words = items
		return A.PatBlock(loc=_loc(meta), offset=self._dec(offset), nonzero=self._dec(nonzero), words=words)

	def mask_word(self, meta, items) -> A.MaskWord:
		mask, val = items
		return A.MaskWord(loc=_loc(meta), mask=self._hex(mask), val=self._hex(val))


def build(tree: Any) -> tuple[A.Node, List[LiteralError]]:
	"""Run a fresh `TreeBuilder` over `tree`; returns the node and the literal errors."""
	builder = TreeBuilder()
	node = builder.transform(tree)
	return node, builder.errors


__all__ = ["TreeBuilder", "build"]
