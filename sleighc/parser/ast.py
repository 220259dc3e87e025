from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Located:
    """Source span of a node: 1-based line/column of its first token plus the
    [start, end) character offsets covering every token the rule consumed,
    delimiters included."""
    line: int
    column: int
    start: int
    end: int


class Node:
    loc: Located


def walk(node: Node) -> Iterator[Node]:
    """
    Yield `node` and all of its descendants in document order.

    The traversal keeps an explicit stack, so arbitrarily deep decision trees or
    pattern expressions never hit the interpreter recursion limit.
    """
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(children(current))))


def children(node: Node) -> Iterator[Node]:
    """Direct child nodes of `node`, in field (and therefore source) order."""
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


# ---------------------------------------------------------------- document


@dataclass
class SourceFile(Node):
    loc: Located
    name: str
    index: int


@dataclass
class SourceFiles(Node):
    loc: Located
    files: List[SourceFile] = field(default_factory=list)


@dataclass
class Sleigh(Node):
    """Root of a compiled Sleigh specification."""
    loc: Located
    version: Optional[int]
    bigendian: bool
    align: int
    uniqbase: int
    maxdelay: Optional[int]
    uniqmask: Optional[int]
    numsections: Optional[int]
    sourcefiles: SourceFiles
    spaces: "Spaces"
    symbol_table: "SymbolTable"


# ---------------------------------------------------------------- address spaces


class SpaceKind(Enum):
    BASE = "space_base"
    UNIQUE = "space_unique"
    OTHER = "space_other"
    OVERLAY = "space_overlay"
    SPACE = "space"


@dataclass
class AddrSpace(Node):
    loc: Located
    name: str
    index: int
    bigendian: bool
    delay: int
    deadcodedelay: Optional[int]
    size: int
    wordsize: Optional[int]
    physical: bool


@dataclass
class SpaceEntry(Node):
    loc: Located
    kind: SpaceKind
    space: AddrSpace


@dataclass
class Spaces(Node):
    loc: Located
    defaultspace: str
    spaces: List[SpaceEntry] = field(default_factory=list)


# ---------------------------------------------------------------- symbol table


class SymbolKind(Enum):
    USEROP = "userop"
    EPSILON = "epsilon_sym"
    VALUE = "value_sym"
    VALUEMAP = "valuemap_sym"
    NAME = "name_sym"
    VARNODE = "varnode_sym"
    CONTEXT = "context_sym"
    VARLIST = "varlist_sym"
    OPERAND = "operand_sym"
    START = "start_sym"
    END = "end_sym"
    NEXT2 = "next2_sym"
    FLOWDEST = "flowdest_sym"
    FLOWREF = "flowref_sym"
    SUBTABLE = "subtable_sym"


@dataclass
class Scope(Node):
    loc: Located
    id: int
    parent: int


@dataclass
class SymbolHeader(Node):
    loc: Located
    name: str
    id: int
    scope: int


@dataclass
class SymbolHeaderEntry(Node):
    """One `<K_head .../>` forward declaration; `kind` tells which symbol follows."""
    loc: Located
    kind: SymbolKind
    header: SymbolHeader


@dataclass
class SymbolTable(Node):
    loc: Located
    scopesize: int
    symbolsize: int
    scopes: List[Scope] = field(default_factory=list)
    headers: List[SymbolHeaderEntry] = field(default_factory=list)
    symbols: List["SleighSymbol"] = field(default_factory=list)


# ---------------------------------------------------------------- pattern expressions


class PatternExpression(Node):
    pass


class PatternValue(PatternExpression):
    pass


@dataclass
class TokenField(PatternValue):
    loc: Located
    bigendian: bool
    signbit: bool
    bitstart: int
    bitend: int
    bytestart: int
    byteend: int
    shift: int


@dataclass
class ContextField(PatternValue):
    loc: Located
    signbit: bool
    startbit: int
    endbit: int
    startbyte: int
    endbyte: int
    shift: int


@dataclass
class ConstantValue(PatternValue):
    loc: Located
    val: int


@dataclass
class OperandValue(PatternValue):
    loc: Located
    index: int
    table: int
    ct: int


class InstructionValueKind(Enum):
    START = "start_exp"
    END = "end_exp"
    NEXT2 = "next2_exp"


@dataclass
class InstructionValue(PatternValue):
    loc: Located
    kind: InstructionValueKind


class BinaryOp(Enum):
    PLUS = "plus_exp"
    SUB = "sub_exp"
    MULT = "mult_exp"
    LSHIFT = "lshift_exp"
    RSHIFT = "rshift_exp"
    AND = "and_exp"
    OR = "or_exp"
    XOR = "xor_exp"
    DIV = "div_exp"


class UnaryOp(Enum):
    MINUS = "minus_exp"
    NOT = "not_exp"


@dataclass
class BinaryExpression(PatternExpression):
    loc: Located
    op: BinaryOp
    left: PatternExpression
    right: PatternExpression


@dataclass
class UnaryExpression(PatternExpression):
    loc: Located
    op: UnaryOp
    operand: PatternExpression


# ---------------------------------------------------------------- symbols


class SleighSymbol(Node):
    header: SymbolHeader


@dataclass
class UserOpSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    index: int


@dataclass
class SubtableSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    numct: int
    constructors: List["Constructor"]
    decision: "DecisionNode"


@dataclass
class ValueTableEntry(Node):
    loc: Located
    val: int


@dataclass
class ValueMapSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    patval: PatternValue
    values: List[ValueTableEntry] = field(default_factory=list)


@dataclass
class NameTableEntry(Node):
    loc: Located
    name: Optional[str]


@dataclass
class NameSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    patval: PatternValue
    names: List[NameTableEntry] = field(default_factory=list)


@dataclass
class ContextSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    varnode: int
    low: int
    high: int
    flow: bool
    patval: PatternValue


@dataclass
class NullEntry(Node):
    """Explicit `<null/>` slot (absent varnode, output or result)."""
    loc: Located


@dataclass
class VarNodeRef(Node):
    loc: Located
    id: int


@dataclass
class VarNodeListSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    patval: PatternValue
    varnodes: List[Union[NullEntry, VarNodeRef]] = field(default_factory=list)


@dataclass
class ValueSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    patval: PatternValue


@dataclass
class EpsilonSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader


@dataclass
class VarNodeSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    space: str
    offset: int
    size: int


@dataclass
class OperandSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader
    subsym: Optional[int]
    off: int
    base: int
    minlen: int
    code: Optional[bool]
    index: int
    localexp: OperandValue
    defexp: Optional[PatternExpression]


@dataclass
class StartSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader


@dataclass
class EndSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader


@dataclass
class Next2Symbol(SleighSymbol):
    loc: Located
    header: SymbolHeader


@dataclass
class FlowDestSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader


@dataclass
class FlowRefSymbol(SleighSymbol):
    loc: Located
    header: SymbolHeader


# ---------------------------------------------------------------- constructors


@dataclass
class ConstructorOperand(Node):
    loc: Located
    id: int


@dataclass
class OperandPrint(Node):
    loc: Located
    id: int


@dataclass
class Print(Node):
    loc: Located
    piece: str


PrintPiece = Union[OperandPrint, Print]


@dataclass
class ContextOp(Node):
    loc: Located
    i: int
    shift: int
    mask: int
    patexp: PatternExpression


@dataclass
class Commit(Node):
    loc: Located
    id: int
    num: int
    mask: int
    flow: bool


ContextChange = Union[ContextOp, Commit]


@dataclass
class Constructor(Node):
    """
    One constructor of a subtable.

    `templ` is the first `<construct_tpl>` without a `section` attribute; every
    other template is a named section and goes to `namedtempl` in document order.
    """
    loc: Located
    parent: int
    first: int
    length: int
    line: Tuple[int, int]
    operands: List[ConstructorOperand] = field(default_factory=list)
    printpieces: List[PrintPiece] = field(default_factory=list)
    context_changes: List[ContextChange] = field(default_factory=list)
    templ: Optional["ConstructTpl"] = None
    namedtempl: List["ConstructTpl"] = field(default_factory=list)


# ---------------------------------------------------------------- p-code templates


class OpCode(Enum):
    BLANK = 0
    COPY = 1
    LOAD = 2
    STORE = 3
    BRANCH = 4
    CBRANCH = 5
    BRANCHIND = 6
    CALL = 7
    CALLIND = 8
    CALLOTHER = 9
    RETURN = 10
    INT_EQUAL = 11
    INT_NOTEQUAL = 12
    INT_SLESS = 13
    INT_SLESSEQUAL = 14
    INT_LESS = 15
    INT_LESSEQUAL = 16
    INT_ZEXT = 17
    INT_SEXT = 18
    INT_ADD = 19
    INT_SUB = 20
    INT_CARRY = 21
    INT_SCARRY = 22
    INT_SBORROW = 23
    INT_2COMP = 24
    INT_NEGATE = 25
    INT_XOR = 26
    INT_AND = 27
    INT_OR = 28
    INT_LEFT = 29
    INT_RIGHT = 30
    INT_SRIGHT = 31
    INT_MULT = 32
    INT_DIV = 33
    INT_SDIV = 34
    INT_REM = 35
    INT_SREM = 36
    BOOL_NEGATE = 37
    BOOL_XOR = 38
    BOOL_AND = 39
    BOOL_OR = 40
    FLOAT_EQUAL = 41
    FLOAT_NOTEQUAL = 42
    FLOAT_LESS = 43
    FLOAT_LESSEQUAL = 44
    UNUSED1 = 45
    FLOAT_NAN = 46
    FLOAT_ADD = 47
    FLOAT_DIV = 48
    FLOAT_MULT = 49
    FLOAT_SUB = 50
    FLOAT_NEG = 51
    FLOAT_ABS = 52
    FLOAT_SQRT = 53
    INT2FLOAT = 54
    FLOAT2FLOAT = 55
    TRUNC = 56
    CEIL = 57
    FLOOR = 58
    ROUND = 59
    BUILD = 60
    DELAY_SLOT = 61
    PIECE = 62
    SUBPIECE = 63
    CAST = 64
    LABEL = 65
    CROSSBUILD = 66
    SEGMENTOP = 67
    CPOOLREF = 68
    NEW = 69
    INSERT = 70
    EXTRACT = 71
    POPCOUNT = 72
    LZCOUNT = 73


class ConstTpl(Node):
    pass


@dataclass
class RealConst(ConstTpl):
    loc: Located
    val: int


class HandleSelector(Enum):
    SPACE = "space"
    OFFSET = "offset"
    SIZE = "size"
    OFFSET_PLUS = "offset_plus"


@dataclass
class HandleConst(ConstTpl):
    loc: Located
    val: int
    select: HandleSelector
    plus: Optional[int]


class ConstKind(Enum):
    START = "start"
    END = "end"
    NEXT = "next"
    NEXT2 = "next2"
    CURSPACE = "curspace"
    CURSPACE_SIZE = "curspace_size"
    FLOWREF = "flowref"
    FLOWDEST = "flowdest"
    FLOWDEST_SIZE = "flowdest_size"


@dataclass
class SymbolicConst(ConstTpl):
    """Attribute-less const_tpl whose value is implied by its `type`."""
    loc: Located
    kind: ConstKind


@dataclass
class SpaceIdConst(ConstTpl):
    loc: Located
    name: str


@dataclass
class RelativeConst(ConstTpl):
    loc: Located
    val: int


@dataclass
class HandleTpl(Node):
    loc: Located
    space: ConstTpl
    size: ConstTpl
    ptrspace: ConstTpl
    ptroffset: ConstTpl
    ptrsize: ConstTpl
    temp_space: ConstTpl
    temp_offset: ConstTpl


@dataclass
class VarnodeTpl(Node):
    loc: Located
    space: ConstTpl
    offset: ConstTpl
    size: ConstTpl


@dataclass
class OpTpl(Node):
    loc: Located
    code: OpCode
    output: Union[NullEntry, VarnodeTpl]
    inputs: List[VarnodeTpl] = field(default_factory=list)


@dataclass
class ConstructTpl(Node):
    loc: Located
    section: Optional[int]
    delay: Optional[int]
    labels: Optional[int]
    result: Union[NullEntry, HandleTpl]
    ops: List[OpTpl] = field(default_factory=list)


# ---------------------------------------------------------------- decision trees


@dataclass
class MaskWord(Node):
    loc: Located
    mask: int
    val: int


@dataclass
class PatBlock(Node):
    loc: Located
    offset: int
    nonzero: int
    words: List[MaskWord] = field(default_factory=list)


class DisjointPattern(Node):
    pass


@dataclass
class InstructionPattern(DisjointPattern):
    loc: Located
    block: PatBlock


@dataclass
class ContextPattern(DisjointPattern):
    loc: Located
    block: PatBlock


@dataclass
class CombinePattern(DisjointPattern):
    loc: Located
    context: ContextPattern
    instruction: InstructionPattern


@dataclass
class DecisionPair(Node):
    loc: Located
    id: int
    pattern: DisjointPattern


@dataclass
class DecisionNode(Node):
    loc: Located
    number: int
    context: bool
    start: int
    size: int
    pairs: List[DecisionPair] = field(default_factory=list)
    children: List["DecisionNode"] = field(default_factory=list)
