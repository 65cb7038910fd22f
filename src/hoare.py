"""AST for the guarded-command language: expressions, statements and programs.

All nodes are frozen dataclasses. Operators are closed enumerations that carry
their symbol, arity and kind, so the result sort of an operator never has to be
guessed from a hint.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

BV_WIDTH = 32
BV_LIMIT = 1 << BV_WIDTH


class Sort(Enum):
    INT = "Int"
    BV32 = "BitVec32"
    BOOL = "Bool"

    def __repr__(self):
        return self.value


class OpKind(Enum):
    ARITH = "arith"
    BITWISE = "bitwise"
    COMPARE = "compare"
    EQUALITY = "equality"
    LOGIC = "logic"


_BOOL_KINDS = (OpKind.COMPARE, OpKind.EQUALITY, OpKind.LOGIC)


class BinOp(Enum):
    ADD = ("+", OpKind.ARITH)
    SUB = ("-", OpKind.ARITH)
    MUL = ("*", OpKind.ARITH)
    DIV = ("/", OpKind.ARITH)
    MOD = ("%", OpKind.ARITH)
    BVAND = ("&", OpKind.BITWISE)
    BVOR = ("|", OpKind.BITWISE)
    BVXOR = ("^", OpKind.BITWISE)
    SHL = ("<<", OpKind.BITWISE)
    SHR = (">>", OpKind.BITWISE)
    LT = ("<", OpKind.COMPARE)
    LE = ("<=", OpKind.COMPARE)
    GT = (">", OpKind.COMPARE)
    GE = (">=", OpKind.COMPARE)
    EQ = ("==", OpKind.EQUALITY)
    NE = ("!=", OpKind.EQUALITY)
    AND = ("&&", OpKind.LOGIC)
    OR = ("||", OpKind.LOGIC)
    IMPLIES = ("->", OpKind.LOGIC)

    def __init__(self, symbol: str, kind: OpKind):
        self.symbol = symbol
        self.kind = kind

    @property
    def arity(self) -> int:
        return 2

    @property
    def is_bool(self) -> bool:
        return self.kind in _BOOL_KINDS

    def result_sort(self, operand: Sort) -> Sort:
        """Sort produced when applied to operands of sort `operand`."""
        return Sort.BOOL if self.is_bool else operand

    @classmethod
    def from_symbol(cls, symbol: str) -> "BinOp":
        for op in cls:
            if op.symbol == symbol:
                return op
        raise ValueError(f"unknown binary operator `{symbol}`")

    def __repr__(self):
        return self.symbol


class UnOp(Enum):
    NOT = ("!", OpKind.LOGIC)
    NEG = ("-", OpKind.ARITH)
    BVNOT = ("~", OpKind.BITWISE)

    def __init__(self, symbol: str, kind: OpKind):
        self.symbol = symbol
        self.kind = kind

    @property
    def arity(self) -> int:
        return 1

    @property
    def is_bool(self) -> bool:
        return self.kind in _BOOL_KINDS

    def result_sort(self, operand: Sort) -> Sort:
        return Sort.BOOL if self.is_bool else operand

    @classmethod
    def from_symbol(cls, symbol: str) -> "UnOp":
        for op in cls:
            if op.symbol == symbol:
                return op
        raise ValueError(f"unknown unary operator `{symbol}`")

    def __repr__(self):
        return self.symbol


@dataclass(frozen=True)
class Node:
    pass


@dataclass(frozen=True)
class Expr(Node):
    pass


@dataclass(frozen=True)
class Var(Expr):
    name: str
    sort: Sort = Sort.INT

    def __post_init__(self):
        if self.sort not in (Sort.INT, Sort.BV32):
            raise ValueError(f"variable `{self.name}` cannot have sort {self.sort!r}")


@dataclass(frozen=True)
class Const(Expr):
    """Constants are immutable and safely shareable: substitution and copying return them as-is."""


@dataclass(frozen=True)
class IntConst(Const):
    value: int


@dataclass(frozen=True)
class BVConst(Const):
    """An unsigned 32-bit bit-vector literal."""
    value: int

    def __post_init__(self):
        if not 0 <= self.value < BV_LIMIT:
            raise ValueError(f"bit-vector literal {self.value} does not fit in {BV_WIDTH} bits")


@dataclass(frozen=True)
class BoolConst(Const):
    value: bool


@dataclass(frozen=True)
class BinaryExpr(Expr):
    op: BinOp
    left: Expr
    right: Expr

    @property
    def is_bool(self) -> bool:
        return self.op.is_bool


@dataclass(frozen=True)
class UnaryExpr(Expr):
    op: UnOp
    operand: Expr

    @property
    def is_bool(self) -> bool:
        return self.op.is_bool


@dataclass(frozen=True)
class UFExpr(Expr):
    """Application of an uninterpreted function over integers."""
    name: str
    args: Tuple[Expr, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class Stmt(Node):
    pass


@dataclass(frozen=True)
class AssignStmt(Stmt):
    lvalue: Var
    rvalue: Expr


@dataclass(frozen=True)
class SeqStmt(Stmt):
    """Sequential composition; the empty sequence is `skip`."""
    statements: Tuple[Stmt, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "statements", tuple(self.statements))


@dataclass(frozen=True)
class CondStmt(Stmt):
    condition: Expr
    true_branch: Stmt
    false_branch: Stmt = field(default_factory=SeqStmt)


@dataclass(frozen=True)
class Program(Node):
    pre: Expr
    body: Stmt
    post: Expr
