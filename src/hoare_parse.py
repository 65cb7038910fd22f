"""Parser for guarded-command programs, statements and expressions.

    bv32 x;                 // optional declarations, everything else is int
    requires x < BV:10;     // optional, defaults to true
    if (x == BV:0) then { y = 1; } else y = f(y, 2);
    ensures y > 0;          // optional, defaults to true

Variables are global and untyped except for the `bv32`/`int` declarations at
the top; each expression node fixes its own sort from those declarations.
"""

from dataclasses import dataclass
import re
from typing import Iterable, List

import pyparsing
from pyparsing import (
    Word, nums, alphas, alphanums, Keyword, Literal, Optional, ZeroOrMore,
    Forward, Suppress, Group, infixNotation, opAssoc, ParserElement, Regex,
)

import hoare

# Enable packrat for performance
ParserElement.enable_packrat()


class ParseError(Exception):
    """Malformed source text, located by character offset, line and column."""

    def __init__(self, msg: str, loc: int, lineno: int, col: int, line: str):
        super().__init__(f"{msg} (line {lineno}, column {col})")
        self.msg = msg
        self.loc = loc
        self.lineno = lineno
        self.col = col
        self.line = line

    @classmethod
    def from_pyparsing(cls, e: pyparsing.ParseBaseException) -> "ParseError":
        return cls(e.msg, e.loc, e.lineno, e.col, e.line)

    def explain(self) -> str:
        return "\n".join([
            f"Parse Error at line {self.lineno}, column {self.col}:",
            self.line,
            " " * (self.col - 1) + "^",
            f"Message: {self.msg}",
        ])


@dataclass
class _Contract:
    kind: str
    cond: hoare.Expr


def _as_stmt(stmts: List[hoare.Stmt]) -> hoare.Stmt:
    if len(stmts) == 1:
        return stmts[0]
    return hoare.SeqStmt(stmts)


def _make_binop(t):
    tokens = t[0]
    res = tokens[0]
    i = 1
    while i < len(tokens):
        res = hoare.BinaryExpr(hoare.BinOp.from_symbol(tokens[i]), res, tokens[i + 1])
        i += 2
    return res


def _make_right_binop(t):
    tokens = t[0]
    res = tokens[-1]
    i = len(tokens) - 2
    while i > 0:
        res = hoare.BinaryExpr(hoare.BinOp.from_symbol(tokens[i]), tokens[i - 1], res)
        i -= 2
    return res


def _make_unop(t):
    op, arg = t[0][0], t[0][1]
    return hoare.UnaryExpr(hoare.UnOp.from_symbol(op), arg)


class _Grammar:
    """The grammar, built per parse so that `bv32` declarations can steer variable sorts."""

    def __init__(self, bv_names: Iterable[str] = ()):
        self.bv_names = set(bv_names)
        self.int_names: set[str] = set()

        NormalComment = Regex(r"//.*")
        BlockComment = Regex(r"/\*.*?\*/", flags=re.DOTALL)

        # Keywords
        IF = Keyword("if")
        THEN = Keyword("then")
        ELSE = Keyword("else")
        SKIP = Keyword("skip")
        TRUE = Keyword("true")
        FALSE = Keyword("false")
        REQUIRES = Keyword("requires")
        ENSURES = Keyword("ensures")
        BV32 = Keyword("bv32")
        INT = Keyword("int")

        # Punctuation
        LPAREN = Suppress("(")
        RPAREN = Suppress(")")
        LBRACE = Suppress("{")
        RBRACE = Suppress("}")
        SEMI = Suppress(";")
        COMMA = Suppress(",")
        ASSIGN_OP = Suppress(Regex(r"=(?!=)"))

        # Identifiers
        Ident = Word(alphas + "_", alphanums + "_")
        Reserved = IF | THEN | ELSE | SKIP | TRUE | FALSE | REQUIRES | ENSURES | BV32 | INT
        Identifier = (~Reserved + Ident).setParseAction(lambda t: t[0])
        VarIdent = Identifier.copy().setParseAction(lambda t: self._var(t[0]))

        Decl = ((BV32 | INT) - Identifier + ZeroOrMore(COMMA + Identifier) + SEMI).setParseAction(self._declare)

        Exp = Forward()

        # Atoms
        def _bv_literal(s: str, loc: int, t):
            value = int(t[0][len("BV:"):])
            if value >= hoare.BV_LIMIT:
                raise pyparsing.ParseFatalException(s, loc, f"bit-vector literal {value} does not fit in 32 bits")
            return hoare.BVConst(value)

        BVLit = Regex(r"BV:\d+").setParseAction(_bv_literal)
        IntLit = Word(nums).setParseAction(lambda t: hoare.IntConst(int(t[0])))
        BoolLit = (TRUE | FALSE).setParseAction(lambda t: hoare.BoolConst(t[0] == "true"))
        Call = (Identifier + LPAREN + Group(Optional(Exp + ZeroOrMore(COMMA + Exp))) + RPAREN).setParseAction(
            lambda t: hoare.UFExpr(t[0], list(t[1]))
        )
        Atom = BVLit | IntLit | BoolLit | Call | VarIdent | (LPAREN + Exp + RPAREN)

        # Precedence, tightest first
        Exp <<= infixNotation(Atom, [
            (Regex(r"[!~]|-(?!>)"), 1, opAssoc.RIGHT, _make_unop),
            (Regex(r"[*/%]"), 2, opAssoc.LEFT, _make_binop),
            (Regex(r"\+|-(?!>)"), 2, opAssoc.LEFT, _make_binop),
            (Regex(r"<<|>>"), 2, opAssoc.LEFT, _make_binop),
            (Regex(r"<=|>=|<(?!<)|>(?!>)"), 2, opAssoc.LEFT, _make_binop),
            (Regex(r"==|!="), 2, opAssoc.LEFT, _make_binop),
            (Regex(r"&(?!&)"), 2, opAssoc.LEFT, _make_binop),
            (Literal("^"), 2, opAssoc.LEFT, _make_binop),
            (Regex(r"\|(?!\|)"), 2, opAssoc.LEFT, _make_binop),
            (Literal("&&"), 2, opAssoc.LEFT, _make_binop),
            (Literal("||"), 2, opAssoc.LEFT, _make_binop),
            (Literal("->"), 2, opAssoc.RIGHT, _make_right_binop),
        ])

        # --- Statements ---
        Stmt = Forward()

        Block = (LBRACE - ZeroOrMore(Stmt) + RBRACE).setParseAction(lambda t: hoare.SeqStmt(list(t)))

        IfStmt = (Suppress(IF) - LPAREN + Exp + RPAREN + Optional(Suppress(THEN)) + Stmt +
                  Optional(Suppress(ELSE) + Stmt)).setParseAction(
            lambda t: hoare.CondStmt(t[0], t[1], t[2] if len(t) > 2 else hoare.SeqStmt())
        )

        SkipStmt = (SKIP + Optional(SEMI)).setParseAction(lambda t: hoare.SeqStmt())

        AssignStmt = (VarIdent + ASSIGN_OP - Exp + SEMI).setParseAction(
            lambda t: hoare.AssignStmt(t[0], t[1])
        )

        Stmt <<= Block | IfStmt | SkipStmt | AssignStmt

        Requires = (Suppress(REQUIRES) - Exp + SEMI).setParseAction(lambda t: _Contract("requires", t[0]))
        Ensures = (Suppress(ENSURES) - Exp + SEMI).setParseAction(lambda t: _Contract("ensures", t[0]))

        self.expression = Exp
        self.statement = (ZeroOrMore(Decl) + ZeroOrMore(Stmt)).setParseAction(lambda t: _as_stmt(list(t)))
        self.program = (ZeroOrMore(Decl) + Optional(Requires) + ZeroOrMore(Stmt) + Optional(Ensures)).setParseAction(
            self._make_program
        )

        for top in (self.expression, self.statement, self.program):
            top.ignore(NormalComment)
            top.ignore(BlockComment)

    def _var(self, name: str) -> hoare.Var:
        sort = hoare.Sort.BV32 if name in self.bv_names else hoare.Sort.INT
        return hoare.Var(name, sort)

    def _declare(self, s: str, loc: int, t):
        kind, names = t[0], list(t[1:])
        mine, other = (self.bv_names, self.int_names) if kind == "bv32" else (self.int_names, self.bv_names)
        for name in names:
            if name in other:
                raise pyparsing.ParseFatalException(s, loc, f"conflicting declarations for `{name}`")
            mine.add(name)
        return []

    @staticmethod
    def _make_program(t):
        pre: hoare.Expr = hoare.BoolConst(True)
        post: hoare.Expr = hoare.BoolConst(True)
        stmts: List[hoare.Stmt] = []
        for tok in t:
            if isinstance(tok, _Contract):
                if tok.kind == "requires":
                    pre = tok.cond
                else:
                    post = tok.cond
            else:
                stmts.append(tok)
        return hoare.Program(pre, _as_stmt(stmts), post)


def _run(element: ParserElement, text: str):
    try:
        return element.parseString(text, parseAll=True)[0]
    except pyparsing.ParseBaseException as e:
        raise ParseError.from_pyparsing(e) from e
    except RecursionError as e:
        line = text.splitlines()[0] if text else ""
        raise ParseError("input is nested too deeply", 0, 1, 1, line) from e


def parse_program(text: str) -> hoare.Program:
    """Parse a whole program: declarations, `requires`, statements, `ensures`."""
    return _run(_Grammar().program, text)


def parse_statement(text: str) -> hoare.Stmt:
    """Parse declarations followed by a statement list (one statement is returned as-is)."""
    return _run(_Grammar().statement, text)


def parse_expression(text: str, bv_names: Iterable[str] = ()) -> hoare.Expr:
    """Parse a single expression; names in `bv_names` are 32-bit bit-vector variables."""
    return _run(_Grammar(bv_names).expression, text)
