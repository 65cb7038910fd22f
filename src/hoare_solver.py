"""Lower `hoare` expressions into Z3 terms and discharge validity queries.

This module provides:
- `translate`, which interns variables and uninterpreted functions in a
  caller-owned table so that one name always maps to one Z3 symbol, and
- helpers to check validity inside a scoped solver session and to read back
  counterexamples.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Union

import z3

import hoare
import hoare_util

Sort = hoare.Sort
BinOp = hoare.BinOp
UnOp = hoare.UnOp

BVSort = z3.BitVecSort(hoare.BV_WIDTH)

Symbol = Union[z3.ExprRef, z3.FuncDeclRef]
InternTable = Dict[str, Symbol]


class TranslationError(Exception):
    """A formula cannot be lowered: unsupported operand sorts, a sort clash, or a bad call arity."""


def _sort_of(t: z3.ExprRef) -> Optional[Sort]:
    if z3.is_bool(t):
        return Sort.BOOL
    if z3.is_int(t):
        return Sort.INT
    if z3.is_bv(t) and t.size() == hoare.BV_WIDTH:
        return Sort.BV32
    return None


def _z3_sort(sort: Sort) -> z3.SortRef:
    if sort is Sort.BV32:
        return BVSort
    return z3.IntSort()


def declare_function(interned: InternTable, name: str, arity: int) -> z3.FuncDeclRef:
    """Declare `name` as an uninterpreted function `Int^arity -> Int` and intern it.

    Pre-declaring fixes the signature up front; later call sites with another
    arity are then rejected by `translate`.
    """
    if name in interned:
        raise TranslationError(f"`{name}` is already declared")
    f = z3.Function(name, *([z3.IntSort()] * arity), z3.IntSort())
    interned[name] = f
    return f


def _intern_var(interned: InternTable, v: hoare.Var) -> z3.ExprRef:
    sym = interned.get(v.name)
    if sym is None:
        sym = z3.Const(v.name, _z3_sort(v.sort))
        interned[v.name] = sym
        return sym
    if isinstance(sym, z3.FuncDeclRef):
        raise TranslationError(f"`{v.name}` is a function symbol but is used as a variable")
    if _sort_of(sym) is not v.sort:
        raise TranslationError(f"variable `{v.name}` used with sort {v.sort!r} but was declared as {sym.sort()}")
    return sym


def _intern_function(interned: InternTable, name: str, arity: int) -> z3.FuncDeclRef:
    sym = interned.get(name)
    if sym is None:
        return declare_function(interned, name, arity)
    if not isinstance(sym, z3.FuncDeclRef):
        raise TranslationError(f"`{name}` is a variable but is applied as a function")
    if sym.arity() != arity:
        raise TranslationError(f"function `{name}` applied to {arity} argument(s) but has arity {sym.arity()}")
    return sym


def _binop(op: BinOp, el: z3.ExprRef, er: z3.ExprRef) -> z3.ExprRef:
    sl, sr = _sort_of(el), _sort_of(er)
    if sl is None or sl is not sr:
        raise TranslationError(f"`{op.symbol}` applied to mismatched sorts {el.sort()} and {er.sort()}")

    match op.kind:
        case hoare.OpKind.EQUALITY:
            return el == er if op is BinOp.EQ else el != er

        case hoare.OpKind.LOGIC:
            if sl is not Sort.BOOL:
                raise TranslationError(f"`{op.symbol}` expects Bool operands, got {el.sort()}")
            match op:
                case BinOp.AND:
                    return z3.And(el, er)
                case BinOp.OR:
                    return z3.Or(el, er)
                case BinOp.IMPLIES:
                    return z3.Implies(el, er)

        case hoare.OpKind.ARITH | hoare.OpKind.COMPARE if sl is Sort.INT:
            match op:
                case BinOp.ADD:
                    return el + er
                case BinOp.SUB:
                    return el - er
                case BinOp.MUL:
                    return el * er
                case BinOp.DIV:
                    return el / er
                case BinOp.MOD:
                    return el % er
                case BinOp.LT:
                    return el < er
                case BinOp.LE:
                    return el <= er
                case BinOp.GT:
                    return el > er
                case BinOp.GE:
                    return el >= er

        case hoare.OpKind.ARITH | hoare.OpKind.COMPARE | hoare.OpKind.BITWISE if sl is Sort.BV32:
            # bit-vectors are unsigned
            match op:
                case BinOp.ADD:
                    return el + er
                case BinOp.SUB:
                    return el - er
                case BinOp.MUL:
                    return el * er
                case BinOp.DIV:
                    return z3.UDiv(el, er)
                case BinOp.MOD:
                    return z3.URem(el, er)
                case BinOp.LT:
                    return z3.ULT(el, er)
                case BinOp.LE:
                    return z3.ULE(el, er)
                case BinOp.GT:
                    return z3.UGT(el, er)
                case BinOp.GE:
                    return z3.UGE(el, er)
                case BinOp.BVAND:
                    return el & er
                case BinOp.BVOR:
                    return el | er
                case BinOp.BVXOR:
                    return el ^ er
                case BinOp.SHL:
                    return el << er
                case BinOp.SHR:
                    return z3.LShR(el, er)

    raise TranslationError(f"`{op.symbol}` is not defined on {el.sort()}")


def _unop(op: UnOp, ea: z3.ExprRef) -> z3.ExprRef:
    sa = _sort_of(ea)
    match op:
        case UnOp.NOT if sa is Sort.BOOL:
            return z3.Not(ea)
        case UnOp.NEG if sa in (Sort.INT, Sort.BV32):
            return -ea
        case UnOp.BVNOT if sa is Sort.BV32:
            return ~ea
    raise TranslationError(f"`{op.symbol}` is not defined on {ea.sort()}")


def translate(e: hoare.Expr, interned: InternTable) -> z3.ExprRef:
    """Lower expression `e` into a Z3 term, interning symbols in `interned`.

    `interned` is shared by reference: pass the same table for every formula
    that goes into one solver session so that equal names map to equal symbols.
    """
    memo: Dict[int, tuple[hoare.Expr, z3.ExprRef]] = {}

    def go(n: hoare.Expr) -> z3.ExprRef:
        hit = memo.get(id(n))
        if hit is not None:
            return hit[1]
        match n:
            case hoare.IntConst(v):
                res = z3.IntVal(v)
            case hoare.BVConst(v):
                res = z3.BitVecVal(v, hoare.BV_WIDTH)
            case hoare.BoolConst(v):
                res = z3.BoolVal(v)
            case hoare.Var():
                res = _intern_var(interned, n)
            case hoare.BinaryExpr(op, l, r):
                res = _binop(op, go(l), go(r))
            case hoare.UnaryExpr(op, arg):
                res = _unop(op, go(arg))
            case hoare.UFExpr(name, args):
                f = _intern_function(interned, name, len(args))
                zargs = [go(a) for a in args]
                for a, za in zip(args, zargs):
                    if _sort_of(za) is not Sort.INT:
                        raise TranslationError(
                            f"argument `{hoare_util.dump(a)}` of `{name}` has sort {za.sort()}, expected Int")
                res = f(*zargs)
            case _:
                raise TypeError(f"translate got {type(n)}: {n}")
        memo[id(n)] = (n, res)
        return res

    return go(e)


def translate_formula(e: hoare.Expr, interned: InternTable) -> z3.BoolRef:
    """Like `translate`, but the result must be a Boolean formula."""
    t = translate(e, interned)
    if not z3.is_bool(t):
        raise TranslationError(f"`{hoare_util.dump(e)}` is not a formula (sort {t.sort()})")
    return t


def collect_symbols(*exprs: hoare.Expr) -> list[str]:
    """Return the distinct symbol names of `exprs` in first-occurrence order."""
    seen: dict[str, None] = {}
    for e in exprs:
        hoare_util.for_all_vars(e, lambda name: seen.setdefault(name, None))
    return list(seen)


def get_solver() -> z3.Solver:
    """Create a Z3 solver for quantifier-free Int/BV/UF queries."""
    t = z3.Tactic("smt")
    return t.solver()


@contextmanager
def solver_session() -> Iterator[z3.Solver]:
    """Yield a fresh solver and reset it on every exit path.

    Assertions already added are not rolled back individually; the reset
    discards the whole context.
    """
    s = get_solver()
    try:
        yield s
    finally:
        s.reset()


@dataclass(frozen=True)
class ModelResult:
    status: str  # "valid" | "invalid" | "unknown"
    model: Optional[z3.ModelRef] = None
    counterexample: Optional[dict[str, str]] = None


def extract_counterexample(model: z3.ModelRef, interned: InternTable, names: list[str]) -> dict[str, str]:
    """Read the value of every interned symbol in `names` from `model`, as text."""
    values: dict[str, str] = {}
    for name in names:
        sym = interned.get(name)
        if sym is None:
            continue
        if isinstance(sym, z3.FuncDeclRef):
            interp = model[sym]
            if interp is not None:
                values[name] = str(interp)
            continue
        values[name] = str(model.eval(sym, model_completion=True))
    return values


def check_validity(pre: hoare.Expr, wp: hoare.Expr) -> ModelResult:
    """Decide whether `pre -> wp` is valid (i.e. `pre && !wp` is UNSAT)."""
    interned: InternTable = {}
    with solver_session() as s:
        zpre = translate_formula(pre, interned)
        zwp = translate_formula(wp, interned)
        s.add(z3.simplify(z3.And(zpre, z3.Not(zwp))))
        res = s.check()
        if res == z3.unsat:
            return ModelResult("valid")
        if res != z3.sat:
            return ModelResult("unknown")
        model = s.model()
        names = collect_symbols(pre, wp)
        return ModelResult("invalid", model, extract_counterexample(model, interned, names))
