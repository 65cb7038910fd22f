"""Substitution, copying, traversal and printing for `hoare` ASTs.

WP formulas are DAGs: a conditional refers to the postcondition from both
branches, so the same node object is reachable along many paths. `replace` and
`dump` therefore memoize on node identity for the duration of a single call.
"""

from typing import Callable, Dict, Tuple

import hoare


def copy(e: hoare.Expr) -> hoare.Expr:
    """Return a value-identical, independently built copy of `e` (constants are shared)."""
    match e:
        case hoare.Const():
            return e
        case hoare.Var(name, sort):
            return hoare.Var(name, sort)
        case hoare.BinaryExpr(op, l, r):
            return hoare.BinaryExpr(op, copy(l), copy(r))
        case hoare.UnaryExpr(op, arg):
            return hoare.UnaryExpr(op, copy(arg))
        case hoare.UFExpr(name, args):
            return hoare.UFExpr(name, tuple(copy(a) for a in args))
        case _:
            raise TypeError(f"copy got {type(e)}: {e}")


def replace(e: hoare.Expr, variable: hoare.Var, replacement: hoare.Expr) -> hoare.Expr:
    """Return `e` with every occurrence of `variable` (matched by name) replaced by a copy of `replacement`.

    The substitution is a single pass: occurrences of `variable` inside
    `replacement` are left alone. There are no binders, so no capture can occur.
    """
    x = variable.name
    memo: Dict[int, Tuple[hoare.Expr, hoare.Expr]] = {}

    def go(n: hoare.Expr) -> hoare.Expr:
        hit = memo.get(id(n))
        if hit is not None:
            return hit[1]
        match n:
            case hoare.Const():
                return n
            case hoare.Var(name, sort):
                res = copy(replacement) if name == x else hoare.Var(name, sort)
            case hoare.BinaryExpr(op, l, r):
                res = hoare.BinaryExpr(op, go(l), go(r))
            case hoare.UnaryExpr(op, arg):
                res = hoare.UnaryExpr(op, go(arg))
            case hoare.UFExpr(name, args):
                res = hoare.UFExpr(name, tuple(go(a) for a in args))
            case _:
                raise TypeError(f"replace got {type(n)}: {n}")
        # keep `n` alive so its id cannot be recycled during this call
        memo[id(n)] = (n, res)
        return res

    return go(e)


def for_all_vars(e: hoare.Expr, visit: Callable[[str], None]) -> None:
    """Call `visit` on every variable and function-symbol occurrence, left to right.

    A function name is visited before its arguments. Repeated names are
    visited once per occurrence.
    """
    match e:
        case hoare.Const():
            return
        case hoare.Var(name, _):
            visit(name)
        case hoare.BinaryExpr(_, l, r):
            for_all_vars(l, visit)
            for_all_vars(r, visit)
        case hoare.UnaryExpr(_, arg):
            for_all_vars(arg, visit)
        case hoare.UFExpr(name, args):
            visit(name)
            for a in args:
                for_all_vars(a, visit)
        case _:
            raise TypeError(f"for_all_vars got {type(e)}: {e}")


def dump(e: hoare.Expr) -> str:
    """Render `e` fully parenthesized, e.g. `((a+1)<10)`."""
    memo: Dict[int, Tuple[hoare.Expr, str]] = {}

    def go(n: hoare.Expr) -> str:
        hit = memo.get(id(n))
        if hit is not None:
            return hit[1]
        match n:
            case hoare.IntConst(v):
                res = str(v)
            case hoare.BVConst(v):
                res = f"BV:{v}"
            case hoare.BoolConst(v):
                res = "true" if v else "false"
            case hoare.Var(name, _):
                res = name
            case hoare.BinaryExpr(op, l, r):
                res = f"({go(l)}{op.symbol}{go(r)})"
            case hoare.UnaryExpr(op, arg):
                res = f"({op.symbol}{go(arg)})"
            case hoare.UFExpr(name, args):
                res = f"{name}({','.join(go(a) for a in args)})"
            case _:
                raise TypeError(f"dump got {type(n)}: {n}")
        memo[id(n)] = (n, res)
        return res

    return go(e)


def dump_stmt(s: hoare.Stmt, level: int = 0) -> str:
    """Render statement `s` as source text, indented two spaces per `level`."""
    tab = "  " * level
    match s:
        case hoare.AssignStmt(lhs, rhs):
            return f"{tab}{lhs.name} = {dump(rhs)};"
        case hoare.SeqStmt(()):
            return f"{tab}skip;"
        case hoare.SeqStmt(stmts):
            inner = "\n".join(dump_stmt(st, level + 1) for st in stmts)
            return f"{tab}{{\n{inner}\n{tab}}}"
        case hoare.CondStmt(cond, t, f):
            return (f"{tab}if ({dump(cond)}) then\n{dump_stmt(t, level + 1)}\n"
                    f"{tab}else\n{dump_stmt(f, level + 1)}")
        case _:
            raise TypeError(f"dump_stmt got {type(s)}: {s}")


def dump_program(prog: hoare.Program) -> str:
    """Render a whole program, including `bv32` declarations, so that it parses back."""
    sorts = stmt_vars(prog.body)
    sorts.update(expr_vars(prog.pre))
    sorts.update(expr_vars(prog.post))
    lines = []
    bvs = [name for name, sort in sorts.items() if sort is hoare.Sort.BV32]
    if bvs:
        lines.append(f"bv32 {', '.join(bvs)};")
    lines.append(f"requires {dump(prog.pre)};")
    lines.append(dump_stmt(prog.body))
    lines.append(f"ensures {dump(prog.post)};")
    return "\n".join(lines)


def expr_vars(e: hoare.Expr) -> Dict[str, hoare.Sort]:
    """Map every variable occurring in `e` to its sort (function symbols are skipped)."""
    match e:
        case hoare.Var(name, sort):
            return {name: sort}
        case hoare.Const():
            return {}
        case hoare.BinaryExpr(_, l, r):
            return {**expr_vars(l), **expr_vars(r)}
        case hoare.UnaryExpr(_, arg):
            return expr_vars(arg)
        case hoare.UFExpr(_, args):
            v: Dict[str, hoare.Sort] = {}
            for a in args:
                v.update(expr_vars(a))
            return v
        case _:
            raise TypeError(f"expr_vars got {type(e)}: {e}")


def stmt_vars(s: hoare.Stmt) -> Dict[str, hoare.Sort]:
    """Map every variable assigned or read anywhere in statement `s` to its sort."""
    match s:
        case hoare.AssignStmt(lhs, rhs):
            return {lhs.name: lhs.sort, **expr_vars(rhs)}
        case hoare.SeqStmt(stmts):
            v: Dict[str, hoare.Sort] = {}
            for st in stmts:
                v.update(stmt_vars(st))
            return v
        case hoare.CondStmt(cond, t, f):
            return {**expr_vars(cond), **stmt_vars(t), **stmt_vars(f)}
        case _:
            raise TypeError(f"stmt_vars got {type(s)}: {s}")
