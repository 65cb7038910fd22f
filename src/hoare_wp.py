"""Weakest-precondition calculus over `hoare` statements, and the program checker built on it."""

from __future__ import annotations

import sys

import hoare
import hoare_solver
import hoare_util


def weakest_precondition(s: hoare.Stmt, post: hoare.Expr) -> hoare.Expr:
    """Computes wp(s, post).

    wp(x = e, Q)               = Q[x := e]
    wp(s1; ...; sn, Q)         = wp(s1, ... wp(sn, Q))
    wp(if c then t else f, Q)  = (c -> wp(t, Q)) && (!c -> wp(f, Q))
    """
    match s:
        case hoare.AssignStmt(lhs, rhs):
            return hoare_util.replace(post, lhs, rhs)

        case hoare.SeqStmt(stmts):
            for stmt in reversed(stmts):
                post = weakest_precondition(stmt, post)
            return post

        case hoare.CondStmt(cond, t, f):
            wt, wf = weakest_precondition(t, post), weakest_precondition(f, post)
            return hoare.BinaryExpr(
                hoare.BinOp.AND,
                hoare.BinaryExpr(hoare.BinOp.IMPLIES, cond, wt),
                hoare.BinaryExpr(hoare.BinOp.IMPLIES, hoare.UnaryExpr(hoare.UnOp.NOT, cond), wf),
            )

        case _:
            raise TypeError(f"weakest_precondition got {type(s)}: {s}")


def verification_condition(prog: hoare.Program) -> hoare.Expr:
    """Returns `pre -> wp(body, post)`, valid iff the program meets its contract."""
    return hoare.BinaryExpr(hoare.BinOp.IMPLIES, prog.pre, weakest_precondition(prog.body, prog.post))


def check_program(
    prog: hoare.Program,
    *,
    verbose: bool = False,
    print_vc: bool = False,
) -> hoare_solver.ModelResult:
    vc = verification_condition(prog)
    wp = vc.right

    if verbose:
        print("Program:", file=sys.stderr)
        print(hoare_util.dump_program(prog), file=sys.stderr)
    if print_vc:
        print(f"VC: {hoare_util.dump(vc)}", file=sys.stderr)

    result = hoare_solver.check_validity(prog.pre, wp)

    if verbose and result.counterexample:
        print("Counterexample:", file=sys.stderr)
        for name, value in result.counterexample.items():
            print(f"  {name} = {value}", file=sys.stderr)
    return result
