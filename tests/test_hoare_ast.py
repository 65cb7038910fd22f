"""
Tests for the AST node types and operator enumerations
"""

import dataclasses

import pytest

from hoare import (
    BinOp, UnOp, OpKind, Sort, Var, IntConst, BVConst, BoolConst,
    BinaryExpr, UnaryExpr, UFExpr, AssignStmt, SeqStmt, CondStmt,
)


class TestOperators:
    """Operators carry symbol, arity and result sort"""

    def test_lookup_by_symbol(self):
        assert BinOp.from_symbol("+") is BinOp.ADD
        assert BinOp.from_symbol("->") is BinOp.IMPLIES
        assert UnOp.from_symbol("!") is UnOp.NOT
        assert UnOp.from_symbol("~") is UnOp.BVNOT

    def test_unknown_symbol_rejected(self):
        with pytest.raises(ValueError):
            BinOp.from_symbol("**")
        with pytest.raises(ValueError):
            UnOp.from_symbol("+")

    def test_symbols_are_unique(self):
        symbols = [op.symbol for op in BinOp]
        assert len(symbols) == len(set(symbols))

    def test_arity(self):
        assert all(op.arity == 2 for op in BinOp)
        assert all(op.arity == 1 for op in UnOp)

    def test_result_sort(self):
        assert BinOp.ADD.result_sort(Sort.INT) is Sort.INT
        assert BinOp.ADD.result_sort(Sort.BV32) is Sort.BV32
        assert BinOp.LT.result_sort(Sort.BV32) is Sort.BOOL
        assert BinOp.IMPLIES.result_sort(Sort.BOOL) is Sort.BOOL
        assert UnOp.NEG.result_sort(Sort.INT) is Sort.INT
        assert UnOp.NOT.result_sort(Sort.BOOL) is Sort.BOOL

    def test_is_bool_follows_operator(self):
        assert BinaryExpr(BinOp.LT, Var("a"), IntConst(1)).is_bool
        assert not BinaryExpr(BinOp.ADD, Var("a"), IntConst(1)).is_bool
        assert UnaryExpr(UnOp.NOT, BoolConst(True)).is_bool
        assert not UnaryExpr(UnOp.NEG, Var("a")).is_bool
        assert BinOp.BVXOR.kind is OpKind.BITWISE


class TestNodes:
    """Nodes are immutable values"""

    def test_var_identity_is_by_value(self):
        assert Var("x") == Var("x", Sort.INT)
        assert Var("x") != Var("x", Sort.BV32)
        assert Var("x") != Var("y")

    def test_var_rejects_bool_sort(self):
        with pytest.raises(ValueError):
            Var("p", Sort.BOOL)

    def test_bv_const_range(self):
        assert BVConst(0).value == 0
        assert BVConst(2**32 - 1).value == 2**32 - 1
        with pytest.raises(ValueError):
            BVConst(2**32)
        with pytest.raises(ValueError):
            BVConst(-1)

    def test_constants_of_different_kinds_differ(self):
        assert IntConst(1) != BVConst(1)
        assert IntConst(0) != BoolConst(False)

    def test_nodes_are_frozen(self):
        e = BinaryExpr(BinOp.ADD, Var("a"), IntConst(1))
        with pytest.raises(dataclasses.FrozenInstanceError):
            e.left = Var("b")

    def test_sequences_are_stored_as_tuples(self):
        f = UFExpr("f", [Var("x"), Var("y")])
        assert f.args == (Var("x"), Var("y"))
        s = SeqStmt([AssignStmt(Var("x"), IntConst(1))])
        assert isinstance(s.statements, tuple)
        assert hash(f) == hash(UFExpr("f", (Var("x"), Var("y"))))

    def test_cond_defaults_to_empty_else(self):
        c = CondStmt(BoolConst(True), AssignStmt(Var("x"), IntConst(1)))
        assert c.false_branch == SeqStmt()
