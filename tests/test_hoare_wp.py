"""
Tests for the weakest-precondition calculus
"""

from hoare import (
    BinOp, UnOp, Var, IntConst, BoolConst,
    BinaryExpr, UnaryExpr, UFExpr, AssignStmt, SeqStmt, CondStmt, Program,
)
from hoare_util import dump, replace
from hoare_wp import weakest_precondition, verification_condition, check_program


def lt(l, r):
    return BinaryExpr(BinOp.LT, l, r)


def gt(l, r):
    return BinaryExpr(BinOp.GT, l, r)


def add(l, r):
    return BinaryExpr(BinOp.ADD, l, r)


A = AssignStmt(Var("x"), add(Var("y"), IntConst(1)))
B = AssignStmt(Var("y"), BinaryExpr(BinOp.MUL, Var("x"), IntConst(2)))
C = AssignStmt(Var("z"), UFExpr("f", [Var("x"), Var("y")]))
POST = BinaryExpr(BinOp.AND, lt(Var("x"), Var("z")), gt(Var("y"), IntConst(0)))


class TestAssignment:
    """wp(x = e, Q) = Q[x := e]"""

    def test_increment_scenario(self):
        s = AssignStmt(Var("b"), add(Var("a"), IntConst(1)))
        wp = weakest_precondition(s, lt(Var("b"), IntConst(10)))
        assert dump(wp) == "((a+1)<10)"

    def test_equals_replace(self):
        for post in (POST, lt(Var("x"), IntConst(3)), BoolConst(True), UFExpr("g", [Var("x")])):
            assert weakest_precondition(A, post) == replace(post, A.lvalue, A.rvalue)

    def test_self_reference(self):
        s = AssignStmt(Var("x"), add(Var("x"), IntConst(1)))
        assert dump(weakest_precondition(s, gt(Var("x"), IntConst(0)))) == "((x+1)>0)"


class TestSequence:
    """Statements are processed from last to first"""

    def test_empty_sequence_is_identity(self):
        assert weakest_precondition(SeqStmt(), POST) is POST

    def test_composition(self):
        lhs = weakest_precondition(SeqStmt([A, B, C]), POST)
        rhs = weakest_precondition(SeqStmt([A]), weakest_precondition(SeqStmt([B]), weakest_precondition(SeqStmt([C]), POST)))
        assert lhs == rhs

    def test_nested_sequences_flatten(self):
        assert weakest_precondition(SeqStmt([A, SeqStmt([B, C])]), POST) == weakest_precondition(SeqStmt([A, B, C]), POST)

    def test_order_matters(self):
        s = SeqStmt([
            AssignStmt(Var("t"), Var("x")),
            AssignStmt(Var("x"), Var("y")),
            AssignStmt(Var("y"), Var("t")),
        ])
        post = BinaryExpr(BinOp.AND, BinaryExpr(BinOp.EQ, Var("x"), IntConst(7)), BinaryExpr(BinOp.EQ, Var("y"), IntConst(3)))
        assert dump(weakest_precondition(s, post)) == "((y==7)&&(x==3))"


class TestConditional:
    """wp(if c then t else f, Q) = (c -> wp(t, Q)) && (!c -> wp(f, Q))"""

    def test_skip_branches_scenario(self):
        s = CondStmt(gt(IntConst(1), IntConst(3)), SeqStmt(), SeqStmt())
        wp = weakest_precondition(s, gt(Var("y"), IntConst(5)))
        assert dump(wp) == "(((1>3)->(y>5))&&((!(1>3))->(y>5)))"

    def test_shape(self):
        c = lt(Var("x"), Var("y"))
        s = CondStmt(c, A, B)
        wp = weakest_precondition(s, POST)
        assert wp == BinaryExpr(
            BinOp.AND,
            BinaryExpr(BinOp.IMPLIES, c, weakest_precondition(A, POST)),
            BinaryExpr(BinOp.IMPLIES, UnaryExpr(UnOp.NOT, c), weakest_precondition(B, POST)),
        )
        assert wp.is_bool and wp.left.is_bool and wp.right.left.is_bool

    def test_branches(self):
        s = CondStmt(gt(Var("x"), Var("y")), AssignStmt(Var("m"), Var("x")), AssignStmt(Var("m"), Var("y")))
        wp = weakest_precondition(s, BinaryExpr(BinOp.GE, Var("m"), Var("x")))
        assert dump(wp) == "(((x>y)->(x>=x))&&((!(x>y))->(y>=x)))"

    def test_nested_conditionals_expand_both_branches(self):
        inner = CondStmt(Var("p"), AssignStmt(Var("x"), IntConst(1)), AssignStmt(Var("x"), IntConst(2)))
        s = CondStmt(Var("q"), inner, inner)
        wp = weakest_precondition(s, gt(Var("x"), IntConst(0)))
        rendered = dump(wp)
        assert rendered.count("(1>0)") == 2
        assert rendered.count("(2>0)") == 2


class TestProgram:
    """Verification conditions and checking"""

    def test_verification_condition(self):
        prog = Program(lt(Var("a"), IntConst(9)), AssignStmt(Var("b"), add(Var("a"), IntConst(1))), lt(Var("b"), IntConst(10)))
        assert dump(verification_condition(prog)) == "((a<9)->((a+1)<10))"

    def test_check_valid(self):
        prog = Program(lt(Var("a"), IntConst(9)), AssignStmt(Var("b"), add(Var("a"), IntConst(1))), lt(Var("b"), IntConst(10)))
        assert check_program(prog).status == "valid"

    def test_check_invalid_reports_counterexample(self, capsys):
        prog = Program(lt(Var("a"), IntConst(10)), AssignStmt(Var("b"), add(Var("a"), IntConst(1))), lt(Var("b"), IntConst(10)))
        result = check_program(prog, verbose=True, print_vc=True)
        assert result.status == "invalid"
        assert result.counterexample == {"a": "9"}
        err = capsys.readouterr().err
        assert "VC: ((a<10)->((a+1)<10))" in err
        assert "a = 9" in err
