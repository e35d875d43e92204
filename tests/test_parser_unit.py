"""Tests for the shunting-yard parser."""

import pytest

from mathexpr.errors import ArgumentCountError, ParseError, UnmatchedParenthesis
from mathexpr.lexer import tokenize
from mathexpr.nodes import BinaryOp, Call, ConstantRef, NumberLiteral, UnaryOp, VariableRef
from mathexpr.parser import parse, parse_expression


def N(value):
    return NumberLiteral(float(value))


def V(name):
    return VariableRef(name)


# ── Precedence and associativity ────────────────────────────────────────

class TestStructure:
    def test_multiplication_binds_tighter(self):
        assert parse(tokenize("2+3*4")) == BinaryOp("+", N(2), BinaryOp("*", N(3), N(4)))

    def test_subtraction_is_left_associative(self):
        assert parse_expression("8-3-2") == BinaryOp("-", BinaryOp("-", N(8), N(3)), N(2))

    def test_division_is_left_associative(self):
        assert parse_expression("8/4/2") == BinaryOp("/", BinaryOp("/", N(8), N(4)), N(2))

    def test_power_is_right_associative(self):
        assert parse_expression("2^3^2") == BinaryOp("^", N(2), BinaryOp("^", N(3), N(2)))

    def test_parentheses_override(self):
        assert parse_expression("(2+3)*4") == BinaryOp("*", BinaryOp("+", N(2), N(3)), N(4))

    def test_constants_and_variables(self):
        assert parse_expression("pi * r") == BinaryOp("*", ConstantRef("pi"), V("r"))


# ── Unary minus ─────────────────────────────────────────────────────────

class TestUnary:
    def test_leading_minus(self):
        assert parse_expression("-x") == UnaryOp("-", V("x"))

    def test_minus_binds_looser_than_power(self):
        assert parse_expression("-2^2") == UnaryOp("-", BinaryOp("^", N(2), N(2)))

    def test_minus_after_operator(self):
        assert parse_expression("2*-3") == BinaryOp("*", N(2), UnaryOp("-", N(3)))

    def test_minus_in_exponent(self):
        assert parse_expression("2^-1") == BinaryOp("^", N(2), UnaryOp("-", N(1)))

    def test_minus_binds_tighter_than_multiplication(self):
        assert parse_expression("-x*2") == BinaryOp("*", UnaryOp("-", V("x")), N(2))

    def test_double_minus(self):
        assert parse_expression("--x") == UnaryOp("-", UnaryOp("-", V("x")))

    def test_minus_after_comma(self):
        assert parse_expression("max(1, -2)") == Call("max", (N(1), UnaryOp("-", N(2))))

    def test_unary_plus_is_dropped(self):
        assert parse_expression("+3") == N(3)
        assert parse_expression("2*+3") == BinaryOp("*", N(2), N(3))


# ── Function calls ──────────────────────────────────────────────────────

class TestCalls:
    def test_single_argument(self):
        assert parse_expression("sin(x)") == Call("sin", (V("x"),))

    def test_variadic(self):
        assert parse_expression("max(1, 2, 3)") == Call("max", (N(1), N(2), N(3)))

    def test_nested_calls(self):
        assert parse_expression("atan2(1, max(2, 3))") == Call(
            "atan2", (N(1), Call("max", (N(2), N(3))))
        )

    def test_expression_arguments(self):
        assert parse_expression("pow(x + 1, 2 * y)") == Call(
            "pow", (BinaryOp("+", V("x"), N(1)), BinaryOp("*", N(2), V("y")))
        )

    def test_call_inside_arithmetic(self):
        assert parse_expression("2 * sqrt(4) + 1") == BinaryOp(
            "+", BinaryOp("*", N(2), Call("sqrt", (N(4),))), N(1)
        )


# ── Diagnostics ─────────────────────────────────────────────────────────

class TestErrors:
    @pytest.mark.parametrize("text", ["(1+2", "((1)", "sin(1"])
    def test_unclosed_parenthesis(self, text):
        with pytest.raises(UnmatchedParenthesis, match=r"Unmatched '\('"):
            parse_expression(text)

    @pytest.mark.parametrize("text", ["1+2)", "(1))"])
    def test_unopened_parenthesis(self, text):
        with pytest.raises(UnmatchedParenthesis, match=r"Unmatched '\)'"):
            parse_expression(text)

    def test_unmatched_is_a_parse_error(self):
        assert issubclass(UnmatchedParenthesis, ParseError)
        assert issubclass(ParseError, ValueError)

    @pytest.mark.parametrize(
        "text,message",
        [
            ("", "Empty expression"),
            ("1 +", "ends with an operator"),
            ("1 2", "Missing operator"),
            ("x (1)", "Missing operator"),
            ("*2", "Missing operand"),
            ("()", "Missing operand"),
            ("1 + * 2", "Missing operand"),
            ("sin x", "must be followed by"),
            ("1 = 2", "'=' is only allowed"),
            ("1, 2", "only allowed between function arguments"),
            ("max(1,)", "Missing operand"),
        ],
    )
    def test_malformed(self, text, message):
        with pytest.raises(ParseError, match=message):
            parse_expression(text)

    @pytest.mark.parametrize("text", ["sin()", "atan2(1)", "clamp(1, 2)", "max()"])
    def test_wrong_argument_count(self, text):
        with pytest.raises(ArgumentCountError):
            parse_expression(text)
