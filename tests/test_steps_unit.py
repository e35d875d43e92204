"""Tests for step-by-step evaluation."""

import pytest

import mathexpr
from mathexpr.errors import UndefinedVariable
from mathexpr.parser import parse_expression
from mathexpr.steps import _fmt_num, evaluate_steps, format_number


# ── _fmt_num helper ──────────────────────────────────────────────────────

class TestFmtNum:
    def test_integer(self):
        assert _fmt_num(7.0) == "7"

    def test_clean_decimal(self):
        assert _fmt_num(2.5) == "2.5"

    def test_trailing_zeros_stripped(self):
        assert _fmt_num(1.50000) == "1.5"

    def test_very_small_rounds_to_int(self):
        assert _fmt_num(3.0000000000001) == "3"

    def test_ten_decimals(self):
        assert _fmt_num(1 / 3) == "0.3333333333"

    def test_special_values(self):
        assert _fmt_num(float("inf")) == "inf"
        assert _fmt_num(float("-inf")) == "-inf"
        assert _fmt_num(float("nan")) == "nan"

    def test_fixed_precision(self):
        assert format_number(2.0, 3) == "2.000"


# ── Traced evaluation ───────────────────────────────────────────────────

def test_steps_for_arithmetic() -> None:
    steps = evaluate_steps("2 + 3 * 4")
    assert [s.operation for s in steps] == ["initial", "binop", "binop", "result"]
    assert steps[0].subexpression == "2 + 3 * 4"
    assert steps[0].description == "Initial expression"
    assert steps[1].description == "3 × 4"
    assert steps[1].subexpression == "3 * 4"
    assert steps[1].operands == [3.0, 4.0]
    assert steps[1].result == 12.0
    assert steps[2].description == "2 + 12"
    assert steps[-1].description == "Final result"
    assert steps[-1].result == 14.0
    assert steps[-1].subexpression == "14"


def test_division_symbol() -> None:
    steps = evaluate_steps("6 / 4")
    assert steps[1].description == "6 ÷ 4"
    assert steps[1].subexpression == "6 / 4"
    assert steps[-1].subexpression == "1.5"


def test_calls_are_always_recorded() -> None:
    steps = evaluate_steps("sqrt(16) + 1", combine_arithmetic=True)
    assert [s.operation for s in steps] == ["initial", "call", "result"]
    assert steps[1].description == "sqrt(16)"
    assert steps[1].result == 4.0
    assert steps[-1].result == 5.0


def test_combine_arithmetic_hides_binops() -> None:
    steps = evaluate_steps("1 + 2 * 3", combine_arithmetic=True)
    assert [s.operation for s in steps] == ["initial", "result"]


def test_show_intermediates_overrides_combine() -> None:
    steps = evaluate_steps("1 + 2 * 3", combine_arithmetic=True, show_intermediates=True)
    assert [s.operation for s in steps].count("binop") == 2


def test_significant_digits() -> None:
    steps = evaluate_steps("1 / 3", significant_digits=2)
    assert steps[1].description == "1.00 ÷ 3.00"
    assert steps[1].precision == 2
    assert steps[-1].subexpression == "0.33"


def test_unary_step() -> None:
    steps = evaluate_steps("-(2 + 1)")
    assert [s.operation for s in steps] == ["initial", "binop", "unary", "result"]
    assert steps[2].description == "-3"
    assert steps[2].result == -3.0


def test_variables_and_ast_input() -> None:
    steps = evaluate_steps(parse_expression("a * 2"), {"a": "b + 1", "b": 3})
    assert steps[0].subexpression == "a * 2"
    assert steps[1].description == "4 × 2"
    assert steps[-1].result == 8.0


def test_undefined_variable() -> None:
    with pytest.raises(UndefinedVariable):
        evaluate_steps("q + 1")


def test_step_to_dict() -> None:
    step = evaluate_steps("1 + 1")[1]
    assert step.to_dict() == {
        "operation": "binop",
        "description": "1 + 1",
        "operands": [1.0, 1.0],
        "result": 2.0,
        "precision": None,
        "subexpression": "1 + 1",
    }


def test_solve_show_steps() -> None:
    steps = mathexpr.solve("x * 2", {"x": 3}, {"show_steps": True})
    assert steps[-1].result == 6.0
    steps = mathexpr.solve("x * 2", options={"show_steps": True, "variables": {"x": 5},
                                             "significant_digits": 1})
    assert steps[-1].subexpression == "10.0"
