"""Tests for the equation solver."""

import logging

import pytest

from mathexpr import engine
from mathexpr.engine import (
    extract_2var_coefficients, extract_linear_coefficients, find_unknowns, is_linear_in,
    parse_equation, solve_equation, solve_system,
)
from mathexpr.errors import (
    AmbiguousUnknowns, EmptySide, NonLinearTerm, NotAnEquation,
    SystemUnsolvable, UndefinedVariable, UnexpectedCharacter, UnknownSolveTarget,
)
from mathexpr.parser import parse_expression


# ── Parsing ──────────────────────────────────────────────────────────────

class TestParseEquation:
    def test_splits_on_first_equals(self):
        equation = parse_equation("2*x + 3 = 11")
        assert equation.left == parse_expression("2*x + 3")
        assert equation.right == parse_expression("11")

    def test_missing_equals(self):
        with pytest.raises(NotAnEquation, match="must contain '='"):
            parse_equation("2 + 2")

    @pytest.mark.parametrize("text", [" = 3", "x = ", "="])
    def test_empty_side(self, text):
        with pytest.raises(EmptySide):
            parse_equation(text)

    def test_second_equals_is_rejected(self):
        with pytest.raises(UnexpectedCharacter, match="=."):
            parse_equation("x = 1 = 2")


def test_find_unknowns() -> None:
    assert find_unknowns(parse_expression("x + y * z"), {"y": 1}) == ["x", "z"]
    assert find_unknowns(parse_expression("x + x")) == ["x"]


# ── Linearity and coefficients ──────────────────────────────────────────

@pytest.mark.parametrize(
    "text,expected",
    [
        ("2*x + 3", True),
        ("-x", True),
        ("x / 4", True),
        ("y * x", True),
        ("sin(2) * x", True),
        ("x * x", False),
        ("x / x", False),
        ("x ^ 2", False),
        ("2 ^ x", False),
        ("sin(x)", False),
        ("(x + 1) * (x - 1)", False),
    ],
)
def test_is_linear_in(text: str, expected: bool) -> None:
    assert is_linear_in(parse_expression(text), "x") is expected


class TestCoefficients:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("3*x - 4", (3.0, -4.0)),
            ("(x + 1) / 2", (0.5, 0.5)),
            ("2 * (3 - x)", (-2.0, 6.0)),
            ("-x + 2^3", (-1.0, 8.0)),
            ("sqrt(9) * x", (3.0, 0.0)),
            ("pi", (0.0, 3.141592653589793)),
        ],
    )
    def test_extract(self, text, expected):
        assert extract_linear_coefficients(parse_expression(text), "x") == expected

    def test_with_lazy_bindings(self):
        ast = parse_expression("a*x + b")
        assert extract_linear_coefficients(ast, "x", {"a": 2, "b": "a + 1"}) == (2.0, 3.0)

    def test_unbound_other_variable(self):
        with pytest.raises(UndefinedVariable, match="y"):
            extract_linear_coefficients(parse_expression("x + y"), "x")

    def test_product_of_unknowns(self):
        with pytest.raises(NonLinearTerm, match="multiplication"):
            extract_linear_coefficients(parse_expression("x * x"), "x")

    def test_division_by_unknown(self):
        with pytest.raises(NonLinearTerm, match="divide"):
            extract_linear_coefficients(parse_expression("1 / x"), "x")

    def test_two_variables(self):
        ast = parse_expression("2*x - 3*y + 4")
        assert extract_2var_coefficients(ast, "x", "y") == (2.0, -3.0, 4.0)

    def test_two_variable_cross_term(self):
        with pytest.raises(NonLinearTerm, match="product of variables"):
            extract_2var_coefficients(parse_expression("x * y"), "x", "y")


# ── Single equations ────────────────────────────────────────────────────

class TestSolveEquation:
    def test_linear(self):
        assert solve_equation("2*x+3=11", {}, {}) == {"x": 4.0}

    def test_unknown_on_both_sides(self):
        assert solve_equation("5*x - 2 = 3*x + 6") == {"x": 4.0}

    def test_with_bindings(self):
        assert solve_equation("a*x = b", {"a": 2, "b": 10}) == {"x": 5.0}

    def test_with_lazy_bindings(self):
        assert solve_equation("x + a = 10", {"a": "b * 2", "b": 3}) == {"x": 4.0}

    def test_identity(self):
        result = solve_equation("x=x", {}, {})
        assert "infinite solutions" in result["error"]

    def test_contradiction(self):
        result = solve_equation("x+1=x", {}, {})
        assert "no solution" in result["error"]

    def test_no_unknowns_satisfied(self):
        assert solve_equation("2 + 2 = 4") == {"satisfied": True, "left": 4.0, "right": 4.0}

    def test_no_unknowns_not_satisfied(self):
        result = solve_equation("x = 3", {"x": 2})
        assert result == {"satisfied": False, "left": 2.0, "right": 3.0}

    def test_solve_for(self):
        assert solve_equation("2*x + y = 10", {"x": 3}, {"solve_for": "y"}) == {"y": 4.0}

    def test_solve_for_overrides_binding(self):
        assert solve_equation("x + 1 = 3", {"x": 100}, {"solve_for": "x"}) == {"x": 2.0}

    def test_solve_for_missing(self):
        with pytest.raises(UnknownSolveTarget, match="'z' not found"):
            solve_equation("x = 1", {}, {"solve_for": "z"})

    def test_ambiguous(self):
        with pytest.raises(AmbiguousUnknowns, match="multiple unknowns: x, y"):
            solve_equation("x + y = 3")

    def test_division_by_unknown_is_rejected(self):
        with pytest.raises(NonLinearTerm):
            solve_equation("2 / x = 1")

    def test_invalid_options(self):
        with pytest.raises(ValueError, match="max_iterations"):
            solve_equation("x^2 = 4", {}, {"max_iterations": 0})


class TestNewtonFallback:
    def test_positive_root(self):
        result = solve_equation("x^2=4", {}, {"initial_guess": 3})
        assert abs(result["x"] - 2) < 1e-8
        assert "warning" not in result

    def test_negative_root(self):
        result = solve_equation("x^2=4", {}, {"initial_guess": -3})
        assert abs(result["x"] + 2) < 1e-8

    def test_transcendental(self):
        result = solve_equation("sin(x) = 0.5", {}, {"initial_guess": 0.5})
        assert abs(result["x"] - 0.5235987755982988) < 1e-8

    def test_without_codegen(self):
        result = solve_equation("x^3 = 27", {}, {"initial_guess": 2, "codegen": False})
        assert abs(result["x"] - 3) < 1e-8

    def test_non_convergence_is_a_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mathexpr.numerical"):
            result = solve_equation("x^2 = -1", {}, {"max_iterations": 20})
        assert result["warning"] == "may not have converged"
        assert "x" in result
        assert "Newton-Raphson" in caplog.text


def test_solver_path_is_logged(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="mathexpr.engine"):
        solve_equation("2*x = 4")
        solve_equation("x^2 = 4")
    assert "linear" in caplog.text
    assert "Newton-Raphson" in caplog.text


# ── Systems ──────────────────────────────────────────────────────────────

class TestSolveSystem:
    def test_cramer(self):
        assert solve_system(["x+y=10", "x-y=2"], {}, {}) == {"x": 6.0, "y": 4.0}

    def test_cramer_with_bindings(self):
        assert solve_system(["a*x + y = 7", "x - y = -1"], {"a": 2}) == {"x": 2.0, "y": 3.0}

    def test_singular(self):
        result = solve_system(["x + y = 1", "2*x + 2*y = 2"])
        assert result == {"error": engine.SINGULAR_SYSTEM}

    def test_single_equation_delegates(self):
        assert solve_system(["2*x = 8"]) == {"x": 4.0}
        assert solve_system("2*x = 8") == {"x": 4.0}

    def test_iterative_substitution(self):
        result = solve_system(["z = x + y", "y = x * 3", "x = 2"])
        assert result == {"x": 2.0, "y": 6.0, "z": 8.0}

    def test_cross_term_falls_back_to_substitution(self):
        assert solve_system(["x*y = 6", "x = 2"]) == {"x": 2.0, "y": 3.0}

    def test_nonlinear_member(self):
        result = solve_system(["x^2 = 9", "y = x + 1", "z = y * 2"], {}, {"initial_guess": 2})
        assert abs(result["x"] - 3) < 1e-8
        assert abs(result["z"] - 8) < 1e-6

    def test_satisfied_equations_are_skipped(self):
        result = solve_system(["x = 1", "x + 1 = 2", "y = x + 1"])
        assert result == {"x": 1.0, "y": 2.0}

    def test_degenerate_member_is_reported(self):
        result = solve_system(["x = 1", "y - y = 1", "z = 2"])
        assert result == {"error": engine.NO_SOLUTION}

    def test_unsolvable(self):
        with pytest.raises(SystemUnsolvable, match="could not be solved"):
            solve_system(["x + y = 1", "x + y + z = 2", "z + w = 3"])

    def test_empty(self):
        with pytest.raises(NotAnEquation):
            solve_system([])

    def test_parse_errors_propagate(self):
        with pytest.raises(NotAnEquation):
            solve_system(["x = 1", "y + 1"])

    def test_solve_for_is_ignored_for_systems(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="mathexpr.engine"):
            result = solve_system(["x + y = 10", "x - y = 2"], {}, {"solve_for": "x"})
        assert result == {"x": 6.0, "y": 4.0}
        assert "solve_for='x' ignored" in caplog.text

    def test_solve_for_still_applies_to_one_equation(self):
        assert solve_system(["2*x + y = 10"], {"x": 3}, {"solve_for": "y"}) == {"y": 4.0}
