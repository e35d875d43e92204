"""Equation solver.

Solves single equations (``"2*x + 3 = 11"``) and small systems
(``["x + y = 10", "x - y = 2"]``) for their unknowns:

- equations linear in their unknown are solved exactly by extracting
  ``coefficient * x + constant`` from each side;
- other single-unknown equations fall back to Newton-Raphson
  (see ``mathexpr.numerical``);
- two linear equations in two unknowns use Cramer's rule;
- anything else is attempted by iterative substitution.

Mathematical outcomes (no solution, infinite solutions, singular
systems) come back as ``{"error": ...}`` dicts; misuse such as a
missing ``=`` raises a ``MathExprError``.
"""

import logging
from collections import namedtuple
from collections.abc import Mapping

import numpy as np

from mathexpr import functions
from mathexpr.config import SolveOptions
from mathexpr.errors import (
    AmbiguousUnknowns, EmptySide, MathExprError, NonLinearTerm, NotAnEquation,
    SystemUnsolvable, UnknownSolveTarget,
)
from mathexpr.evaluator import Scope, evaluate
from mathexpr.nodes import (
    BinaryOp, Call, ConstantRef, Node, NumberLiteral, UnaryOp, VariableRef,
)
from mathexpr.numerical import solve_numeric
from mathexpr.parser import parse_expression
from mathexpr.symbolic import contains_variable, find_variables

logger = logging.getLogger(__name__)

ZERO_EPSILON = 1e-15
SATISFIED_TOLERANCE = 1e-10

INFINITE_SOLUTIONS = "infinite solutions (identity)"
NO_SOLUTION = "no solution (contradiction)"
SINGULAR_SYSTEM = "system has no unique solution (singular matrix)"

Equation = namedtuple("Equation", ["left", "right"])


# ── Parsing ──────────────────────────────────────────────────────────────

def parse_equation(text: str) -> Equation:
    """Split *text* on its first ``=`` and parse both sides."""
    if "=" not in text:
        raise NotAnEquation()
    left_text, right_text = text.split("=", 1)
    if not left_text.strip() or not right_text.strip():
        raise EmptySide()
    return Equation(parse_expression(left_text), parse_expression(right_text))


def find_unknowns(ast: Node, bindings: Mapping | None = None) -> list[str]:
    """Variables referenced in *ast* that *bindings* does not provide."""
    bindings = bindings or {}
    return [name for name in find_variables(ast) if name not in bindings]


def equation_unknowns(equation: Equation, bindings: Mapping) -> list[str]:
    unknowns = find_unknowns(equation.left, bindings)
    for name in find_unknowns(equation.right, bindings):
        if name not in unknowns:
            unknowns.append(name)
    return unknowns


def _as_scope(bindings) -> Scope:
    return bindings if isinstance(bindings, Scope) else Scope(bindings or {})


# ── Linearity ────────────────────────────────────────────────────────────

def is_linear_in(ast: Node, var: str) -> bool:
    """True if *ast* can be written as ``a * var + b``, judged structurally."""
    if isinstance(ast, (NumberLiteral, ConstantRef, VariableRef)):
        return True
    if isinstance(ast, UnaryOp):
        return is_linear_in(ast.operand, var)
    if isinstance(ast, BinaryOp):
        in_left = contains_variable(ast.left, var)
        in_right = contains_variable(ast.right, var)
        if ast.op in ("+", "-"):
            return is_linear_in(ast.left, var) and is_linear_in(ast.right, var)
        if ast.op in ("*", "/"):
            if in_left and in_right:
                return False
            return is_linear_in(ast.left, var) and is_linear_in(ast.right, var)
        return not (in_left or in_right)
    if isinstance(ast, Call):
        return not any(contains_variable(arg, var) for arg in ast.args)
    return True


# ── Single-variable coefficients ─────────────────────────────────────────

def extract_linear_coefficients(ast: Node, var: str, bindings=None) -> tuple[float, float]:
    """Return ``(coefficient, constant)`` with ``ast == coefficient * var + constant``.

    Raises NonLinearTerm for products of the unknown with itself and for
    division by an expression containing it.
    """
    scope = _as_scope(bindings)
    with np.errstate(all="ignore"):
        coef, const = _coefficients(ast, var, scope)
    return float(coef), float(const)


def _coefficients(ast: Node, var: str, scope: Scope):
    if isinstance(ast, NumberLiteral):
        return 0.0, float(ast.value)
    if isinstance(ast, ConstantRef):
        return 0.0, functions.CONSTANTS[ast.name]
    if isinstance(ast, VariableRef):
        if ast.name == var:
            return 1.0, 0.0
        return 0.0, scope[ast.name]
    if isinstance(ast, UnaryOp):
        coef, const = _coefficients(ast.operand, var, scope)
        return -coef, -const
    if isinstance(ast, BinaryOp):
        if ast.op == "^":
            if contains_variable(ast, var):
                raise NonLinearTerm(f"Non-linear term: '{var}' appears in a power")
            return 0.0, evaluate(ast, scope)
        left_coef, left_const = _coefficients(ast.left, var, scope)
        right_coef, right_const = _coefficients(ast.right, var, scope)
        if ast.op == "+":
            return left_coef + right_coef, left_const + right_const
        if ast.op == "-":
            return left_coef - right_coef, left_const - right_const
        if ast.op == "*":
            if left_coef == 0:
                return left_const * right_coef, left_const * right_const
            if right_coef == 0:
                return right_const * left_coef, left_const * right_const
            raise NonLinearTerm("Non-linear term in multiplication")
        if right_coef != 0:
            raise NonLinearTerm("Cannot divide by an expression containing the unknown")
        return (functions.divide(left_coef, right_const),
                functions.divide(left_const, right_const))
    if isinstance(ast, Call):
        if contains_variable(ast, var):
            raise NonLinearTerm(f"Non-linear term: '{var}' appears inside {ast.name}()")
        return 0.0, evaluate(ast, scope)
    raise MathExprError(f"Unknown AST node type: {type(ast).__name__}")


def solve_linear(left: Node, right: Node, var: str, bindings=None) -> dict:
    """Solve ``left = right`` for *var*, both sides linear in it."""
    scope = _as_scope(bindings)
    left_coef, left_const = extract_linear_coefficients(left, var, scope)
    right_coef, right_const = extract_linear_coefficients(right, var, scope)

    # left_coef * x + left_const = right_coef * x + right_const
    coef = left_coef - right_coef
    const = right_const - left_const

    if abs(coef) < ZERO_EPSILON:
        if abs(const) < ZERO_EPSILON:
            return {"error": INFINITE_SOLUTIONS}
        return {"error": NO_SOLUTION}
    return {var: const / coef}


# ── Single equation ──────────────────────────────────────────────────────

def solve_equation(text: str, bindings: Mapping | None = None, options=None) -> dict:
    """
    Solve one equation for its single unknown.

    *bindings* supply values for the other variables; *options* may set
    ``solve_for``, ``initial_guess``, ``tolerance``, ``max_iterations``
    and ``codegen``.

    Returns ``{var: value}`` (plus ``warning`` if Newton-Raphson did not
    converge), ``{"error": ...}`` for degenerate linear equations, or
    ``{"satisfied": bool, "left": l, "right": r}`` when nothing is unknown.
    """
    bindings = dict(bindings or {})
    opts = SolveOptions.from_mapping(options)
    equation = parse_equation(text)

    if opts.solve_for is not None:
        target = opts.solve_for
        referenced = find_variables(equation.left) + find_variables(equation.right)
        if target not in referenced:
            raise UnknownSolveTarget(target)
        bindings.pop(target, None)
        unknowns = [target]
    else:
        unknowns = equation_unknowns(equation, bindings)

    if not unknowns:
        scope = Scope(bindings)
        left = evaluate(equation.left, scope)
        right = evaluate(equation.right, scope)
        return {
            "satisfied": bool(abs(left - right) < SATISFIED_TOLERANCE),
            "left": left,
            "right": right,
        }

    if len(unknowns) > 1:
        raise AmbiguousUnknowns(unknowns)

    var = unknowns[0]
    if is_linear_in(equation.left, var) and is_linear_in(equation.right, var):
        logger.debug("solving %r for %s: linear", text, var)
        return solve_linear(equation.left, equation.right, var, bindings)

    logger.debug("solving %r for %s: Newton-Raphson from %r", text, var, opts.initial_guess)
    return solve_numeric(equation.left, equation.right, var, bindings, opts)


# ── Two-variable linear systems ──────────────────────────────────────────

def extract_2var_coefficients(ast: Node, var1: str, var2: str,
                              bindings=None) -> tuple[float, float, float]:
    """Return ``(coef1, coef2, constant)`` with ``ast == coef1*var1 + coef2*var2 + constant``."""
    scope = _as_scope(bindings)
    with np.errstate(all="ignore"):
        return tuple(float(v) for v in _coefficients_2var(ast, var1, var2, scope))


def _coefficients_2var(ast: Node, var1: str, var2: str, scope: Scope):
    if isinstance(ast, NumberLiteral):
        return 0.0, 0.0, float(ast.value)
    if isinstance(ast, ConstantRef):
        return 0.0, 0.0, functions.CONSTANTS[ast.name]
    if isinstance(ast, VariableRef):
        if ast.name == var1:
            return 1.0, 0.0, 0.0
        if ast.name == var2:
            return 0.0, 1.0, 0.0
        return 0.0, 0.0, scope[ast.name]
    if isinstance(ast, UnaryOp):
        x, y, c = _coefficients_2var(ast.operand, var1, var2, scope)
        return -x, -y, -c
    if isinstance(ast, Call) or (isinstance(ast, BinaryOp) and ast.op == "^"):
        names = find_variables(ast)
        if var1 in names or var2 in names:
            raise NonLinearTerm("Non-linear term: unknown inside a power or function call")
        return 0.0, 0.0, evaluate(ast, scope)
    if isinstance(ast, BinaryOp):
        lx, ly, lc = _coefficients_2var(ast.left, var1, var2, scope)
        rx, ry, rc = _coefficients_2var(ast.right, var1, var2, scope)
        if ast.op == "+":
            return lx + rx, ly + ry, lc + rc
        if ast.op == "-":
            return lx - rx, ly - ry, lc - rc
        if ast.op == "*":
            if (lx != 0 or ly != 0) and (rx != 0 or ry != 0):
                raise NonLinearTerm("Non-linear term in multiplication (product of variables)")
            if lx == 0 and ly == 0:
                return lc * rx, lc * ry, lc * rc
            return rc * lx, rc * ly, lc * rc
        if rx != 0 or ry != 0:
            raise NonLinearTerm("Cannot divide by an expression containing a variable")
        return (functions.divide(lx, rc), functions.divide(ly, rc),
                functions.divide(lc, rc))
    raise MathExprError(f"Unknown AST node type: {type(ast).__name__}")


def solve_2x2_linear(first: Equation, second: Equation, var1: str, var2: str,
                     bindings=None) -> dict:
    """Cramer's rule on ``a1*x + b1*y = c1``, ``a2*x + b2*y = c2``."""
    scope = _as_scope(bindings)
    l1x, l1y, l1c = extract_2var_coefficients(first.left, var1, var2, scope)
    r1x, r1y, r1c = extract_2var_coefficients(first.right, var1, var2, scope)
    l2x, l2y, l2c = extract_2var_coefficients(second.left, var1, var2, scope)
    r2x, r2y, r2c = extract_2var_coefficients(second.right, var1, var2, scope)

    a1, b1, c1 = l1x - r1x, l1y - r1y, r1c - l1c
    a2, b2, c2 = l2x - r2x, l2y - r2y, r2c - l2c

    det = a1 * b2 - b1 * a2
    if abs(det) < ZERO_EPSILON:
        return {"error": SINGULAR_SYSTEM}

    det_x = c1 * b2 - b1 * c2
    det_y = a1 * c2 - c1 * a2
    return {var1: det_x / det, var2: det_y / det}


def _linear_in_all(equation: Equation, names) -> bool:
    return all(
        is_linear_in(side, name)
        for side in equation
        for name in names
    )


# ── Systems ──────────────────────────────────────────────────────────────

def solve_system(equations, bindings: Mapping | None = None, options=None) -> dict:
    """
    Solve a list of equations.

    One equation delegates to ``solve_equation``; two linear equations in
    two unknowns are solved directly; otherwise each equation is solved in
    turn against the values found so far until no further progress is made.

    ``solve_for`` in *options* only applies to the single-equation case; a
    system solves for all of its unknowns, so it is ignored there.
    """
    if isinstance(equations, str):
        return solve_equation(equations, bindings, options)
    equations = list(equations)
    if not equations:
        raise NotAnEquation()
    if len(equations) == 1:
        return solve_equation(equations[0], bindings, options)

    bindings = dict(bindings or {})
    opts = SolveOptions.from_mapping(options)
    if opts.solve_for is not None:
        logger.debug("solve_for=%r ignored for a system of %d equations",
                     opts.solve_for, len(equations))
        opts = opts.without_target()
    parsed = [parse_equation(text) for text in equations]

    unknowns = []
    for equation in parsed:
        for name in equation_unknowns(equation, bindings):
            if name not in unknowns:
                unknowns.append(name)

    if len(parsed) == 2 and len(unknowns) == 2 \
            and all(_linear_in_all(eq, unknowns) for eq in parsed):
        logger.debug("solving 2x2 linear system in %s by Cramer's rule", unknowns)
        try:
            return solve_2x2_linear(parsed[0], parsed[1], unknowns[0], unknowns[1], bindings)
        except NonLinearTerm as e:
            logger.debug("Cramer's rule not applicable: %s", e)

    logger.debug("solving %d equations by iterative substitution", len(parsed))
    known = dict(bindings)
    solutions = {}
    warnings = []
    pending = list(range(len(equations)))
    progress = True
    while pending and progress:
        progress = False
        for index in list(pending):
            try:
                result = solve_equation(equations[index], known, opts)
            except MathExprError as e:
                logger.debug("equation %d deferred: %s", index + 1, e)
                continue
            if "error" in result:
                return result
            pending.remove(index)
            if "satisfied" in result:
                continue
            if "warning" in result:
                warnings.append(result.pop("warning"))
            solutions.update(result)
            known.update(result)
            progress = True

    if not solutions:
        raise SystemUnsolvable()
    if warnings:
        solutions["warning"] = warnings[0]
    return solutions
