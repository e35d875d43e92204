"""Numerical (approximate) root finding with NumPy.

Used by the equation solver when an equation is not linear in its
unknown: Newton-Raphson on ``f(x) = left(x) - right(x)`` with a
central-difference derivative.
"""

import logging
from collections.abc import Mapping

import numpy as np

from mathexpr.compiler import compile
from mathexpr.config import SolveOptions
from mathexpr.evaluator import Scope
from mathexpr.nodes import Node

logger = logging.getLogger(__name__)

DERIVATIVE_STEP = 1e-8
FLAT_DERIVATIVE = 1e-15
NOT_CONVERGED = "may not have converged"


def _residual(left: Node, right: Node, var: str, bindings: Mapping, codegen: bool):
    """Return ``f(x) = left - right`` with *var* bound to ``x``."""
    left_fn = compile(left, codegen=codegen)
    right_fn = compile(right, codegen=codegen)

    def f(x):
        scope = Scope({**bindings, var: float(x)})
        return np.float64(left_fn(scope)) - np.float64(right_fn(scope))

    return f


def newton_raphson(f, x0: float, tolerance: float = 1e-10,
                   max_iterations: int = 100) -> tuple[float, bool]:
    """Iterate from *x0* until ``|f(x)| < tolerance``.

    Returns ``(x, converged)``.  A derivative flatter than 1e-15 nudges
    the iterate by +1 instead of dividing.
    """
    h = np.float64(DERIVATIVE_STEP)
    x = np.float64(x0)
    with np.errstate(all="ignore"):
        for _ in range(max_iterations):
            fx = f(x)
            if abs(fx) < tolerance:
                return float(x), True
            dfx = (f(x + h) - f(x - h)) / (2 * h)
            if abs(dfx) < FLAT_DERIVATIVE:
                x = x + 1
            else:
                x = x - fx / dfx
    return float(x), False


def solve_numeric(left: Node, right: Node, var: str, bindings: Mapping | None = None,
                  options: SolveOptions | None = None) -> dict:
    """Solve ``left = right`` for *var* numerically.

    Returns ``{var: value}``, plus a ``warning`` key when the iteration
    cap was reached before the residual fell under the tolerance.
    """
    options = options or SolveOptions.from_mapping()
    f = _residual(left, right, var, bindings or {}, options.codegen)
    x, converged = newton_raphson(
        f, options.initial_guess, options.tolerance, options.max_iterations,
    )
    solution = {var: x}
    if not converged:
        logger.warning("Newton-Raphson for %s stopped after %d iterations at %r",
                       var, options.max_iterations, x)
        solution["warning"] = NOT_CONVERGED
    return solution
