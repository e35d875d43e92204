"""mathexpr: tokenize, parse, evaluate, compile and solve math expressions.

    >>> import mathexpr
    >>> mathexpr.solve("2 + 3 * 4")
    14.0
    >>> mathexpr.solve("2*x + 3 = 11")
    {'x': 4.0}
    >>> mathexpr.solve(["x + y = 10", "x - y = 2"])
    {'x': 6.0, 'y': 4.0}
"""

from mathexpr.compiler import Compiled, CompiledExpression, Interpreted, compile, validate
from mathexpr.config import DEFAULT_OPTIONS, SolveOptions, load_settings
from mathexpr.engine import (
    find_unknowns, parse_equation, solve_equation, solve_system,
)
from mathexpr.errors import MathExprError
from mathexpr.evaluator import evaluate, evaluate_expression
from mathexpr.lexer import Token, TokenType, tokenize
from mathexpr.parser import parse, parse_expression
from mathexpr.steps import Step, evaluate_steps
from mathexpr.symbolic import find_variables, substitute, to_sympy, to_string

__all__ = [
    "Compiled", "CompiledExpression", "DEFAULT_OPTIONS", "Interpreted",
    "MathExprError", "SolveOptions", "Step", "Token", "TokenType",
    "compile", "evaluate", "evaluate_expression", "evaluate_steps",
    "find_unknowns", "find_variables", "load_settings", "parse",
    "parse_equation", "parse_expression", "solve", "solve_equation",
    "solve_system", "substitute", "to_string", "to_sympy", "tokenize",
    "validate",
]


def solve(problem, bindings: dict | None = None, options: dict | None = None):
    """
    Evaluate an expression, solve an equation, or solve a list of equations.

    - a list of strings is solved as a system (``solve_system``);
    - a string containing ``=`` is solved as one equation (``solve_equation``);
    - any other string is evaluated and its value returned, or its step
      list when ``options["show_steps"]`` is set.

    ``options["variables"]`` is merged under *bindings*.
    """
    options = dict(options or {})
    merged = {**options.pop("variables", {}), **(bindings or {})}

    if isinstance(problem, (list, tuple)):
        return solve_system(problem, merged, options)
    if "=" in problem:
        return solve_equation(problem, merged, options)

    if options.get("show_steps"):
        return evaluate_steps(
            problem,
            merged,
            significant_digits=options.get("significant_digits"),
            combine_arithmetic=bool(options.get("combine_arithmetic")),
            show_intermediates=bool(options.get("show_intermediates")),
        )
    opts = SolveOptions.from_mapping(options)
    return compile(problem, codegen=opts.codegen)(merged)
