"""Compile an AST into a reusable callable.

Two strategies sit behind one interface:

- ``Interpreted`` walks the tree with the evaluator on every call;
- ``Compiled`` runs Python source generated from the tree.

``compile`` validates the tree, tries code generation and falls back to
the interpreter when generation is disabled or fails.  Both strategies
produce the same floats and raise the same errors for valid trees.
"""

import builtins
import logging
import re
from collections import namedtuple
from collections.abc import Mapping

import numpy as np

from mathexpr import functions
from mathexpr.errors import ArgumentCountError, InvalidAST
from mathexpr.evaluator import Scope, evaluate
from mathexpr.lexer import Token
from mathexpr.nodes import (
    BinaryOp, Call, ConstantRef, Node, NumberLiteral, UnaryOp, VariableRef, is_node,
)
from mathexpr.parser import PRECEDENCE, parse, parse_expression
from mathexpr.symbolic import to_string

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ── Validation ───────────────────────────────────────────────────────────

def validate(ast) -> None:
    """Reject anything outside the known node types, operators, functions
    and constants.  Raises ``InvalidAST``."""
    if isinstance(ast, NumberLiteral):
        if isinstance(ast.value, bool) or not isinstance(ast.value, (int, float)):
            raise InvalidAST("number node without a numeric value")
    elif isinstance(ast, ConstantRef):
        if ast.name not in functions.CONSTANT_NAMES:
            raise InvalidAST(f"unknown constant: {ast.name!r}")
    elif isinstance(ast, VariableRef):
        if not isinstance(ast.name, str) or not _IDENTIFIER_RE.match(ast.name):
            raise InvalidAST(f"invalid variable name: {ast.name!r}")
    elif isinstance(ast, BinaryOp):
        if ast.op not in PRECEDENCE:
            raise InvalidAST(f"invalid operator: {ast.op!r}")
        validate(ast.left)
        validate(ast.right)
    elif isinstance(ast, UnaryOp):
        if ast.op != "-":
            raise InvalidAST(f"invalid unary operator: {ast.op!r}")
        validate(ast.operand)
    elif isinstance(ast, Call):
        if ast.name not in functions.FUNCTION_NAMES:
            raise InvalidAST(f"unknown function: {ast.name!r}")
        if not isinstance(ast.args, (tuple, list)):
            raise InvalidAST(f"call to {ast.name} without an argument list")
        try:
            functions.check_arity(ast.name, len(ast.args))
        except ArgumentCountError as e:
            raise InvalidAST(str(e)) from e
        for arg in ast.args:
            validate(arg)
    else:
        raise InvalidAST(f"unknown node type: {type(ast).__name__}")


# ── Source generation ────────────────────────────────────────────────────

# Functions that map straight onto a NumPy ufunc.
_PRIMITIVES = {
    "sin": "_np.sin", "cos": "_np.cos", "tan": "_np.tan",
    "asin": "_np.arcsin", "acos": "_np.arccos", "atan": "_np.arctan",
    "atan2": "_np.arctan2",
    "exp": "_np.exp", "log": "_np.log", "ln": "_np.log", "log10": "_np.log10",
    "sqrt": "_np.sqrt", "abs": "_np.fabs",
    "floor": "_np.floor", "ceil": "_np.ceil",
    "rad": "_np.radians", "deg": "_np.degrees",
}

# Everything else is emitted as a helper definition in the generated module.
_HELPERS = {
    "sinh": "def _sinh(x):\n    return (_np.exp(x) - _np.exp(-x)) / 2\n",
    "cosh": "def _cosh(x):\n    return (_np.exp(x) + _np.exp(-x)) / 2\n",
    "tanh": "def _tanh(x):\n    return (_np.exp(2 * x) - 1) / (_np.exp(2 * x) + 1)\n",
    "asinh": "def _asinh(x):\n    return _np.log(x + _np.sqrt(x * x + 1))\n",
    "acosh": "def _acosh(x):\n    return _np.log(x + _np.sqrt(x * x - 1))\n",
    "atanh": "def _atanh(x):\n    return 0.5 * _np.log(_np.divide(1 + x, 1 - x))\n",
    "log2": "def _log2(x):\n    return _np.log(x) / _np.log(2.0)\n",
    "cbrt": (
        "def _cbrt(x):\n"
        "    return _np.power(x, 1.0 / 3.0) if x >= 0 else -_np.power(-x, 1.0 / 3.0)\n"
    ),
    "sign": "def _sign(x):\n    return 1.0 if x > 0 else (-1.0 if x < 0 else 0.0)\n",
    "round": "def _round(x):\n    return _np.floor(x + 0.5)\n",
    "trunc": "def _trunc(x):\n    return _np.floor(x) if x >= 0 else _np.ceil(x)\n",
    "clamp": "def _clamp(x, lo, hi):\n    return min(max(x, lo), hi)\n",
    "lerp": "def _lerp(a, b, t):\n    return a + (b - a) * t\n",
    "pow": "def _pow(x, y):\n    return _np.power(x, y)\n",
    "min": "def _min(*args):\n    return min(args)\n",
    "max": "def _max(*args):\n    return max(args)\n",
}


def _number_code(value: float) -> str:
    value = float(value)
    if value != value:
        return "_NAN"
    if value == float("inf"):
        return "_INF"
    if value == float("-inf"):
        return "(-_INF)"
    if value < 0:
        return f"({value!r})"
    return repr(value)


def _expr_code(ast: Node, used: set) -> str:
    if isinstance(ast, NumberLiteral):
        return _number_code(ast.value)
    if isinstance(ast, ConstantRef):
        return _number_code(functions.CONSTANTS[ast.name])
    if isinstance(ast, VariableRef):
        return f"_v[{ast.name!r}]"
    if isinstance(ast, BinaryOp):
        left = _expr_code(ast.left, used)
        right = _expr_code(ast.right, used)
        if ast.op == "/":
            return f"_divide({left}, {right})"
        if ast.op == "^":
            return f"_power({left}, {right})"
        return f"({left} {ast.op} {right})"
    if isinstance(ast, UnaryOp):
        return f"(-{_expr_code(ast.operand, used)})"
    if isinstance(ast, Call):
        args = ", ".join(_expr_code(arg, used) for arg in ast.args)
        if ast.name in _PRIMITIVES:
            return f"{_PRIMITIVES[ast.name]}({args})"
        used.add(ast.name)
        return f"_{ast.name}({args})"
    raise InvalidAST(f"unknown node type: {type(ast).__name__}")


def generate_source(ast: Node) -> str:
    """Return Python source defining ``_compiled(_v)`` for *ast*."""
    used = set()
    body = _expr_code(ast, used)
    helpers = "".join(_HELPERS[name] for name in sorted(used))
    return f"{helpers}def _compiled(_v):\n    return {body}\n"


def _namespace() -> dict:
    return {
        "__builtins__": {"min": builtins.min, "max": builtins.max},
        "_np": np,
        "_divide": functions.divide,
        "_power": functions.power,
        "_INF": float("inf"),
        "_NAN": float("nan"),
    }


CodegenResult = namedtuple("CodegenResult", ["function", "source", "error"])


def _try_codegen(ast: Node) -> CodegenResult:
    """Generate and load code for *ast*; failures come back as data."""
    source = None
    try:
        source = generate_source(ast)
        code = builtins.compile(source, "<mathexpr>", "exec")
        namespace = _namespace()
        exec(code, namespace)
        return CodegenResult(namespace["_compiled"], source, None)
    except Exception as e:  # any failure here means "use the interpreter"
        return CodegenResult(None, source, e)


# ── Strategies ───────────────────────────────────────────────────────────

def _as_scope(bindings) -> Scope:
    if bindings is None:
        return Scope({})
    if isinstance(bindings, Scope):
        return bindings
    if isinstance(bindings, (int, float, np.number)) and not isinstance(bindings, bool):
        return Scope({"x": bindings})
    if isinstance(bindings, Mapping):
        return Scope(bindings)
    raise TypeError(f"Expected a bindings mapping or a number, got {type(bindings).__name__}")


class CompiledExpression:
    """Callable ``f(bindings) -> float``; *bindings* may be a number for ``x``."""

    strategy = "abstract"

    def __init__(self, ast: Node):
        self.ast = ast

    def __call__(self, bindings=None) -> float:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {to_string(self.ast)!r}>"


class Interpreted(CompiledExpression):
    strategy = "interpreted"

    def __call__(self, bindings=None) -> float:
        return evaluate(self.ast, _as_scope(bindings))


class Compiled(CompiledExpression):
    strategy = "compiled"

    def __init__(self, ast: Node, function, source: str):
        super().__init__(ast)
        self._function = function
        self.source = source

    def __call__(self, bindings=None) -> float:
        scope = _as_scope(bindings)
        with np.errstate(all="ignore"):
            return float(self._function(scope))


def _to_ast(expression) -> Node:
    if isinstance(expression, str):
        return parse_expression(expression)
    if is_node(expression):
        return expression
    if isinstance(expression, (list, tuple)) and all(isinstance(t, Token) for t in expression):
        return parse(list(expression))
    raise InvalidAST(f"cannot compile {type(expression).__name__}; "
                     f"expected a string, a token list or an AST")


def compile(expression, codegen: bool = True) -> CompiledExpression:
    """Compile an expression string, token list or AST into a callable.

    The tree is validated first.  With ``codegen=False``, or when code
    generation fails, an ``Interpreted`` callable is returned instead of
    a ``Compiled`` one; callers see no difference in results.
    """
    ast = _to_ast(expression)
    validate(ast)
    if not codegen:
        return Interpreted(ast)
    result = _try_codegen(ast)
    if result.function is None:
        logger.debug("codegen unavailable, using interpreter: %s", result.error)
        return Interpreted(ast)
    return Compiled(ast, result.function, result.source)
