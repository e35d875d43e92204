"""Symbolic helpers over the AST: variable discovery, substitution,
unparsing and conversion to SymPy.

``substitute`` replaces variables structurally, without evaluating
anything, so ``substitute(parse_expression("x + 1"), {"x": "y * 2"})``
gives the tree for ``y * 2 + 1``.
"""

import math

import sympy

from mathexpr.nodes import (
    BinaryOp, Call, ConstantRef, Node, NumberLiteral, UnaryOp, VariableRef, is_node,
)
from mathexpr.parser import PRECEDENCE, RIGHT_ASSOCIATIVE, UNARY_PRECEDENCE, parse_expression


def find_variables(ast: Node) -> list[str]:
    """Return the variable names referenced in *ast*, in first-seen order."""
    seen = {}

    def _walk(node):
        if isinstance(node, VariableRef):
            seen.setdefault(node.name, None)
        elif isinstance(node, BinaryOp):
            _walk(node.left)
            _walk(node.right)
        elif isinstance(node, UnaryOp):
            _walk(node.operand)
        elif isinstance(node, Call):
            for arg in node.args:
                _walk(arg)

    _walk(ast)
    return list(seen)


def contains_variable(ast: Node, name: str) -> bool:
    return name in find_variables(ast)


# ── Substitution ─────────────────────────────────────────────────────────

def _replacement_node(name: str, replacement) -> Node:
    if isinstance(replacement, str):
        return parse_expression(replacement)
    if is_node(replacement):
        return substitute(replacement, {})
    if isinstance(replacement, (int, float)) and not isinstance(replacement, bool):
        return NumberLiteral(float(replacement))
    raise TypeError(
        f"Replacement for '{name}' must be a string, number or AST, "
        f"got {type(replacement).__name__}"
    )


def substitute(ast: Node, var_map: dict) -> Node:
    """Return a copy of *ast* with variables from *var_map* replaced.

    A replacement may be an expression string (parsed), a number (becomes
    a literal) or an AST (copied).  Unmatched variables are kept.
    """
    if isinstance(ast, VariableRef):
        if ast.name in var_map:
            return _replacement_node(ast.name, var_map[ast.name])
        return VariableRef(ast.name)
    if isinstance(ast, NumberLiteral):
        return NumberLiteral(ast.value)
    if isinstance(ast, ConstantRef):
        return ConstantRef(ast.name)
    if isinstance(ast, BinaryOp):
        return BinaryOp(ast.op, substitute(ast.left, var_map), substitute(ast.right, var_map))
    if isinstance(ast, UnaryOp):
        return UnaryOp(ast.op, substitute(ast.operand, var_map))
    if isinstance(ast, Call):
        return Call(ast.name, tuple(substitute(arg, var_map) for arg in ast.args))
    raise TypeError(f"substitute: unknown AST node type: {type(ast).__name__}")


# ── Unparsing ────────────────────────────────────────────────────────────

def format_number(value: float) -> str:
    """Render a literal so the tokenizer reads it back to the same float."""
    if value != value:
        return "nan"
    if value == float("inf"):
        return "inf"
    if value == float("-inf"):
        return "-inf"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    if float(value).is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


def _binding_power(node: Node):
    """Precedence of *node*'s top-level operator; None for atoms."""
    if isinstance(node, BinaryOp):
        return PRECEDENCE[node.op]
    if isinstance(node, UnaryOp):
        return UNARY_PRECEDENCE
    if isinstance(node, NumberLiteral) and format_number(node.value).startswith("-"):
        return UNARY_PRECEDENCE
    return None


def _wrap(text: str, needs_parens: bool) -> str:
    return f"({text})" if needs_parens else text


def to_string(ast: Node) -> str:
    """Unparse *ast* with the minimum parentheses needed to re-parse it."""
    if isinstance(ast, NumberLiteral):
        return format_number(ast.value)
    if isinstance(ast, (ConstantRef, VariableRef)):
        return ast.name
    if isinstance(ast, BinaryOp):
        prec = PRECEDENCE[ast.op]
        right_assoc = ast.op in RIGHT_ASSOCIATIVE
        left_power = _binding_power(ast.left)
        right_power = _binding_power(ast.right)
        left = _wrap(
            to_string(ast.left),
            left_power is not None
            and (left_power < prec or (left_power == prec and right_assoc)),
        )
        right = _wrap(
            to_string(ast.right),
            right_power is not None
            and (right_power < prec or (right_power == prec and not right_assoc)),
        )
        return f"{left} {ast.op} {right}"
    if isinstance(ast, UnaryOp):
        power = _binding_power(ast.operand)
        operand = _wrap(to_string(ast.operand), power is not None and power < UNARY_PRECEDENCE)
        return f"{ast.op}{operand}"
    if isinstance(ast, Call):
        return f"{ast.name}({', '.join(to_string(arg) for arg in ast.args)})"
    raise TypeError(f"to_string: unknown AST node type: {type(ast).__name__}")


# ── SymPy bridge ─────────────────────────────────────────────────────────

_SYMPY_CONSTANTS = {
    "pi": sympy.pi,
    "e": sympy.E,
    "inf": sympy.oo,
    "nan": sympy.nan,
}

_SYMPY_FUNCTIONS = {
    "sin": sympy.sin, "cos": sympy.cos, "tan": sympy.tan,
    "asin": sympy.asin, "acos": sympy.acos, "atan": sympy.atan,
    "atan2": sympy.atan2,
    "sinh": sympy.sinh, "cosh": sympy.cosh, "tanh": sympy.tanh,
    "asinh": sympy.asinh, "acosh": sympy.acosh, "atanh": sympy.atanh,
    "exp": sympy.exp, "log": sympy.log, "ln": sympy.log,
    "log10": lambda x: sympy.log(x, 10),
    "log2": lambda x: sympy.log(x, 2),
    "sqrt": sympy.sqrt,
    "cbrt": lambda x: sympy.real_root(x, 3),
    "pow": sympy.Pow,
    "abs": sympy.Abs, "sign": sympy.sign,
    "floor": sympy.floor, "ceil": sympy.ceiling,
    "round": lambda x: sympy.floor(x + sympy.Rational(1, 2)),
    "trunc": lambda x: sympy.sign(x) * sympy.floor(sympy.Abs(x)),
    "min": sympy.Min, "max": sympy.Max,
    "clamp": lambda x, lo, hi: sympy.Min(sympy.Max(x, lo), hi),
    "lerp": lambda a, b, t: a + (b - a) * t,
    "rad": lambda x: x * sympy.pi / 180,
    "deg": lambda x: x * 180 / sympy.pi,
}


def _sympy_number(value: float):
    if value != value:
        return sympy.nan
    if value in (float("inf"), float("-inf")):
        return sympy.oo if value > 0 else -sympy.oo
    if float(value).is_integer():
        return sympy.Integer(int(value))
    return sympy.Float(value)


def to_sympy(ast: Node):
    """Convert *ast* into an equivalent SymPy expression."""
    if isinstance(ast, NumberLiteral):
        return _sympy_number(ast.value)
    if isinstance(ast, ConstantRef):
        return _SYMPY_CONSTANTS[ast.name]
    if isinstance(ast, VariableRef):
        return sympy.Symbol(ast.name)
    if isinstance(ast, BinaryOp):
        left = to_sympy(ast.left)
        right = to_sympy(ast.right)
        if ast.op == "+":
            return left + right
        if ast.op == "-":
            return left - right
        if ast.op == "*":
            return left * right
        if ast.op == "/":
            return left / right
        return sympy.Pow(left, right)
    if isinstance(ast, UnaryOp):
        return -to_sympy(ast.operand)
    if isinstance(ast, Call):
        return _SYMPY_FUNCTIONS[ast.name](*(to_sympy(arg) for arg in ast.args))
    raise TypeError(f"to_sympy: unknown AST node type: {type(ast).__name__}")


def to_latex(ast: Node) -> str:
    """LaTeX rendering of *ast* via SymPy."""
    return sympy.latex(to_sympy(ast))
