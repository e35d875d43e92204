"""Tree-walking evaluator with lazy, memoized variable resolution.

A binding may be:

- a number,
- an expression string, parsed and evaluated on first use against the
  same bindings (so ``{"a": "b * 2", "b": 3}`` works),
- a pair ``(expression_or_callable, sub_bindings)`` evaluated in a fresh
  local scope built from *sub_bindings* only,
- a callable (e.g. a compiled expression), invoked with the current scope,
- an AST node.

Resolution happens through a ``Scope`` created for one evaluation call and
discarded afterwards; it is never shared between calls or threads.
"""

from collections.abc import Mapping

import numpy as np

from mathexpr import functions
from mathexpr.errors import (
    CircularReference, InvalidAST, UndefinedVariable, UnknownFunction,
)
from mathexpr.nodes import (
    BinaryOp, Call, ConstantRef, Node, NumberLiteral, UnaryOp, VariableRef, is_node,
)
from mathexpr.parser import parse_expression


class Scope(Mapping):
    """Read-only view over raw bindings that resolves each name once."""

    def __init__(self, bindings: Mapping | None = None):
        self._raw = bindings if bindings is not None else {}
        self._resolved = {}
        self._resolving = set()

    def __getitem__(self, name: str) -> float:
        if name in self._resolved:
            return self._resolved[name]
        if name not in self._raw:
            raise UndefinedVariable(name)
        if name in self._resolving:
            raise CircularReference(name)
        self._resolving.add(name)
        try:
            value = self._resolve(name, self._raw[name])
        finally:
            self._resolving.discard(name)
        self._resolved[name] = value
        return value

    def __contains__(self, name) -> bool:
        return name in self._raw

    def __iter__(self):
        return iter(self._raw)

    def __len__(self) -> int:
        return len(self._raw)

    def _resolve(self, name: str, raw) -> float:
        if isinstance(raw, (int, float, np.number)):
            return float(raw)
        if isinstance(raw, str):
            return float(_eval(parse_expression(raw), self))
        if is_node(raw):
            return float(_eval(raw, self))
        if isinstance(raw, (tuple, list)) and len(raw) == 2 and isinstance(raw[1], Mapping):
            expr, sub_bindings = raw
            local = Scope(sub_bindings)
            if callable(expr):
                return float(expr(local))
            if is_node(expr):
                return float(_eval(expr, local))
            return float(_eval(parse_expression(expr), local))
        if callable(raw):
            return float(raw(self))
        raise TypeError(
            f"Unsupported binding for '{name}': {type(raw).__name__}"
        )


def apply_binary(op: str, left, right):
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        return functions.divide(left, right)
    if op == "^":
        return functions.power(left, right)
    raise InvalidAST(f"unknown operator: {op!r}")


def _eval(node: Node, scope: Scope):
    if isinstance(node, NumberLiteral):
        return float(node.value)
    if isinstance(node, ConstantRef):
        if node.name not in functions.CONSTANTS:
            raise InvalidAST(f"unknown constant: {node.name!r}")
        return functions.CONSTANTS[node.name]
    if isinstance(node, VariableRef):
        return scope[node.name]
    if isinstance(node, BinaryOp):
        left = _eval(node.left, scope)
        right = _eval(node.right, scope)
        return apply_binary(node.op, left, right)
    if isinstance(node, UnaryOp):
        if node.op != "-":
            raise InvalidAST(f"unknown unary operator: {node.op!r}")
        return -_eval(node.operand, scope)
    if isinstance(node, Call):
        if node.name not in functions.FUNCTIONS:
            raise UnknownFunction(node.name)
        args = [_eval(arg, scope) for arg in node.args]
        return functions.call(node.name, args)
    raise InvalidAST(f"unknown node type: {type(node).__name__}")


def evaluate(ast: Node, bindings: Mapping | None = None) -> float:
    """Evaluate *ast* against *bindings* and return a float.

    Raises ``UndefinedVariable`` for unbound names, ``UnknownFunction``
    for calls outside the builtin table and ``CircularReference`` when
    expression-valued bindings refer back to themselves.
    """
    scope = bindings if isinstance(bindings, Scope) else Scope(bindings)
    with np.errstate(all="ignore"):
        return float(_eval(ast, scope))


def evaluate_expression(text: str, bindings: Mapping | None = None) -> float:
    """Parse *text* and evaluate it in one step."""
    return evaluate(parse_expression(text), bindings)
