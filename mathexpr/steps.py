"""Step-by-step evaluation trail.

Walks the AST like the evaluator but records one ``Step`` per arithmetic
operation and function call, bracketed by an ``initial`` and a ``result``
step, so a front end can show how a value was reached.
"""

from dataclasses import dataclass, field

import numpy as np

from mathexpr import functions
from mathexpr.errors import InvalidAST, UnknownFunction
from mathexpr.evaluator import Scope, apply_binary
from mathexpr.nodes import (
    BinaryOp, Call, ConstantRef, Node, NumberLiteral, UnaryOp, VariableRef,
)
from mathexpr.parser import parse_expression
from mathexpr.symbolic import to_string

_DISPLAY_SYMBOLS = {"*": "×", "/": "÷"}


@dataclass
class Step:
    operation: str          # "initial", "binop", "unary", "call" or "result"
    description: str
    operands: list = field(default_factory=list)
    result: float | None = None
    precision: int | None = None
    subexpression: str = ""

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "description": self.description,
            "operands": list(self.operands),
            "result": self.result,
            "precision": self.precision,
            "subexpression": self.subexpression,
        }


# ── Numeric formatting ──────────────────────────────────────────────────

def _fmt_num(value: float, max_decimals: int = 10) -> str:
    """Format a float into a clean decimal string.

    - Removes trailing zeros after the decimal point.
    - Uses up to *max_decimals* digits of precision.
    - Returns integers without a decimal point (e.g. ``7`` not ``7.0``).
    """
    if value != value:
        return "nan"
    if value in (float("inf"), float("-inf")):
        return "inf" if value > 0 else "-inf"
    if value == int(value):
        return str(int(value))
    return f"{value:.{max_decimals}f}".rstrip("0").rstrip(".")


def format_number(value: float, significant_digits: int | None = None) -> str:
    """Fixed decimals when *significant_digits* is given, else ``_fmt_num``."""
    if significant_digits is not None:
        return f"{value:.{significant_digits}f}"
    return _fmt_num(value)


# ── Traced evaluation ───────────────────────────────────────────────────

class _Tracer:
    def __init__(self, scope: Scope, significant_digits, combine_arithmetic, show_intermediates):
        self.scope = scope
        self.precision = significant_digits
        self.record_arithmetic = not combine_arithmetic or show_intermediates
        self.steps = []

    def fmt(self, value) -> str:
        return format_number(value, self.precision)

    def walk(self, node: Node) -> float:
        if isinstance(node, NumberLiteral):
            return float(node.value)
        if isinstance(node, ConstantRef):
            return functions.CONSTANTS[node.name]
        if isinstance(node, VariableRef):
            return self.scope[node.name]
        if isinstance(node, BinaryOp):
            left = self.walk(node.left)
            right = self.walk(node.right)
            result = float(apply_binary(node.op, left, right))
            if self.record_arithmetic:
                symbol = _DISPLAY_SYMBOLS.get(node.op, node.op)
                self.steps.append(Step(
                    operation="binop",
                    description=f"{self.fmt(left)} {symbol} {self.fmt(right)}",
                    operands=[left, right],
                    result=result,
                    precision=self.precision,
                    subexpression=f"{self.fmt(left)} {node.op} {self.fmt(right)}",
                ))
            return result
        if isinstance(node, UnaryOp):
            operand = self.walk(node.operand)
            result = -operand
            if self.record_arithmetic:
                shown = self.fmt(operand)
                text = f"-({shown})" if operand < 0 else f"-{shown}"
                self.steps.append(Step(
                    operation="unary",
                    description=text,
                    operands=[operand],
                    result=result,
                    precision=self.precision,
                    subexpression=text,
                ))
            return result
        if isinstance(node, Call):
            if node.name not in functions.FUNCTIONS:
                raise UnknownFunction(node.name)
            args = [self.walk(arg) for arg in node.args]
            result = float(functions.call(node.name, args))
            text = f"{node.name}({', '.join(self.fmt(a) for a in args)})"
            self.steps.append(Step(
                operation="call",
                description=text,
                operands=args,
                result=result,
                precision=self.precision,
                subexpression=text,
            ))
            return result
        raise InvalidAST(f"unknown node type: {type(node).__name__}")


def evaluate_steps(expression, bindings=None, significant_digits: int | None = None,
                   combine_arithmetic: bool = False,
                   show_intermediates: bool = False) -> list[Step]:
    """Evaluate *expression* (text or AST) and return the recorded steps.

    The list always starts with an ``initial`` step carrying the input
    and ends with a ``result`` step carrying the final value.
    """
    if isinstance(expression, str):
        source = expression
        ast = parse_expression(expression)
    else:
        ast = expression
        source = to_string(ast)

    scope = bindings if isinstance(bindings, Scope) else Scope(bindings)
    tracer = _Tracer(scope, significant_digits, combine_arithmetic, show_intermediates)
    tracer.steps.append(Step(
        operation="initial",
        description="Initial expression",
        precision=significant_digits,
        subexpression=source,
    ))
    with np.errstate(all="ignore"):
        result = tracer.walk(ast)
    tracer.steps.append(Step(
        operation="result",
        description="Final result",
        result=result,
        precision=significant_digits,
        subexpression=format_number(result, significant_digits),
    ))
    return tracer.steps
