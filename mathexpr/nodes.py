"""AST node types.

Nodes are frozen dataclasses: created fresh by the parser, never mutated,
safe to share between compiled closures.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NumberLiteral:
    value: float


@dataclass(frozen=True)
class ConstantRef:
    name: str


@dataclass(frozen=True)
class VariableRef:
    name: str


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple


Node = Union[NumberLiteral, ConstantRef, VariableRef, BinaryOp, UnaryOp, Call]

NODE_TYPES = (NumberLiteral, ConstantRef, VariableRef, BinaryOp, UnaryOp, Call)


def is_node(obj) -> bool:
    return isinstance(obj, NODE_TYPES)
