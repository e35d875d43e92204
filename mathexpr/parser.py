"""Shunting-yard parser: token list -> AST.

Operator precedence::

    + -   1   left
    * /   2   left
    unary -   binds tighter than * / but looser than ^
    ^     3   right

Unary minus becomes a ``UnaryOp`` node (unary plus is dropped), so
``-2^2`` is ``-(2^2)`` and ``2*-3`` is ``2*(-3)``.
"""

from mathexpr.errors import ParseError, UnmatchedParenthesis
from mathexpr.functions import check_arity
from mathexpr.latex import preprocess
from mathexpr.lexer import Token, TokenType, tokenize
from mathexpr.nodes import (
    BinaryOp, Call, ConstantRef, Node, NumberLiteral, UnaryOp, VariableRef,
)

PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 3}
RIGHT_ASSOCIATIVE = frozenset({"^"})
UNARY_PRECEDENCE = 2.5


class _Pending:
    """Operator-stack entry: binary/unary operator, '(' or function name."""

    __slots__ = ("kind", "value", "args")

    def __init__(self, kind: str, value=None):
        self.kind = kind
        self.value = value
        self.args = 1

    def precedence(self) -> float:
        if self.kind == "unary":
            return UNARY_PRECEDENCE
        return PRECEDENCE[self.value]


def _pop_operand(output: list, op: str) -> Node:
    if not output:
        raise ParseError(f"Missing operand for '{op}'")
    return output.pop()


def _fold(entry: _Pending, output: list) -> None:
    if entry.kind == "unary":
        output.append(UnaryOp(entry.value, _pop_operand(output, entry.value)))
    else:
        right = _pop_operand(output, entry.value)
        left = _pop_operand(output, entry.value)
        output.append(BinaryOp(entry.value, left, right))


def _fold_to_lparen(stack: list, output: list) -> None:
    while stack and stack[-1].kind != "lparen":
        _fold(stack.pop(), output)


def _describe(token: Token) -> str:
    return str(token.value) if token.value is not None else token.type.value


def parse(tokens: list[Token]) -> Node:
    """Build an AST from *tokens*.

    Raises ``ParseError`` for malformed sequences (missing operands,
    stray commas, ``=`` inside an expression) and ``UnmatchedParenthesis``
    when parentheses do not balance.
    """
    if not tokens:
        raise ParseError("Empty expression")

    output = []
    stack = []
    expect_operand = True
    prev = None

    for index, token in enumerate(tokens):
        kind = token.type

        if kind in (TokenType.NUMBER, TokenType.CONSTANT, TokenType.VARIABLE):
            if not expect_operand:
                raise ParseError(f"Missing operator before '{_describe(token)}'")
            if kind is TokenType.NUMBER:
                output.append(NumberLiteral(float(token.value)))
            elif kind is TokenType.CONSTANT:
                output.append(ConstantRef(token.value))
            else:
                output.append(VariableRef(token.value))
            expect_operand = False

        elif kind is TokenType.FUNCTION:
            if not expect_operand:
                raise ParseError(f"Missing operator before '{token.value}'")
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if following is None or following.type is not TokenType.LPAREN:
                raise ParseError(f"Function '{token.value}' must be followed by '('")
            stack.append(_Pending("function", token.value))

        elif kind is TokenType.OPERATOR:
            op = token.value
            if op == "=":
                raise ParseError("'=' is only allowed between the two sides of an equation")
            if expect_operand:
                if op == "-":
                    stack.append(_Pending("unary", "-"))
                elif op != "+":
                    raise ParseError(f"Missing operand before '{op}'")
                prev = token
                continue
            prec = PRECEDENCE[op]
            right_assoc = op in RIGHT_ASSOCIATIVE
            while stack and stack[-1].kind in ("binary", "unary"):
                top_prec = stack[-1].precedence()
                if top_prec > prec or (top_prec == prec and not right_assoc):
                    _fold(stack.pop(), output)
                else:
                    break
            stack.append(_Pending("binary", op))
            expect_operand = True

        elif kind is TokenType.LPAREN:
            if not expect_operand:
                raise ParseError("Missing operator before '('")
            stack.append(_Pending("lparen"))

        elif kind is TokenType.COMMA:
            if expect_operand:
                raise ParseError("Missing argument before ','")
            _fold_to_lparen(stack, output)
            if len(stack) < 2 or stack[-2].kind != "function":
                raise ParseError("',' is only allowed between function arguments")
            stack[-2].args += 1
            expect_operand = True

        elif kind is TokenType.RPAREN:
            empty_call = (
                prev is not None and prev.type is TokenType.LPAREN
                and len(stack) >= 2 and stack[-2].kind == "function"
            )
            if expect_operand and not empty_call:
                raise ParseError("Missing operand before ')'")
            _fold_to_lparen(stack, output)
            if not stack:
                raise UnmatchedParenthesis("Unmatched ')'")
            stack.pop()
            if stack and stack[-1].kind == "function":
                func = stack.pop()
                count = 0 if empty_call else func.args
                check_arity(func.value, count)
                if len(output) < count:
                    raise ParseError(f"Missing arguments for '{func.value}'")
                args = tuple(output[len(output) - count:])
                del output[len(output) - count:]
                output.append(Call(func.value, args))
            expect_operand = False

        prev = token

    if expect_operand:
        raise ParseError("Expression ends with an operator")

    while stack:
        entry = stack.pop()
        if entry.kind == "lparen":
            raise UnmatchedParenthesis("Unmatched '('")
        _fold(entry, output)

    if len(output) != 1:
        raise ParseError("Malformed expression")
    return output[0]


def parse_expression(text: str) -> Node:
    """Tokenize and parse *text*, rewriting markup notation first if present."""
    return parse(tokenize(preprocess(text)))
