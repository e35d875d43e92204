"""Tokenizer for mathexpr expressions.

Turns text such as ``"sin(x) + 2.5e-3 * pi"`` into a flat list of
``Token`` values.  Identifiers are classified against the builtin
function and constant tables; anything else is a variable.
"""

from dataclasses import dataclass
from enum import Enum

from mathexpr.errors import InvalidNumber, UnexpectedCharacter
from mathexpr.functions import CONSTANT_NAMES, FUNCTION_NAMES

OPERATORS = "+-*/^="
_DIGITS = "0123456789"
_IDENT_START = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_"
_IDENT_CHARS = _IDENT_START + _DIGITS


class TokenType(Enum):
    NUMBER = "number"
    OPERATOR = "operator"
    FUNCTION = "function"
    LPAREN = "lparen"
    RPAREN = "rparen"
    COMMA = "comma"
    VARIABLE = "variable"
    CONSTANT = "constant"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: object = None

    def __repr__(self) -> str:
        if self.value is None:
            return self.type.value
        return f"{self.type.value}({self.value!r})"


LPAREN = Token(TokenType.LPAREN)
RPAREN = Token(TokenType.RPAREN)
COMMA = Token(TokenType.COMMA)

_SINGLE = {"(": LPAREN, ")": RPAREN, ",": COMMA}


def _scan_number(text: str, start: int) -> tuple[float, int]:
    """Greedy numeric run: digits, one decimal point, optional exponent."""
    i = start
    n = len(text)
    has_decimal = False
    has_exponent = False
    while i < n:
        ch = text[i]
        if ch in _DIGITS:
            i += 1
        elif ch == "." and not has_decimal and not has_exponent:
            has_decimal = True
            i += 1
        elif ch in "eE" and not has_exponent and i > start:
            has_exponent = True
            i += 1
            if i < n and text[i] in "+-":
                i += 1
        else:
            break
    literal = text[start:i]
    try:
        return float(literal), i
    except ValueError:
        raise InvalidNumber(literal) from None


def tokenize(text: str) -> list[Token]:
    """Split *text* into tokens.

    Raises ``UnexpectedCharacter`` for anything outside the grammar and
    ``InvalidNumber`` when a numeric run (e.g. ``"1e"`` or ``"."``) does
    not parse as a float.
    """
    tokens = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
        elif ch in _DIGITS or ch == ".":
            value, i = _scan_number(text, i)
            tokens.append(Token(TokenType.NUMBER, value))
        elif ch in OPERATORS:
            tokens.append(Token(TokenType.OPERATOR, ch))
            i += 1
        elif ch in _SINGLE:
            tokens.append(_SINGLE[ch])
            i += 1
        elif ch in _IDENT_START:
            start = i
            while i < n and text[i] in _IDENT_CHARS:
                i += 1
            word = text[start:i]
            if word in FUNCTION_NAMES:
                tokens.append(Token(TokenType.FUNCTION, word))
            elif word in CONSTANT_NAMES:
                tokens.append(Token(TokenType.CONSTANT, word))
            else:
                tokens.append(Token(TokenType.VARIABLE, word))
        else:
            raise UnexpectedCharacter(ch, i)
    return tokens
