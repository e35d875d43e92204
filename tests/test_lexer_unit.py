"""Tests for the tokenizer."""

import pytest

from mathexpr.errors import InvalidNumber, UnexpectedCharacter
from mathexpr.lexer import Token, TokenType, tokenize


def _num(value):
    return Token(TokenType.NUMBER, value)


def _op(symbol):
    return Token(TokenType.OPERATOR, symbol)


def test_arithmetic_tokens() -> None:
    assert tokenize("2+3*4") == [_num(2), _op("+"), _num(3), _op("*"), _num(4)]


def test_whitespace_is_skipped() -> None:
    assert tokenize("  2 \t+\n3 ") == tokenize("2+3")


def test_identifiers_are_classified() -> None:
    tokens = tokenize("sin(pi) + x_1, e2")
    assert [t.type for t in tokens] == [
        TokenType.FUNCTION, TokenType.LPAREN, TokenType.CONSTANT, TokenType.RPAREN,
        TokenType.OPERATOR, TokenType.VARIABLE, TokenType.COMMA, TokenType.VARIABLE,
    ]
    assert tokens[0].value == "sin"
    assert tokens[2].value == "pi"
    assert tokens[5].value == "x_1"
    assert tokens[7].value == "e2"


def test_all_operators_and_equals() -> None:
    assert [t.value for t in tokenize("+-*/^=")] == list("+-*/^=")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("42", 42.0),
        ("2.5", 2.5),
        (".5", 0.5),
        ("3.", 3.0),
        ("2.5e-3", 0.0025),
        ("1E+2", 100.0),
        ("6e2", 600.0),
    ],
)
def test_number_literals(text: str, expected: float) -> None:
    tokens = tokenize(text)
    assert len(tokens) == 1
    assert tokens[0] == _num(expected)


@pytest.mark.parametrize("text", ["1e", "2e+", "."])
def test_invalid_numbers(text: str) -> None:
    with pytest.raises(InvalidNumber):
        tokenize(text)


def test_unexpected_character_reports_position() -> None:
    with pytest.raises(UnexpectedCharacter, match="position 2") as excinfo:
        tokenize("2 $ 3")
    assert excinfo.value.char == "$"
    assert excinfo.value.position == 2


def test_lex_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        tokenize("2 # 3")


def test_token_repr() -> None:
    assert repr(_num(2.0)) == "number(2.0)"
    assert repr(Token(TokenType.LPAREN)) == "lparen"
