"""Exception hierarchy for mathexpr.

Every error derives from ``ValueError`` so callers can keep the familiar
``except ValueError`` shape; the subclasses let tests and the HTTP layer
tell the failure kinds apart.
"""


class MathExprError(ValueError):
    """Base class for every lexing, parsing, evaluation and solving error."""


# ── Lexer ────────────────────────────────────────────────────────────────

class UnexpectedCharacter(MathExprError):
    def __init__(self, char: str, position: int):
        self.char = char
        self.position = position
        super().__init__(f"Unexpected character '{char}' at position {position}")


class InvalidNumber(MathExprError):
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Invalid number '{text}'")


# ── Parser ───────────────────────────────────────────────────────────────

class ParseError(MathExprError):
    """Malformed token sequence."""


class UnmatchedParenthesis(ParseError):
    def __init__(self, message: str = "Unmatched parenthesis"):
        super().__init__(message)


# ── Evaluation ───────────────────────────────────────────────────────────

class UndefinedVariable(MathExprError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined variable: {name}")


class UnknownFunction(MathExprError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name}")


class ArgumentCountError(MathExprError):
    def __init__(self, name: str, expected: str, given: int):
        self.name = name
        self.given = given
        super().__init__(
            f"Function {name}() takes {expected} argument(s), got {given}"
        )


class CircularReference(MathExprError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Circular reference while resolving variable: {name}")


class InvalidAST(MathExprError):
    def __init__(self, reason: str):
        super().__init__(f"Invalid AST: {reason}")


# ── Equation solving ─────────────────────────────────────────────────────

class NotAnEquation(MathExprError):
    def __init__(self):
        super().__init__("Equation must contain '='. Example: 2*x + 3 = 11")


class EmptySide(MathExprError):
    def __init__(self):
        super().__init__("Both sides of the equation must have expressions.")


class UnknownSolveTarget(MathExprError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Variable '{name}' not found in equation")


class AmbiguousUnknowns(MathExprError):
    def __init__(self, names):
        self.names = list(names)
        super().__init__(
            f"Equation has multiple unknowns: {', '.join(self.names)}. "
            f"Specify solve_for or provide values for all but one."
        )


class NonLinearTerm(MathExprError):
    """A product of unknowns or division by an unknown during coefficient extraction."""


class SystemUnsolvable(MathExprError):
    def __init__(self):
        super().__init__("System could not be solved with available methods")
