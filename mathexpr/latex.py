"""Markup preprocessing: LaTeX-style and Unicode notation -> plain grammar.

This is a pure string rewrite applied before tokenizing, and only when
the input actually contains markup.  Nested braces inside ``\\frac`` or
``\\sqrt`` arguments are not supported.
"""

import re

_FUNCTIONS = (
    "sin", "cos", "tan", "asin", "acos", "atan",
    "sinh", "cosh", "tanh", "asinh", "acosh", "atanh",
    "log", "ln", "exp", "sqrt",
)

_GREEK = (
    "pi", "theta", "alpha", "beta", "gamma", "delta", "epsilon",
    "lambda", "mu", "sigma", "phi", "omega",
)

_UNICODE = {
    "\u221a": "sqrt",   # √
    "\u03c0": "(pi)",   # π
    "\u00d7": "*",      # ×
    "\u00b7": "*",      # ·
    "\u00f7": "/",      # ÷
}

_FRAC_RE = re.compile(r"\\frac\s*\{([^}]+)\}\s*\{([^}]+)\}")
_NTH_ROOT_RE = re.compile(r"\\sqrt\s*\[([^\]]+)\]\s*\{([^}]+)\}")
_SQRT_RE = re.compile(r"\\sqrt\s*\{([^}]+)\}")
_NAME_RE = re.compile(r"\\(" + "|".join(_FUNCTIONS + _GREEK) + r")(?![A-Za-z])")
_EXPONENT_RE = re.compile(r"\^\s*\{([^}]+)\}")
_SUBSCRIPT_RE = re.compile(r"([A-Za-z])_\s*\{([^}]+)\}")
_LEFT_RE = re.compile(r"\\left\s*\\?([(\[{])")
_RIGHT_RE = re.compile(r"\\right\s*\\?([)\]}])")
_OPERATOR_RE = re.compile(r"\\(cdot|times|div)(?![A-Za-z])")


def is_latex(text: str) -> bool:
    """Return True when *text* carries markup that needs rewriting."""
    return "\\" in text or any(ch in text for ch in _UNICODE)


def latex_to_standard(text: str) -> str:
    """Rewrite LaTeX macros into the plain expression grammar.

    ``\\frac{a}{b}`` -> ``(a)/(b)``, ``\\sqrt[n]{x}`` -> ``(x)^(1/(n))``,
    ``\\sqrt{x}`` -> ``sqrt(x)``, ``x^{n}`` -> ``x^(n)``, ``x_{i}`` -> ``x_i``.
    """
    s = _FRAC_RE.sub(r"(\1)/(\2)", text)
    s = _NTH_ROOT_RE.sub(r"(\2)^(1/(\1))", s)
    s = _SQRT_RE.sub(r"sqrt(\1)", s)
    s = _NAME_RE.sub(r"\1", s)
    s = _EXPONENT_RE.sub(r"^(\1)", s)
    s = _SUBSCRIPT_RE.sub(r"\1_\2", s)
    s = _LEFT_RE.sub(r"\1", s)
    s = _RIGHT_RE.sub(r"\1", s)
    s = _OPERATOR_RE.sub(
        lambda m: "/" if m.group(1) == "div" else "*", s)
    return s


def preprocess(text: str) -> str:
    """Apply ``latex_to_standard`` plus bracket/symbol normalisation if needed."""
    if not is_latex(text):
        return text
    s = latex_to_standard(text)
    for symbol, replacement in _UNICODE.items():
        s = s.replace(symbol, replacement)
    s = s.replace("[", "(").replace("]", ")")
    s = s.replace("{", "(").replace("}", ")")
    return s
