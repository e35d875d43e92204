"""Builtin functions and constants shared by the evaluator and compiler.

All arithmetic goes through NumPy float64 so that division by zero,
domain errors and overflow yield ``inf``/``nan`` instead of raising,
matching IEEE-754 double semantics.  Callers wrap evaluation in
``np.errstate(all="ignore")`` to silence the corresponding warnings.
"""

from collections import namedtuple
from types import MappingProxyType

import numpy as np

from mathexpr.errors import ArgumentCountError, UnknownFunction

CONSTANTS = MappingProxyType({
    "pi": float(np.pi),
    "e": float(np.e),
    "inf": float(np.inf),
    "nan": float(np.nan),
})


def divide(a, b):
    return np.divide(a, b)


def power(a, b):
    return np.power(a, b)


# ── Functions defined by identity rather than a NumPy primitive ─────────

def _sinh(x):
    return (np.exp(x) - np.exp(-x)) / 2


def _cosh(x):
    return (np.exp(x) + np.exp(-x)) / 2


def _tanh(x):
    return (np.exp(2 * x) - 1) / (np.exp(2 * x) + 1)


def _asinh(x):
    return np.log(x + np.sqrt(x * x + 1))


def _acosh(x):
    return np.log(x + np.sqrt(x * x - 1))


def _atanh(x):
    return 0.5 * np.log(np.divide(1 + x, 1 - x))


def _log2(x):
    return np.log(x) / np.log(2.0)


def _cbrt(x):
    return np.power(x, 1.0 / 3.0) if x >= 0 else -np.power(-x, 1.0 / 3.0)


def _sign(x):
    return 1.0 if x > 0 else (-1.0 if x < 0 else 0.0)


def _round(x):
    return np.floor(x + 0.5)


def _trunc(x):
    return np.floor(x) if x >= 0 else np.ceil(x)


def _clamp(x, lo, hi):
    return min(max(x, lo), hi)


def _lerp(a, b, t):
    return a + (b - a) * t


def _min(*args):
    return min(args)


def _max(*args):
    return max(args)


Builtin = namedtuple("Builtin", ["impl", "arity"])

# arity None means "one or more"
FUNCTIONS = MappingProxyType({
    # Trigonometric
    "sin": Builtin(np.sin, 1),
    "cos": Builtin(np.cos, 1),
    "tan": Builtin(np.tan, 1),
    "asin": Builtin(np.arcsin, 1),
    "acos": Builtin(np.arccos, 1),
    "atan": Builtin(np.arctan, 1),
    "atan2": Builtin(np.arctan2, 2),
    # Hyperbolic
    "sinh": Builtin(_sinh, 1),
    "cosh": Builtin(_cosh, 1),
    "tanh": Builtin(_tanh, 1),
    "asinh": Builtin(_asinh, 1),
    "acosh": Builtin(_acosh, 1),
    "atanh": Builtin(_atanh, 1),
    # Exponential and logarithmic
    "exp": Builtin(np.exp, 1),
    "log": Builtin(np.log, 1),
    "log10": Builtin(np.log10, 1),
    "log2": Builtin(_log2, 1),
    "ln": Builtin(np.log, 1),
    # Powers and roots
    "sqrt": Builtin(np.sqrt, 1),
    "cbrt": Builtin(_cbrt, 1),
    "pow": Builtin(power, 2),
    # Absolute value, sign and rounding
    "abs": Builtin(np.fabs, 1),
    "sign": Builtin(_sign, 1),
    "floor": Builtin(np.floor, 1),
    "ceil": Builtin(np.ceil, 1),
    "round": Builtin(_round, 1),
    "trunc": Builtin(_trunc, 1),
    # Min/max and interpolation
    "min": Builtin(_min, None),
    "max": Builtin(_max, None),
    "clamp": Builtin(_clamp, 3),
    "lerp": Builtin(_lerp, 3),
    # Angle conversion
    "rad": Builtin(np.radians, 1),
    "deg": Builtin(np.degrees, 1),
})

FUNCTION_NAMES = frozenset(FUNCTIONS)
CONSTANT_NAMES = frozenset(CONSTANTS)


def check_arity(name: str, given: int) -> None:
    """Raise ``ArgumentCountError`` when *given* does not fit *name*'s arity."""
    builtin = FUNCTIONS.get(name)
    if builtin is None:
        raise UnknownFunction(name)
    if builtin.arity is None:
        if given < 1:
            raise ArgumentCountError(name, "at least 1", given)
    elif given != builtin.arity:
        raise ArgumentCountError(name, str(builtin.arity), given)


def call(name: str, args: list):
    """Dispatch a builtin by name after checking its argument count."""
    check_arity(name, len(args))
    return FUNCTIONS[name].impl(*args)
