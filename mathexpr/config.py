"""Solver options and the optional JSON settings file.

Settings are read from ``$MATHEXPR_CONFIG`` (or an explicit path) and
merged over ``DEFAULT_OPTIONS``; per-call options are merged over those.
"""

import json
import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MATHEXPR_CONFIG"

# ── Default options (used when no settings file is present) ──────────────
DEFAULT_OPTIONS = {
    "initial_guess": 1.0,
    "tolerance": 1e-10,
    "max_iterations": 100,
    "codegen": True,
}


def load_settings(path: Optional[str] = None) -> dict:
    """Return DEFAULT_OPTIONS merged with the saved settings file, if any.

    Unknown keys are ignored; an unreadable or malformed file leaves the
    defaults in place.
    """
    settings = dict(DEFAULT_OPTIONS)
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path or not os.path.exists(path):
        return settings
    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("ignoring settings file %s: %s", path, e)
        return settings
    if not isinstance(saved, dict):
        logger.warning("ignoring settings file %s: expected a JSON object", path)
        return settings
    for key, value in saved.items():
        if key in settings:
            settings[key] = value
    return settings


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class SolveOptions:
    solve_for: Optional[str] = None
    initial_guess: float = DEFAULT_OPTIONS["initial_guess"]
    tolerance: float = DEFAULT_OPTIONS["tolerance"]
    max_iterations: int = DEFAULT_OPTIONS["max_iterations"]
    codegen: bool = DEFAULT_OPTIONS["codegen"]

    @classmethod
    def from_mapping(cls, options: Optional[dict] = None,
                     settings: Optional[dict] = None) -> "SolveOptions":
        """Build options from a caller mapping layered over *settings*
        (the settings file when omitted).

        Raises ValueError for values of the wrong type or range.
        """
        if isinstance(options, SolveOptions):
            return options
        merged = dict(settings if settings is not None else load_settings())
        merged.update(options or {})

        solve_for = merged.get("solve_for")
        if solve_for is not None and not isinstance(solve_for, str):
            raise ValueError("solve_for must be a variable name")
        if not _is_number(merged["initial_guess"]):
            raise ValueError("initial_guess must be a number")
        if not _is_number(merged["tolerance"]) or merged["tolerance"] <= 0:
            raise ValueError("tolerance must be a positive number")
        max_iterations = merged["max_iterations"]
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) \
                or max_iterations < 1:
            raise ValueError("max_iterations must be a positive integer")
        if not isinstance(merged["codegen"], bool):
            raise ValueError("codegen must be true or false")

        return cls(
            solve_for=solve_for,
            initial_guess=float(merged["initial_guess"]),
            tolerance=float(merged["tolerance"]),
            max_iterations=max_iterations,
            codegen=merged["codegen"],
        )

    def without_target(self) -> "SolveOptions":
        return replace(self, solve_for=None)
