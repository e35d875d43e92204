"""
Graph builder for mathexpr.

Produces a dark-themed matplotlib Figure for an equation or a system:
  - single equation, one unknown : both sides plotted against the unknown,
                                   the root marked where they meet
  - two linear equations in x, y : both lines, the intersection marked
Anything else yields a text figure explaining why it was not drawn.
"""

import numpy as np

from mathexpr.compiler import compile
from mathexpr.engine import (
    equation_unknowns, extract_2var_coefficients, parse_equation,
)
from mathexpr.errors import MathExprError, NonLinearTerm
from mathexpr.evaluator import Scope
from mathexpr.symbolic import to_string

# ── palette ────────────────────────────────────────────────────────────────
C_BG       = "#0f0f0f"
C_AX       = "#181818"
C_GRID     = "#252525"
C_TICK     = "#666666"
C_SPINE    = "#333333"
C_LINE1    = "#1a8cff"   # primary line
C_LINE2    = "#ff8c42"   # secondary line
C_DOT      = "#4caf50"   # root / intersection dot
C_TEXT     = "#cccccc"

SAMPLES = 400


def _style_axes(ax, fig):
    fig.patch.set_facecolor(C_BG)
    ax.set_facecolor(C_AX)
    ax.tick_params(colors=C_TICK, labelsize=9)
    ax.xaxis.label.set_color(C_TEXT)
    ax.yaxis.label.set_color(C_TEXT)
    ax.title.set_color(C_TEXT)
    for spine in ax.spines.values():
        spine.set_edgecolor(C_SPINE)
    ax.grid(True, color=C_GRID, linewidth=0.8, linestyle="--", alpha=0.7)
    ax.axhline(0, color=C_SPINE, linewidth=0.8)
    ax.axvline(0, color=C_SPINE, linewidth=0.8)


def _legend(ax):
    ax.legend(fontsize=8, facecolor="#1e1e1e", edgecolor=C_SPINE, labelcolor=C_TEXT)


def _text_figure(message: str):
    """A blank styled figure carrying *message*."""
    from matplotlib.figure import Figure

    fig = Figure(figsize=(7, 3.4), dpi=100)
    ax = fig.add_subplot(111)
    fig.patch.set_facecolor(C_BG)
    ax.set_facecolor(C_AX)
    ax.set_axis_off()
    ax.text(0.5, 0.5, message, color=C_TEXT, fontsize=10,
            ha="center", va="center", wrap=True, transform=ax.transAxes)
    return fig


def _sample(fn, bindings: dict, var: str, xs) -> np.ndarray:
    return np.array([fn(Scope({**bindings, var: float(x)})) for x in xs], dtype=float)


def build_figure(equations, bindings: dict | None = None, solution: dict | None = None):
    """
    Build and return a dark-themed matplotlib Figure.

    *equations* is one equation string or a list of them; *solution* is
    the solver's result for them and is used to mark the root or
    intersection and to title degenerate cases.
    """
    bindings = dict(bindings or {})
    solution = solution or {}
    if isinstance(equations, str):
        equations = [equations]
    equations = list(equations)

    try:
        parsed = [parse_equation(text) for text in equations]
    except MathExprError as e:
        return _text_figure(f"Cannot graph: {e}")

    unknowns = []
    for equation in parsed:
        for name in equation_unknowns(equation, bindings):
            if name not in unknowns:
                unknowns.append(name)

    if len(parsed) == 1 and len(unknowns) == 1:
        return _build_single_var(parsed[0], unknowns[0], bindings, solution)
    if len(parsed) == 2 and len(unknowns) == 2:
        try:
            lines = [_line(equation, unknowns, bindings) for equation in parsed]
        except NonLinearTerm:
            lines = None
        if lines is not None:
            return _build_system(equations, lines, unknowns, solution)
    return _text_figure(
        "Graphs are drawn for one equation in one unknown "
        "or two linear equations in two unknowns."
    )


# ── Single unknown ──────────────────────────────────────────────────────────

def _build_single_var(equation, var, bindings, solution):
    from matplotlib.figure import Figure

    root = solution.get(var)
    centre = root if root is not None and np.isfinite(root) else 0.0
    xs = np.linspace(centre - 5, centre + 5, SAMPLES)

    left_fn = compile(equation.left)
    right_fn = compile(equation.right)
    with np.errstate(all="ignore"):
        y_left = _sample(left_fn, bindings, var, xs)
        y_right = _sample(right_fn, bindings, var, xs)

    fig = Figure(figsize=(7, 3.4), dpi=100)
    ax = fig.add_subplot(111)
    _style_axes(ax, fig)

    ax.plot(xs, y_left, color=C_LINE1, linewidth=2, label=f"LHS: {to_string(equation.left)}")
    ax.plot(xs, y_right, color=C_LINE2, linewidth=2, label=f"RHS: {to_string(equation.right)}")

    error = solution.get("error", "")
    if error.startswith("no solution"):
        ax.set_title("No Solution: the sides never meet", color=C_TEXT, fontsize=10)
    elif error.startswith("infinite"):
        ax.set_title("Infinite Solutions: the sides coincide", color=C_TEXT, fontsize=10)
    elif root is not None:
        y_at_root = right_fn(Scope({**bindings, var: float(root)}))
        ax.scatter([root], [y_at_root], color=C_DOT, s=80, zorder=5,
                   label=f"Solution: {var} = {root:g}")
        ax.axvline(root, color=C_DOT, linewidth=1, linestyle=":", alpha=0.6)
        ax.set_title(f"Solution: {var} = {root:g}", color=C_TEXT, fontsize=10)

    ax.set_xlabel(var, color=C_TEXT)
    ax.set_ylabel("value", color=C_TEXT)
    _legend(ax)
    fig.tight_layout(pad=1.2)
    return fig


# ── System of two equations ─────────────────────────────────────────────────

def _line(equation, unknowns, bindings):
    """``(a, b, c)`` with the equation rearranged to ``a*x + b*y = c``."""
    xn, yn = unknowns
    lx, ly, lc = extract_2var_coefficients(equation.left, xn, yn, bindings)
    rx, ry, rc = extract_2var_coefficients(equation.right, xn, yn, bindings)
    return lx - rx, ly - ry, rc - lc


def _build_system(texts, lines, unknowns, solution):
    from matplotlib.figure import Figure

    xn, yn = unknowns
    sol_x, sol_y = solution.get(xn), solution.get(yn)
    cx = sol_x if sol_x is not None else 0.0
    xs = np.linspace(cx - 8, cx + 8, SAMPLES)

    fig = Figure(figsize=(7, 3.8), dpi=100)
    ax = fig.add_subplot(111)
    _style_axes(ax, fig)

    for text, (a, b, c), colour in zip(texts, lines, (C_LINE1, C_LINE2)):
        if b != 0:
            ax.plot(xs, (c - a * xs) / b, color=colour, linewidth=2, label=text.strip())
        elif a != 0:
            ax.axvline(c / a, color=colour, linewidth=2, label=text.strip())

    if "error" in solution:
        ax.set_title("No unique solution: the lines are parallel or identical",
                     color=C_TEXT, fontsize=9)
    elif sol_x is not None and sol_y is not None:
        ax.scatter([sol_x], [sol_y], color=C_DOT, s=90, zorder=5,
                   label=f"Intersection: ({sol_x:g}, {sol_y:g})")
        ax.set_title(f"One solution: lines intersect at ({sol_x:g}, {sol_y:g})",
                     color=C_TEXT, fontsize=9)

    ax.set_xlabel(xn, color=C_TEXT)
    ax.set_ylabel(yn, color=C_TEXT)
    _legend(ax)
    fig.tight_layout(pad=1.2)
    return fig
