"""
mathexpr: command-line entry point.

    python main.py "2 + 3 * 4"
    python main.py "2*x + 3 = 11"
    python main.py "x + y = 10" "x - y = 2" --plot system.png
    python main.py "a * 2" --var a=b+1 --var b=3 --steps
"""

import argparse
import logging
import sys

import mathexpr

LOG_FORMAT = "[MATHEXPR] [%(levelname)s] %(message)s"


def _parse_binding(text: str):
    name, sep, value = text.partition("=")
    if not sep or not name.strip() or not value.strip():
        raise argparse.ArgumentTypeError(f"expected name=value, got {text!r}")
    value = value.strip()
    try:
        return name.strip(), float(value)
    except ValueError:
        return name.strip(), value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mathexpr",
        description="Evaluate expressions and solve equations.",
    )
    parser.add_argument("problems", nargs="+",
                        help="an expression, an equation, or several equations")
    parser.add_argument("--var", action="append", default=[], type=_parse_binding,
                        metavar="NAME=VALUE", help="bind a variable (repeatable)")
    parser.add_argument("--solve-for", metavar="NAME",
                        help="unknown to solve for when an equation has several")
    parser.add_argument("--initial-guess", type=float, metavar="X",
                        help="starting point for Newton-Raphson")
    parser.add_argument("--no-codegen", action="store_true",
                        help="always use the tree-walking interpreter")
    parser.add_argument("--steps", action="store_true",
                        help="print the evaluation steps of an expression")
    parser.add_argument("--plot", metavar="PATH",
                        help="save a graph of the equation(s) to PATH")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def _options(args) -> dict:
    options = {"codegen": not args.no_codegen}
    if args.solve_for:
        options["solve_for"] = args.solve_for
    if args.initial_guess is not None:
        options["initial_guess"] = args.initial_guess
    if args.steps:
        options["show_steps"] = True
    return options


def _format_solution(solution: dict) -> str:
    return "\n".join(f"{key} = {value}" for key, value in solution.items())


def _format_steps(steps) -> str:
    lines = []
    for step in steps:
        line = f"{step.operation:>7}  {step.description}"
        if step.operation in ("binop", "unary", "call"):
            line += f" = {step.result}"
        lines.append(line)
    return "\n".join(lines)


def run(args) -> str:
    bindings = dict(args.var)
    options = _options(args)
    problem = args.problems if len(args.problems) > 1 else args.problems[0]

    result = mathexpr.solve(problem, bindings, options)

    if args.plot:
        from mathexpr.graph import build_figure

        equations = args.problems
        fig = build_figure(equations, bindings, result if isinstance(result, dict) else None)
        fig.savefig(args.plot)
        logging.getLogger(__name__).info("graph saved to %s", args.plot)

    if isinstance(result, dict):
        return _format_solution(result)
    if isinstance(result, list):
        return _format_steps(result)
    return repr(result)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    try:
        print(run(args))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
