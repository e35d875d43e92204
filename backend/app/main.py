import math

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from mathexpr import compile, parse_expression, solve_system, substitute, to_string
from mathexpr.symbolic import format_number, to_latex

app = FastAPI(title="mathexpr API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Binding = float | str


class EvaluateRequest(BaseModel):
    expression: str
    variables: dict[str, Binding] = Field(default_factory=dict)
    codegen: bool = True


class EvaluateResponse(BaseModel):
    expression: str
    # "inf", "-inf" or "nan" for non-finite results
    result: float | str


class SolveRequest(BaseModel):
    equations: list[str]
    variables: dict[str, Binding] = Field(default_factory=dict)
    options: dict = Field(default_factory=dict)


class SolveResponse(BaseModel):
    solution: dict


class SubstituteRequest(BaseModel):
    expression: str
    replacements: dict[str, Binding] = Field(default_factory=dict)


class SubstituteResponse(BaseModel):
    expression: str
    latex: str


def _run(fn, *args):
    try:
        return fn(*args)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Solver error: {str(e)}")


def _json_value(value):
    """JSON has no inf/nan, so those floats are sent as their literal text."""
    if isinstance(value, float) and not math.isfinite(value):
        return format_number(value)
    return value


@app.post("/api/evaluate", response_model=EvaluateResponse)
def evaluate(req: EvaluateRequest):
    expression = req.expression.strip()
    if not expression:
        raise HTTPException(status_code=400, detail="Expression cannot be empty.")

    result = _run(lambda: compile(expression, codegen=req.codegen)(req.variables))
    return {"expression": expression, "result": _json_value(result)}


@app.post("/api/solve", response_model=SolveResponse)
def solve(req: SolveRequest):
    equations = [eq.strip() for eq in req.equations if eq.strip()]
    if not equations:
        raise HTTPException(status_code=400, detail="Equation cannot be empty.")

    solution = _run(solve_system, equations, req.variables, req.options)
    return {"solution": {key: _json_value(value) for key, value in solution.items()}}


@app.post("/api/substitute", response_model=SubstituteResponse)
def substitute_expression(req: SubstituteRequest):
    expression = req.expression.strip()
    if not expression:
        raise HTTPException(status_code=400, detail="Expression cannot be empty.")

    def _substitute():
        ast = substitute(parse_expression(expression), req.replacements)
        return {"expression": to_string(ast), "latex": to_latex(ast)}

    return _run(_substitute)
