"""
Model Checks Module

Structural (Tier 1) validation and complexity scoring for user-authored
models. Neither function simulates anything.

- validate_tier1(config) -> list[Tier1Failure]: empty list means pass
- calculate_complexity(config) -> int: lower is simpler
- calculate_complexity_breakdown(config) -> ComplexityBreakdown
- get_complexity_tier(score) -> ComplexityTier

Equations are arithmetic expressions over a fixed vocabulary of world
variables, the model's own parameter names and a small set of math
functions. They are parsed with the standard `ast` module and checked
node by node; nothing is ever evaluated. Both `**` and `^` mean power.
"""

import ast
import math
import re
from typing import Optional

from .models import ComplexityBreakdown, ComplexityTier, ModelConfig, Tier1Failure

REQUIRED_EQUATIONS = (
    "ai_adoption_growth",
    "surplus_generation",
    "wellbeing_delta",
    "displacement_friction",
    "ubi_utility",
)
OPTIONAL_EQUATIONS = ("demand_collapse", "reputation_change", "gini_damping")

ALLOWED_FUNCTIONS = frozenset({
    "sin", "cos", "tan", "exp", "log", "log10", "log2",
    "sqrt", "abs", "ceil", "floor", "round",
    "min", "max", "pow", "sign",
})

ALLOWED_VARIABLES = frozenset({
    "adoption", "ai_adoption", "wellbeing", "gdp", "gdp_per_capita", "population",
    "gini", "governance", "contribution_rate", "displacement_rate", "fund_size",
    "month", "ai_growth_rate", "ubi_received", "market_pressure", "reputation_score",
    "customer_base_wellbeing", "projected_demand_collapse", "ai_revenue",
})

CONSTANTS = frozenset({"pi", "e"})

MAX_EQUATION_LENGTH = 500

_ALLOWED_NODES = (
    ast.Expression,
    ast.BinOp, ast.UnaryOp, ast.Compare, ast.IfExp, ast.Call,
    ast.Name, ast.Constant, ast.Load,
    ast.Add, ast.Sub, ast.Mult, ast.Div, ast.FloorDiv, ast.Mod, ast.Pow, ast.BitXor,
    ast.UAdd, ast.USub,
    ast.Lt, ast.LtE, ast.Gt, ast.GtE, ast.Eq, ast.NotEq,
)

# Scoring weights
PARAMETER_WEIGHT = 10
EQUATION_LENGTH_WEIGHT = 5     # per full 100 characters
OPERATION_WEIGHT = 1
NESTING_WEIGHT = 3
OPTIONAL_EQUATION_WEIGHT = 5


# =============================================================================
# EXPRESSION HELPERS
# =============================================================================

def _parse(expression: str) -> ast.Expression:
    return ast.parse(expression.strip(), mode="eval")


def check_expression(expression: str, parameter_names: frozenset[str] = frozenset()) -> Optional[str]:
    """
    Check one equation. Returns an error message, or None if it is valid.
    """
    if len(expression) > MAX_EQUATION_LENGTH:
        return f"Equation exceeds maximum length of {MAX_EQUATION_LENGTH} characters"

    try:
        tree = _parse(expression)
    except (SyntaxError, ValueError, RecursionError) as e:
        return f"Invalid syntax: {getattr(e, 'msg', None) or e}"

    known_names = ALLOWED_VARIABLES | CONSTANTS | parameter_names
    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            return f"Expression element '{type(node).__name__}' is not allowed"
        if isinstance(node, ast.Constant) and (
            isinstance(node.value, bool) or not isinstance(node.value, (int, float))
        ):
            return f"Only numeric literals are allowed, got {node.value!r}"
        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in ALLOWED_FUNCTIONS:
                name = node.func.id if isinstance(node.func, ast.Name) else type(node.func).__name__
                return f"Function '{name}' is not allowed. Allowed functions: {', '.join(sorted(ALLOWED_FUNCTIONS))}"
            if node.keywords:
                return "Keyword arguments are not allowed"
        elif isinstance(node, ast.Name) and node.id not in known_names and node.id not in ALLOWED_FUNCTIONS:
            return f"Variable '{node.id}' is not allowed"
    return None


def _count_ast_operations(tree: ast.Expression) -> int:
    count = 0
    for node in ast.walk(tree):
        if isinstance(node, (ast.BinOp, ast.UnaryOp, ast.Call)):
            count += 1
        elif isinstance(node, ast.Compare):
            count += len(node.ops)
        elif isinstance(node, ast.IfExp):
            count += 2
    return count


def _count_text_operations(expression: str) -> int:
    """Rough count for equations that do not parse."""
    count = len(re.findall(r"[+\-*/^]", expression))
    count += len(re.findall(r"[a-zA-Z_]\w*\s*\(", expression))
    count += 2 * expression.count("?")
    return count


def _nesting_depth(expression: str) -> int:
    depth = max_depth = 0
    for char in expression:
        if char == "(":
            depth += 1
            max_depth = max(max_depth, depth)
        elif char == ")":
            depth -= 1
    return max_depth


def _present_equations(config: ModelConfig, keys: tuple[str, ...]) -> dict[str, str]:
    equations = {}
    for key in keys:
        value = getattr(config.equations, key)
        if value and value.strip():
            equations[key] = value
    return equations


# =============================================================================
# TIER 1
# =============================================================================

def validate_tier1(config: ModelConfig) -> list[Tier1Failure]:
    """
    Structural validation of a user-authored model.

    Checks required equations, equation syntax and vocabulary, parameter
    ranges and causality-override metadata. Returns every failure found;
    never raises for bad model content.
    """
    failures: list[Tier1Failure] = []
    parameter_names = frozenset(p.name for p in config.parameters)

    for key in REQUIRED_EQUATIONS:
        value = getattr(config.equations, key)
        if not value or not value.strip():
            failures.append(Tier1Failure(
                test_id=f"T1-EQ-MISSING-{key}",
                test_name="Required equation present",
                reason=f"Required equation '{key}' is missing or empty",
                expected="non-empty expression",
                actual=repr(value),
            ))

    equations = _present_equations(config, REQUIRED_EQUATIONS + OPTIONAL_EQUATIONS)
    for key, expression in equations.items():
        error = check_expression(expression, parameter_names)
        if error:
            failures.append(Tier1Failure(
                test_id=f"T1-EQ-SYNTAX-{key}",
                test_name="Equation is a valid expression",
                reason=f"Equation '{key}': {error}",
                actual=expression[:200],
            ))

    seen: set[str] = set()
    for param in config.parameters:
        if param.name in seen:
            failures.append(Tier1Failure(
                test_id=f"T1-PARAM-DUPLICATE-{param.name}",
                test_name="Parameter names are unique",
                reason=f"Parameter '{param.name}' is declared more than once",
            ))
        seen.add(param.name)

        if not all(math.isfinite(v) for v in (param.min, param.max, param.default)):
            failures.append(Tier1Failure(
                test_id=f"T1-PARAM-FINITE-{param.name}",
                test_name="Parameter bounds are finite",
                reason=f"Parameter '{param.name}' has a non-finite bound or default",
            ))
            continue
        if param.min >= param.max:
            failures.append(Tier1Failure(
                test_id=f"T1-PARAM-RANGE-{param.name}",
                test_name="Parameter range is valid",
                reason=f"Parameter '{param.name}' has min >= max",
                expected="min < max",
                actual=f"min={param.min:g}, max={param.max:g}",
            ))
        elif not param.min <= param.default <= param.max:
            failures.append(Tier1Failure(
                test_id=f"T1-PARAM-DEFAULT-{param.name}",
                test_name="Parameter default within range",
                reason=f"Parameter '{param.name}' default {param.default:g} is outside [{param.min:g}, {param.max:g}]",
                expected=f"{param.min:g} <= default <= {param.max:g}",
                actual=f"{param.default:g}",
            ))

    metadata = config.metadata
    if metadata.overrides_standard_causality and not (metadata.justification or "").strip():
        failures.append(Tier1Failure(
            test_id="T1-META-JUSTIFY",
            test_name="Causality override is justified",
            reason="Model overrides standard causality but gives no justification",
            expected="non-empty justification",
        ))

    return failures


# =============================================================================
# COMPLEXITY
# =============================================================================

def calculate_complexity_breakdown(config: ModelConfig) -> ComplexityBreakdown:
    """Score every component that makes a model harder to understand."""
    equations = _present_equations(config, REQUIRED_EQUATIONS + OPTIONAL_EQUATIONS)

    total_length = 0
    total_operations = 0
    max_depth = 0
    for expression in equations.values():
        total_length += len(expression)
        try:
            total_operations += _count_ast_operations(_parse(expression))
        except (SyntaxError, ValueError, RecursionError):
            total_operations += _count_text_operations(expression)
        max_depth = max(max_depth, _nesting_depth(expression))

    optional_used = sum(1 for key in OPTIONAL_EQUATIONS if key in equations)
    parameter_count = len(config.parameters)

    parameter_score = parameter_count * PARAMETER_WEIGHT
    equation_length_score = (total_length // 100) * EQUATION_LENGTH_WEIGHT
    operation_score = total_operations * OPERATION_WEIGHT
    nesting_score = max_depth * NESTING_WEIGHT
    optional_score = optional_used * OPTIONAL_EQUATION_WEIGHT

    return ComplexityBreakdown(
        total=parameter_score + equation_length_score + operation_score + nesting_score + optional_score,
        parameter_score=parameter_score,
        equation_length_score=equation_length_score,
        operation_score=operation_score,
        nesting_score=nesting_score,
        optional_equation_score=optional_score,
        parameter_count=parameter_count,
        total_equation_length=total_length,
        total_operations=total_operations,
        max_nesting_depth=max_depth,
        optional_equations_used=optional_used,
    )


def calculate_complexity(config: ModelConfig) -> int:
    return calculate_complexity_breakdown(config).total


def get_complexity_tier(score: float) -> ComplexityTier:
    if score < 30:
        return ComplexityTier.MINIMAL
    if score < 60:
        return ComplexityTier.SIMPLE
    if score < 100:
        return ComplexityTier.MODERATE
    if score < 150:
        return ComplexityTier.COMPLEX
    return ComplexityTier.VERY_COMPLEX
