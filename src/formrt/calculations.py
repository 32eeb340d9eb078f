"""
Calculation Engine for calculated fields.

Runtime evaluation never raises: a broken formula, an unknown reference or
a non-finite result all evaluate to 0 so the page keeps rendering. Only the
authoring-time validator (validate_expression) reports problems, as
human-readable messages.

Reference resolution for {name}: the first field whose id equals name,
otherwise the first field whose label equals name. The referenced answer
is coerced to a number (missing or non-numeric -> 0).
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Callable, Dict, Mapping, Optional, Sequence, Union

from formrt.coercion import answer_to_number
from formrt.expressions import (
    BinaryExpression,
    BinaryOperator,
    Expression,
    FieldPlaceholder,
    NumberLiteral,
    UnaryExpression,
    UnaryOperator,
)
from formrt.formula_parser import (
    FormulaError,
    FormulaEvaluationError,
    FormulaParseError,
    FormulaReferenceError,
    parse_formula,
)
from formrt.model import (
    NUMERIC_FIELD_TYPES,
    CalculationFormat,
    CalculationFormula,
    Field,
    FieldType,
)

logger = logging.getLogger(__name__)

CURRENCY_SYMBOL = "$"
DEFAULT_DECIMAL_PLACES = 2
MAX_DECIMAL_PLACES = 20

# Value substituted for every reference when validating
VALIDATION_DUMMY_VALUE = 1.0

_PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")


@dataclass(frozen=True)
class CalculationResult:
    """Numeric value of a calculated field and its display string."""
    value: float
    display: str


@dataclass(frozen=True)
class CalculationValidation:
    """
    Outcome of authoring-time formula validation.

    Properties:
        is_valid: True when the formula can be used as is
        error: Human-readable reason when invalid
        field_name: Offending placeholder name for reference errors
    """

    is_valid: bool
    error: Optional[str] = None
    field_name: Optional[str] = None


def resolve_reference(name: str, fields: Sequence[Field]) -> Optional[Field]:
    """Field named by a placeholder: id match first, then label match."""
    for f in fields:
        if f.id == name:
            return f
    for f in fields:
        if f.label == name:
            return f
    return None


def _divide(left: float, right: float) -> float:
    if right != 0:
        return left / right
    if left == 0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


def _evaluate(expr: Expression, lookup: Callable[[str], float]) -> float:
    if isinstance(expr, NumberLiteral):
        return expr.value
    if isinstance(expr, FieldPlaceholder):
        return lookup(expr.name)
    if isinstance(expr, UnaryExpression):
        operand = _evaluate(expr.operand, lookup)
        return -operand if expr.operator == UnaryOperator.NEGATE else operand
    if isinstance(expr, BinaryExpression):
        left = _evaluate(expr.left, lookup)
        right = _evaluate(expr.right, lookup)
        if expr.operator == BinaryOperator.ADD:
            return left + right
        if expr.operator == BinaryOperator.SUBTRACT:
            return left - right
        if expr.operator == BinaryOperator.MULTIPLY:
            return left * right
        return _divide(left, right)
    raise FormulaEvaluationError(f"Unsupported expression node: {type(expr).__name__}")


def evaluate_expression(expr: Expression, lookup: Callable[[str], float]) -> float:
    """
    Evaluate an AST with IEEE float arithmetic.

    Intermediate infinities propagate (1/(1/0) is 0); only the final value
    has to be finite.

    Raises:
        FormulaEvaluationError: When the result is not a finite number
    """
    value = _evaluate(expr, lookup)
    if not math.isfinite(value):
        raise FormulaEvaluationError("Result is not a finite number")
    return value


def _answer_lookup(fields: Sequence[Field], answers: Mapping[str, object]) -> Callable[[str], float]:
    def lookup(name: str) -> float:
        f = resolve_reference(name, fields)
        if f is None:
            return 0.0
        return answer_to_number(answers.get(f.id))
    return lookup


def calculate_value(formula: Union[CalculationFormula, str, None],
                    fields: Sequence[Field],
                    answers: Mapping[str, object]) -> float:
    """
    Numeric value of a formula for the current answers.

    Never raises. Any failure evaluates to 0.
    """
    if formula is None:
        return 0.0
    text = formula.expression if isinstance(formula, CalculationFormula) else formula
    try:
        expr = parse_formula(text)
        return evaluate_expression(expr, _answer_lookup(fields, answers))
    except (FormulaError, RecursionError) as e:
        logger.debug("Calculation of %r degraded to 0: %s", text, e)
        return 0.0


def format_value(value: float,
                 fmt: CalculationFormat = CalculationFormat.NUMBER,
                 decimal_places: int = DEFAULT_DECIMAL_PLACES) -> str:
    """
    Display string of a calculated value.

    NUMBER      1234.5 -> "1,234.50"
    CURRENCY    1234.5 -> "$1,234.50"
    PERCENTAGE  12.5   -> "12.50%"   (already in percentage points)

    Rounding is half-up on the decimal representation of the value.
    """
    if value is None or not math.isfinite(value):
        return "0"

    places = min(max(int(decimal_places), 0), MAX_DECIMAL_PLACES)
    with localcontext() as ctx:
        ctx.prec = 400
        quantized = Decimal(repr(float(value))).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
        sign = "-" if quantized < 0 else ""
        digits = f"{abs(quantized):,.{places}f}"

    if fmt == CalculationFormat.CURRENCY:
        return f"{sign}{CURRENCY_SYMBOL}{digits}"
    if fmt == CalculationFormat.PERCENTAGE:
        return f"{sign}{digits}%"
    return f"{sign}{digits}"


def calculate(formula: CalculationFormula, fields: Sequence[Field],
              answers: Mapping[str, object]) -> CalculationResult:
    """Value and display string of one formula."""
    value = calculate_value(formula, fields, answers)
    return CalculationResult(value=value, display=format_value(value, formula.format, formula.decimal_places))


def calculate_fields(fields: Sequence[Field], answers: Mapping[str, object]) -> Dict[str, CalculationResult]:
    """
    Results for every calculated field that carries a formula, by field id.

    References resolve against the full field list given.
    """
    results: Dict[str, CalculationResult] = {}
    for f in fields:
        if f.type != FieldType.CALCULATED or f.calculations is None:
            continue
        results[f.id] = calculate(f.calculations, fields, answers)
    return results


def _check_parentheses(expression: str) -> Optional[str]:
    depth = 0
    for char in expression:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if depth < 0:
            return "Unmatched closing parenthesis"
    if depth > 0:
        return "Unmatched opening parenthesis"
    return None


def _check_references(expression: str, fields: Sequence[Field]) -> None:
    for name in _PLACEHOLDER_RE.findall(expression):
        f = resolve_reference(name, fields)
        if f is None:
            raise FormulaReferenceError(name, f'Field "{name}" not found')
        if f.type not in NUMERIC_FIELD_TYPES:
            raise FormulaReferenceError(name, f'Field "{name}" is not a numeric field')


def validate_expression(expression: str, fields: Sequence[Field]) -> CalculationValidation:
    """
    Authoring-time check of a formula.

    Order of checks:
        1. not empty
        2. balanced parentheses
        3. every reference names an existing numeric-capable field
        4. evaluates to a finite number with every reference set to 1
    """
    if expression is None or not expression.strip():
        return CalculationValidation(False, "Expression cannot be empty")

    paren_error = _check_parentheses(expression)
    if paren_error:
        return CalculationValidation(False, paren_error)

    try:
        _check_references(expression, fields)
    except FormulaReferenceError as e:
        return CalculationValidation(False, str(e), field_name=e.name)

    try:
        expr = parse_formula(expression)
    except (FormulaParseError, RecursionError):
        return CalculationValidation(False, "Invalid mathematical expression")

    try:
        evaluate_expression(expr, lambda name: VALIDATION_DUMMY_VALUE)
    except (FormulaEvaluationError, RecursionError):
        return CalculationValidation(False, "Expression must evaluate to a valid number")

    return CalculationValidation(True)
