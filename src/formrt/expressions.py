"""
Expression System for Calculated Fields

Formula text such as "{Quantity} * {Price} + {Tax}" is parsed once into an
Abstract Syntax Tree. The calculation engine evaluates the tree; it never
evaluates text.

This ensures:
    - No eval() of author-supplied strings
    - Field references are explicit nodes, not string splices
    - Reference inventory for validation and analysis

ARCHITECTURAL RULE:
    Structure only. Parsing lives in formrt.formula_parser,
    evaluation in formrt.calculations.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import List


class Expression(ABC):
    """
    Base class for all formula AST nodes.

    Intentionally empty. It exists to type the node hierarchy.
    """
    pass


class BinaryOperator(Enum):
    """
    The four arithmetic operators.

    Nothing else is allowed in a formula: no powers, no functions.
    """

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


class UnaryOperator(Enum):
    """Sign operators, e.g. -{Discount}."""
    NEGATE = "-"
    PLUS = "+"


@dataclass(frozen=True)
class NumberLiteral(Expression):
    """
    A numeric constant written in the formula.

    Examples:
        - 1
        - 0.25
        - .5
    """

    value: float


@dataclass(frozen=True)
class FieldPlaceholder(Expression):
    """
    A {name} reference to another field.

    Properties:
        name: Text between the braces, matched against field id then label

    IMPORTANT:
        Existence is NOT checked here. An unknown name evaluates to 0
        at runtime and is reported by the authoring-time validator.
    """

    name: str


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """
    A signed operand.

    Example:
        -({Price} - {Discount})
    """

    operator: UnaryOperator
    operand: Expression


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    An arithmetic operation between two operands.

    Example:
        {Quantity} * {Price} + {Tax}

    Becomes:
        BinaryExpression(
            operator=BinaryOperator.ADD,
            left=BinaryExpression(
                operator=BinaryOperator.MULTIPLY,
                left=FieldPlaceholder("Quantity"),
                right=FieldPlaceholder("Price"),
            ),
            right=FieldPlaceholder("Tax"),
        )
    """

    operator: BinaryOperator
    left: Expression
    right: Expression


def collect_placeholders(expr: Expression) -> List[str]:
    """
    Placeholder names in left-to-right order, duplicates kept.
    """
    if isinstance(expr, FieldPlaceholder):
        return [expr.name]
    if isinstance(expr, BinaryExpression):
        return collect_placeholders(expr.left) + collect_placeholders(expr.right)
    if isinstance(expr, UnaryExpression):
        return collect_placeholders(expr.operand)
    return []
