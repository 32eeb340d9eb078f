"""
Formula Parser (formula text -> Expression AST).

Grammar (standard precedence, left associative):

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("-" | "+") unary | primary
    primary    := NUMBER | PLACEHOLDER | "(" expression ")"

    NUMBER      := 12 | 12.5 | .5
    PLACEHOLDER := "{" any text except "}" "}"

Anything else in the text is a parse error.
"""

import re
from typing import List

from formrt.expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    FieldPlaceholder,
    NumberLiteral,
    UnaryExpression,
    UnaryOperator,
)


class FormulaError(Exception):
    """Base class for everything that can go wrong with a formula."""
    pass


class FormulaParseError(FormulaError):
    """Raised when formula text is not a valid arithmetic expression."""
    pass


class FormulaReferenceError(FormulaError):
    """Raised when a placeholder names a missing or non-numeric field."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class FormulaEvaluationError(FormulaError):
    """Raised when an expression has no finite numeric value."""
    pass


_TOKEN_RE = re.compile(
    r'(\{[^}]+\})'                # placeholder
    r'|(\d+(?:\.\d*)?|\.\d+)'     # number
    r'|([+\-*/()])'               # operator or parenthesis
    r'|(\s+)'                     # whitespace
    r'|(.)',                      # anything else
    re.DOTALL,
)

_OPERATOR_MAP = {
    '+': BinaryOperator.ADD,
    '-': BinaryOperator.SUBTRACT,
    '*': BinaryOperator.MULTIPLY,
    '/': BinaryOperator.DIVIDE,
}


def tokenize(text: str) -> List[str]:
    """Split formula text into tokens, rejecting unknown characters."""
    tokens = []
    for match in _TOKEN_RE.finditer(text):
        placeholder, number, symbol, space, other = match.groups()
        if space:
            continue
        if other is not None:
            raise FormulaParseError(
                f"Unexpected character '{other}' at position {match.start()}"
            )
        tokens.append(placeholder or number or symbol)
    return tokens


def parse_formula(text: str) -> Expression:
    """
    Parse formula text into an Expression AST.

    Args:
        text: Formula such as "{Quantity} * {Price} + {Tax}"

    Returns:
        Expression AST

    Raises:
        FormulaParseError: If the text is empty or not valid arithmetic
    """
    if text is None or not text.strip():
        raise FormulaParseError("Expression cannot be empty")

    tokens = tokenize(text)
    expr, pos = _parse_additive(tokens, 0)

    if pos < len(tokens):
        raise FormulaParseError(f"Unexpected tokens after expression: {tokens[pos:]}")

    return expr


def _parse_additive(tokens: List[str], pos: int) -> tuple:
    """Parse + and - (lowest precedence)."""
    left, pos = _parse_multiplicative(tokens, pos)

    while pos < len(tokens) and tokens[pos] in ('+', '-'):
        op = _OPERATOR_MAP[tokens[pos]]
        right, pos = _parse_multiplicative(tokens, pos + 1)
        left = BinaryExpression(op, left, right)

    return left, pos


def _parse_multiplicative(tokens: List[str], pos: int) -> tuple:
    """Parse * and /."""
    left, pos = _parse_unary(tokens, pos)

    while pos < len(tokens) and tokens[pos] in ('*', '/'):
        op = _OPERATOR_MAP[tokens[pos]]
        right, pos = _parse_unary(tokens, pos + 1)
        left = BinaryExpression(op, left, right)

    return left, pos


def _parse_unary(tokens: List[str], pos: int) -> tuple:
    """Parse a leading sign."""
    if pos < len(tokens) and tokens[pos] in ('-', '+'):
        op = UnaryOperator.NEGATE if tokens[pos] == '-' else UnaryOperator.PLUS
        operand, pos = _parse_unary(tokens, pos + 1)
        return UnaryExpression(op, operand), pos

    return _parse_primary(tokens, pos)


def _parse_primary(tokens: List[str], pos: int) -> tuple:
    """Parse a number, a placeholder or a parenthesized expression."""
    if pos >= len(tokens):
        raise FormulaParseError("Unexpected end of expression")

    token = tokens[pos]

    if token == '(':
        expr, pos = _parse_additive(tokens, pos + 1)
        if pos >= len(tokens) or tokens[pos] != ')':
            raise FormulaParseError("Missing closing parenthesis")
        return expr, pos + 1

    if token.startswith('{'):
        return FieldPlaceholder(token[1:-1]), pos + 1

    if token[0].isdigit() or token[0] == '.':
        return NumberLiteral(float(token)), pos + 1

    raise FormulaParseError(f"Unexpected token: {token}")


__all__ = [
    "FormulaError",
    "FormulaParseError",
    "FormulaReferenceError",
    "FormulaEvaluationError",
    "tokenize",
    "parse_formula",
]
